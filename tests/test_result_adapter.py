"""Tests for mapping AgentResult into operation-shaped results."""

from unittest.mock import AsyncMock

import pytest

from app.infra.error_handler import ApplicationError
from app.models.agent import AgentResult
from app.services.result_adapter import (
    adapt_delete,
    adapt_insert,
    adapt_list,
    adapt_one,
    adapt_page,
    adapt_update,
    aggregate_stats,
)


def ok(**kwargs):
    return AgentResult(success=True, **kwargs)


class TestSelectAdapters:
    def test_adapt_list_returns_rows(self):
        assert adapt_list(ok(data=[{"id": 1}, {"id": 2}], count=2)) == [{"id": 1}, {"id": 2}]

    def test_adapt_one(self):
        assert adapt_one(ok(data=[{"id": 1}, {"id": 2}])) == {"id": 1}
        assert adapt_one(ok(data=[])) is None

    def test_failure_raises_with_upstream_message(self):
        with pytest.raises(ApplicationError) as exc_info:
            adapt_list(AgentResult(success=False, error="Table missing"))
        assert exc_info.value.message == "Table missing"


class TestInsertAdapter:
    @pytest.mark.asyncio
    async def test_fetches_created_row_once(self):
        fetch = AsyncMock(return_value=ok(data=[{"id": 42, "login": "abc"}]))

        outcome = await adapt_insert(ok(insert_id=42, affected_rows=1), fetch, "sis_cliente")

        assert outcome.record == {"id": 42, "login": "abc"}
        fetch.assert_awaited_once_with("SELECT * FROM sis_cliente WHERE id = :id LIMIT 1", {"id": 42})

    @pytest.mark.asyncio
    async def test_custom_id_field(self):
        fetch = AsyncMock(return_value=ok(data=[{"uuid_lanc": "x"}]))

        await adapt_insert(ok(insert_id="x"), fetch, "sis_lanc", id_field="uuid_lanc")

        fetch.assert_awaited_once_with(
            "SELECT * FROM sis_lanc WHERE uuid_lanc = :uuid_lanc LIMIT 1", {"uuid_lanc": "x"}
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("insert_id", [None, "", 0])
    async def test_missing_insert_id_raises_without_fetch(self, insert_id):
        fetch = AsyncMock()

        with pytest.raises(ApplicationError):
            await adapt_insert(ok(insert_id=insert_id), fetch, "sis_cliente")

        fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_insert_raises_without_fetch(self):
        fetch = AsyncMock()

        with pytest.raises(ApplicationError):
            await adapt_insert(AgentResult(success=False, error="Duplicate entry"), fetch, "sis_cliente")

        fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_rejects_unsafe_table_name(self):
        with pytest.raises(ValueError):
            await adapt_insert(ok(insert_id=1), AsyncMock(), "sis_cliente; DROP TABLE x")


class TestUpdateAdapter:
    @pytest.mark.asyncio
    async def test_no_rows_affected_skips_fetch(self):
        fetch = AsyncMock()

        outcome = await adapt_update(ok(affected_rows=0), fetch, "sis_cliente", "id", 7)

        assert outcome.record is None
        fetch.assert_not_called()

    @pytest.mark.asyncio
    async def test_reselects_updated_row_once(self):
        fetch = AsyncMock(return_value=ok(data=[{"id": 7, "bloqueado": "sim"}]))

        outcome = await adapt_update(ok(affected_rows=1), fetch, "sis_cliente", "id", 7)

        assert outcome.record == {"id": 7, "bloqueado": "sim"}
        fetch.assert_awaited_once_with("SELECT * FROM sis_cliente WHERE id = :id LIMIT 1", {"id": 7})


class TestDeleteAndPage:
    def test_delete(self):
        outcome = adapt_delete(ok(affected_rows=3))
        assert outcome.deleted is True
        assert outcome.count == 3

    def test_delete_nothing(self):
        outcome = adapt_delete(ok())
        assert outcome.deleted is False
        assert outcome.count == 0

    def test_page_metadata(self):
        page = adapt_page(ok(data=[{"id": 1}, {"id": 2}], count=45), page=2, limit=20)
        assert page.items == [{"id": 1}, {"id": 2}]
        assert page.total == 45
        assert page.page == 2
        assert page.pages == 3

    def test_aggregate_stats(self):
        stats = aggregate_stats([
            ("total", ok(data=[{"COUNT(*)": 10}])),
            ("blocked", ok(data=[])),
            ("failed", AgentResult(success=False, error="x")),
            ("missing", None),
        ])
        assert stats == {"total": 10, "blocked": 0, "failed": 0, "missing": 0}
