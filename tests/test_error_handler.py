"""Tests for the error taxonomy, redaction and retry loop."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.infra.error_handler import (
    ApplicationError,
    AuthError,
    ErrorCategory,
    TransportError,
    redact,
    retry_on_network_error,
)


class TestTaxonomy:
    @pytest.mark.parametrize("kind,retryable", [
        (TransportError.OFFLINE, True),
        (TransportError.TIMEOUT, True),
        (TransportError.HTTP_STATUS, False),
        (TransportError.PROTOCOL, False),
    ])
    def test_only_offline_and_timeout_are_retryable(self, kind, retryable):
        assert TransportError("x", kind=kind).retryable is retryable

    def test_categories(self):
        assert AuthError("x").category == ErrorCategory.AUTH_ERROR
        assert ApplicationError("x").retryable is False

    def test_redact(self):
        values = {"tenant_id": "t", "shared_secret": "abc", "nested": {"signature": "ff", "sql": "SELECT 1"}}
        assert redact(values) == {
            "tenant_id": "t",
            "shared_secret": "***",
            "nested": {"signature": "***", "sql": "SELECT 1"},
        }


class TestRetryOnNetworkError:
    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        func = AsyncMock(return_value="ok")
        assert await retry_on_network_error(func, max_retries=2) == "ok"
        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_exhausts_retries(self):
        func = AsyncMock(side_effect=TransportError("down", kind=TransportError.OFFLINE))
        on_retry = MagicMock()

        with pytest.raises(TransportError):
            await retry_on_network_error(func, max_retries=2, on_retry=on_retry)

        assert func.await_count == 3
        assert [call[0][1] for call in on_retry.call_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_non_retryable_raises_immediately(self):
        func = AsyncMock(side_effect=AuthError("bad signature"))

        with pytest.raises(AuthError):
            await retry_on_network_error(func, max_retries=5)

        assert func.await_count == 1

    @pytest.mark.asyncio
    async def test_fixed_delay_between_attempts(self):
        func = AsyncMock(side_effect=[TransportError("slow", kind=TransportError.TIMEOUT), "ok"])

        with patch("app.infra.error_handler.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await retry_on_network_error(func, max_retries=1, delay=0.2) == "ok"

        sleep.assert_awaited_once_with(0.2)
