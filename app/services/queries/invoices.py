"""Invoice (sis_lanc) queries."""

from app.models.query import BoundQuery
from app.services.query_catalog import query_catalog

INVOICE_COLUMNS = """id, uuid_lanc, datavenc, datapag, datadel, valor, status,
       login, tipo, obs, linhadig, coletor, formapag, valorpag"""


@query_catalog.register("open_invoices")
def open_invoices(login: str) -> BoundQuery:
    return BoundQuery(
        sql=f"""SELECT {INVOICE_COLUMNS}
                FROM sis_lanc
                WHERE login = :login
                  AND datadel IS NULL
                  AND status IN ('aberto', 'vencido')
                ORDER BY datavenc ASC""",
        params={"login": login or ""},
    )


@query_catalog.register("overdue_invoices")
def overdue_invoices(login: str) -> BoundQuery:
    return BoundQuery(
        sql=f"""SELECT {INVOICE_COLUMNS}
                FROM sis_lanc
                WHERE login = :login
                  AND datadel IS NULL
                  AND status IN ('aberto', 'vencido')
                  AND datavenc < CURDATE()
                ORDER BY datavenc ASC""",
        params={"login": login or ""},
    )


@query_catalog.register("paid_invoices")
def paid_invoices(login: str) -> BoundQuery:
    return BoundQuery(
        sql=f"""SELECT {INVOICE_COLUMNS}
                FROM sis_lanc
                WHERE login = :login
                  AND datadel IS NULL
                  AND status = 'pago'
                ORDER BY datapag DESC""",
        params={"login": login or ""},
    )


@query_catalog.register("invoice_by_id")
def invoice_by_id(invoice_id) -> BoundQuery:
    return BoundQuery(
        sql=f"SELECT {INVOICE_COLUMNS} FROM sis_lanc WHERE id = :id LIMIT 1",
        params={"id": int(invoice_id)},
    )


@query_catalog.register("invoices_page")
def invoices_page(login: str, page: int = 1, limit: int = 50) -> BoundQuery:
    page = max(int(page), 1)
    limit = max(1, min(int(limit), 100))
    return BoundQuery(
        sql=f"""SELECT {INVOICE_COLUMNS}
                FROM sis_lanc
                WHERE login = :login
                  AND datadel IS NULL
                ORDER BY datavenc DESC
                LIMIT :limit OFFSET :offset""",
        params={"login": login or "", "limit": limit, "offset": (page - 1) * limit},
    )


@query_catalog.register("pix_qrcode")
def pix_qrcode(invoice_uuid: str) -> BoundQuery:
    return BoundQuery(
        sql="SELECT titulo, qrcode FROM sis_qrpix WHERE titulo = :uuid LIMIT 1",
        params={"uuid": invoice_uuid or ""},
    )
