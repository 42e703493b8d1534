"""Dashboard aggregate queries. Each returns a single row of counters."""

from app.models.query import BoundQuery
from app.services.query_catalog import query_catalog


@query_catalog.register("dashboard_client_stats")
def dashboard_client_stats() -> BoundQuery:
    return BoundQuery(
        sql="""SELECT
                 COUNT(*) AS total,
                 SUM(CASE WHEN bloqueado = 's' OR bloqueado = 'sim' THEN 1 ELSE 0 END) AS bloqueados,
                 SUM(CASE WHEN observacao = 's' OR observacao = 'sim' THEN 1 ELSE 0 END) AS observacao,
                 SUM(CASE WHEN cadastro LIKE CONCAT('%/', DATE_FORMAT(CURDATE(), '%m/%Y')) THEN 1 ELSE 0 END) AS recentes,
                 (SELECT COUNT(*) FROM vtab_conectados) AS online
               FROM sis_cliente
               WHERE cli_ativado = 's'"""
    )


@query_catalog.register("dashboard_invoice_stats")
def dashboard_invoice_stats() -> BoundQuery:
    return BoundQuery(
        sql="""SELECT
                 SUM(CASE WHEN l.status IN ('aberto','vencido') AND l.datavenc >= CURDATE() AND l.datadel IS NULL THEN 1 ELSE 0 END) AS pending,
                 SUM(CASE WHEN l.status IN ('aberto','vencido') AND l.datavenc < CURDATE() AND l.datadel IS NULL THEN 1 ELSE 0 END) AS overdue,
                 (SELECT SUM(tit_abertos) FROM sis_cliente WHERE cli_ativado = 's') AS tit_abertos,
                 (SELECT SUM(tit_vencidos) FROM sis_cliente WHERE cli_ativado = 's') AS tit_vencidos
               FROM sis_lanc l
               WHERE l.login IN (SELECT login FROM sis_cliente WHERE cli_ativado = 's')"""
    )


@query_catalog.register("dashboard_request_stats")
def dashboard_request_stats() -> BoundQuery:
    return BoundQuery(
        sql="""SELECT
                 COUNT(*) AS total,
                 SUM(CASE WHEN prioridade = 'urgente' THEN 1 ELSE 0 END) AS urgente,
                 SUM(CASE WHEN prioridade = 'alta' THEN 1 ELSE 0 END) AS alta,
                 SUM(CASE WHEN prioridade = 'normal' THEN 1 ELSE 0 END) AS normal,
                 SUM(CASE WHEN prioridade = 'baixa' THEN 1 ELSE 0 END) AS baixa,
                 SUM(CASE WHEN DATE(visita) = CURDATE() THEN 1 ELSE 0 END) AS today,
                 SUM(CASE WHEN visita < CURDATE() AND status = 'aberto' THEN 1 ELSE 0 END) AS overdue,
                 SUM(CASE WHEN status NOT IN ('aberto','fechado','Fechado','FECHADO') THEN 1 ELSE 0 END) AS ongoing,
                 SUM(CASE WHEN status IN ('fechado','Fechado','FECHADO') THEN 1 ELSE 0 END) AS completed
               FROM sis_suporte"""
    )


@query_catalog.register("general_stats")
def general_stats() -> BoundQuery:
    return BoundQuery(
        sql="""SELECT
                 (SELECT COUNT(*) FROM sis_cliente WHERE cli_ativado = 's') AS total_ativos,
                 (SELECT COUNT(*) FROM sis_cliente WHERE bloqueado = 'sim') AS total_bloqueados,
                 (SELECT COUNT(*) FROM sis_lanc WHERE datadel IS NULL AND status = 'aberto') AS titulos_abertos,
                 (SELECT COUNT(*) FROM sis_lanc WHERE datadel IS NULL AND status IN ('aberto', 'vencido') AND datavenc < CURDATE()) AS titulos_vencidos"""
    )
