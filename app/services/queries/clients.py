"""Client (sis_cliente) queries."""

from datetime import date
from typing import Optional

from app.models.query import BoundQuery
from app.services.query_catalog import query_catalog

CLIENT_COLUMNS = """id, login, nome, cpf_cnpj, senha, plano, tipo,
       cli_ativado, bloqueado, observacao, rem_obs,
       ip, mac, automac, equipamento, ssid,
       endereco_res, numero_res, bairro_res, complemento_res, cep_res, cidade_res,
       fone, celular, ramal, email,
       coordenadas, caixa_herm, porta_olt, porta_splitter,
       status_corte, cadastro, data_ins,
       tit_abertos, tit_vencidos"""
# vencimento and dia_bloq are left out: some agent versions fail with HTTP 500 on them

MAX_SEARCH_LIMIT = 500


@query_catalog.register("client_by_login")
def client_by_login(login: str) -> BoundQuery:
    return BoundQuery(
        sql=f"SELECT {CLIENT_COLUMNS} FROM sis_cliente WHERE login = :login LIMIT 1",
        params={"login": login or ""},
    )


@query_catalog.register("client_by_id")
def client_by_id(client_id) -> BoundQuery:
    return BoundQuery(
        sql=f"SELECT {CLIENT_COLUMNS} FROM sis_cliente WHERE id = :id LIMIT 1",
        params={"id": int(client_id)},
    )


@query_catalog.register("client_by_document")
def client_by_document(document: str) -> BoundQuery:
    digits = "".join(ch for ch in (document or "") if ch.isdigit())
    return BoundQuery(
        sql=f"""SELECT {CLIENT_COLUMNS} FROM sis_cliente
                WHERE REPLACE(REPLACE(REPLACE(cpf_cnpj, '.', ''), '-', ''), '/', '') = :document
                LIMIT 1""",
        params={"document": digits},
    )


@query_catalog.register("search_clients")
def search_clients(term: str, limit: int = 100) -> BoundQuery:
    """Match term against name, login, document, address, phones and email."""
    return BoundQuery(
        sql="""SELECT id, login, nome, cpf_cnpj, coordenadas,
                      endereco_res, numero_res, bairro_res,
                      fone, celular, email, plano, tipo,
                      bloqueado, cli_ativado, observacao, caixa_herm, ssid
               FROM sis_cliente
               WHERE nome LIKE :term
                  OR login LIKE :term
                  OR cpf_cnpj LIKE :term
                  OR endereco_res LIKE :term
                  OR fone LIKE :term
                  OR celular LIKE :term
                  OR email LIKE :term
               LIMIT :limit""",
        params={"term": f"%{term or ''}%", "limit": max(1, min(int(limit), MAX_SEARCH_LIMIT))},
    )


@query_catalog.register("clients_by_box")
def clients_by_box(box_id: str) -> BoundQuery:
    return BoundQuery(
        sql="""SELECT id, login, nome, coordenadas, cpf_cnpj, celular, fone,
                      endereco_res, numero_res, bairro_res, plano, bloqueado, cli_ativado
               FROM sis_cliente
               WHERE caixa_herm = :box_id
               ORDER BY nome ASC
               LIMIT 500""",
        params={"box_id": box_id or ""},
    )


@query_catalog.register("clients_registered_in_month")
def clients_registered_in_month(year: Optional[int] = None, month: Optional[int] = None) -> BoundQuery:
    """Active clients registered in a month; defaults to the current month.

    ``cadastro`` is stored as dd/mm/yyyy text.
    """
    if year is None or month is None:
        today = date.today()
        year, month = today.year, today.month
    return BoundQuery(
        sql="""SELECT COUNT(*) AS total
               FROM sis_cliente
               WHERE cli_ativado = 's'
                 AND cadastro LIKE :pattern""",
        params={"pattern": f"%/{int(month):02d}/{int(year)}%"},
    )


@query_catalog.register("online_logins")
def online_logins() -> BoundQuery:
    return BoundQuery(sql="SELECT login FROM vtab_conectados")


@query_catalog.register("online_clients")
def online_clients() -> BoundQuery:
    return BoundQuery(
        sql="""SELECT v.login, v.nome, c.celular, c.fone, c.email, c.plano
               FROM vtab_conectados v
               LEFT JOIN sis_cliente c ON v.login = c.login
               ORDER BY v.nome ASC
               LIMIT 5000"""
    )


@query_catalog.register("client_online")
def client_online(login: str) -> BoundQuery:
    return BoundQuery(
        sql="SELECT * FROM vtab_conectados WHERE login = :login LIMIT 1",
        params={"login": login or ""},
    )
