"""Service plan (sis_plano) queries."""

from app.models.query import BoundQuery
from app.services.query_catalog import query_catalog


@query_catalog.register("plan_by_id")
def plan_by_id(plan_id) -> BoundQuery:
    return BoundQuery(
        sql="SELECT * FROM sis_plano WHERE id_plano = :plan_id LIMIT 1",
        params={"plan_id": plan_id},
    )


@query_catalog.register("active_plans")
def active_plans() -> BoundQuery:
    return BoundQuery(sql="SELECT * FROM sis_plano WHERE ativo = 's' ORDER BY valor ASC")
