"""Registry of named query definitions.

Definitions are registered at import time and the process-wide catalog is
frozen afterwards; lookups never touch transport.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from app.infra.error_handler import QueryNotFound
from app.models.query import BoundQuery, QueryDefinition, ResolvedQuery

logger = logging.getLogger(__name__)

Transform = Callable[[List[Dict[str, Any]]], Any]


class QueryCatalog:
    """Append-only mapping of query name to QueryDefinition."""

    def __init__(self):
        self._definitions: Dict[str, QueryDefinition] = {}
        self._frozen = False

    def register(
        self,
        name: str,
        build: Optional[Callable[..., BoundQuery]] = None,
        transform: Optional[Transform] = None,
    ):
        """
        Register a definition. Usable directly or as a decorator::

            @catalog.register("client_by_login")
            def client_by_login(login): ...

        Raises:
            ValueError: If the name is already registered
            RuntimeError: If the catalog is frozen
        """
        if build is None:
            def decorator(func: Callable[..., BoundQuery]) -> Callable[..., BoundQuery]:
                self.register(name, func, transform)
                return func
            return decorator

        if self._frozen:
            raise RuntimeError(f"Query catalog is frozen; cannot register '{name}'")
        if name in self._definitions:
            raise ValueError(f"Query '{name}' is already registered")

        self._definitions[name] = QueryDefinition(name=name, build=build, transform=transform)
        return build

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> QueryDefinition:
        definition = self._definitions.get(name)
        if definition is None:
            raise QueryNotFound(name)
        return definition

    def resolve(self, name: str, *args: Any, **kwargs: Any) -> ResolvedQuery:
        """
        Build the statement for ``name`` with the given arguments.

        Raises:
            QueryNotFound: If no definition is registered under ``name``
            TypeError: If the builder does not return a BoundQuery
        """
        definition = self.get(name)
        bound = definition.build(*args, **kwargs)
        if not isinstance(bound, BoundQuery):
            raise TypeError(
                f"Query '{name}' must build a BoundQuery, got {type(bound).__name__}"
            )
        return ResolvedQuery(
            name=name,
            sql=bound.sql,
            params=bound.params_dict(),
            transform=definition.transform,
        )

    def names(self) -> List[str]:
        return sorted(self._definitions)

    def __contains__(self, name: str) -> bool:
        return name in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)


query_catalog = QueryCatalog()
