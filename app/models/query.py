"""Query catalog and adapted-result models."""

import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional

# Named placeholders (:login) outside string literals; "::" casts are not placeholders
_STRING_LITERAL = re.compile(r"'(?:[^'\\]|\\.|'')*'")
_PLACEHOLDER = re.compile(r"(?<![:\w]):([A-Za-z_][A-Za-z0-9_]*)")


def placeholders(sql: str) -> List[str]:
    """Named placeholders referenced by ``sql``, in order of first use."""
    names: List[str] = []
    for name in _PLACEHOLDER.findall(_STRING_LITERAL.sub("''", sql)):
        if name not in names:
            names.append(name)
    return names


@dataclass(frozen=True)
class BoundQuery:
    """A parameterized statement plus its bound values.

    Caller-supplied values travel in ``params`` and are bound by the agent;
    a placeholder without a value is rejected at construction.
    """
    sql: str
    params: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.sql, str) or not self.sql.strip():
            raise ValueError("BoundQuery requires a non-empty SQL statement")
        if not isinstance(self.params, Mapping):
            raise TypeError(
                f"BoundQuery params must be a mapping of named values, got {type(self.params).__name__}"
            )
        missing = [name for name in placeholders(self.sql) if name not in self.params]
        if missing:
            raise ValueError(f"Unbound query placeholders: {', '.join(missing)}")
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    def params_dict(self) -> Dict[str, Any]:
        return dict(self.params)


@dataclass(frozen=True)
class QueryDefinition:
    """A named template: a pure builder and an optional pure row transform."""
    name: str
    build: Callable[..., BoundQuery]
    transform: Optional[Callable[[List[Dict[str, Any]]], Any]] = None


@dataclass(frozen=True)
class ResolvedQuery:
    """The output of a catalog lookup, ready for the transport."""
    name: str
    sql: str
    params: Dict[str, Any]
    transform: Optional[Callable[[List[Dict[str, Any]]], Any]] = None


@dataclass(frozen=True)
class InsertOutcome:
    record: Optional[Dict[str, Any]]


@dataclass(frozen=True)
class UpdateOutcome:
    record: Optional[Dict[str, Any]]  # None when no row was affected


@dataclass(frozen=True)
class DeleteOutcome:
    deleted: bool
    count: int


@dataclass(frozen=True)
class PagedResult:
    items: List[Dict[str, Any]]
    total: int
    page: int
    limit: int
    pages: int
