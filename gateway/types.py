from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


# =====================
# Adapter output
# =====================


@dataclass(frozen=True)
class RawResult:
    """What an engine adapter hands back: dict rows plus cursor-described columns."""

    rows: List[Dict[str, Any]] = field(default_factory=list)
    columns: List[str] = field(default_factory=list)


# =====================
# Public contract
# =====================


@dataclass(frozen=True)
class QueryResult:
    """
    Uniform result for every engine.
    Adapters (HTTP/CLI) should serialize this with to_payload() at the boundary.
    """

    rows: List[Dict[str, Any]]
    columns: Optional[List[str]]

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"rows": self.rows}
        if self.columns is not None:
            payload["columns"] = self.columns
        return payload


@dataclass(frozen=True)
class ColumnDescriptor:
    name: str
    type: str
    nullable: bool

    def to_payload(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type, "nullable": self.nullable}


@dataclass(frozen=True)
class FilterRule:
    field: str
    op: str
    value: Optional[Any] = None
    value2: Optional[Any] = None
