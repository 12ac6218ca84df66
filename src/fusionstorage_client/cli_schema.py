"""Schema describing important fields for CLI table rendering."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

Row = Mapping[str, Any]
ValueFormatter = Callable[[Any], str]
SortKey = Callable[[Row], Any]


@dataclass(frozen=True)
class Column:
    """Describe how to pull and format a column for Rich tables."""

    header: str
    keys: tuple[str, ...] = ()
    formatter: ValueFormatter | None = None
    justify: str = "left"

    def render(self, row: Row) -> str:
        value: Any | None = None
        for key in self.keys:
            value = row.get(key)
            if value is not None:
                break
        if value is None:
            return ""
        if self.formatter:
            return self.formatter(value)
        return str(value)


@dataclass(frozen=True)
class TableView:
    """Describe a Rich table for a CLI command."""

    title: str
    columns: tuple[Column, ...]
    sort_key: SortKey | None = None


def _coerce_number(value: Any) -> float | None:
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _mb_to_gib(value: Any) -> str:
    # Pool capacities are reported in MB.
    number = _coerce_number(value)
    if number is None:
        return ""
    return f"{number / 1024:.2f}"


def _percent_used(row: Row) -> Any:
    total = _coerce_number(row.get("totalCapacity"))
    used = _coerce_number(row.get("usedCapacity"))
    if not total or used is None:
        return None
    return f"{used / total * 100:.1f}"


@dataclass(frozen=True)
class DerivedColumn(Column):
    """Column whose value is computed from the whole row."""

    extractor: Callable[[Row], Any] | None = None

    def render(self, row: Row) -> str:
        if self.extractor is None:
            return super().render(row)
        value = self.extractor(row)
        return "" if value is None else str(value)


CLI_TABLE_VIEWS: dict[str, TableView] = {
    "pools.list": TableView(
        title="Storage Pools",
        columns=(
            Column("Pool ID", ("poolId",), justify="right"),
            Column("Total (GiB)", ("totalCapacity",), formatter=_mb_to_gib, justify="right"),
            Column("Used (GiB)", ("usedCapacity",), formatter=_mb_to_gib, justify="right"),
            Column(
                "Allocated (GiB)",
                ("allocatedCapacity",),
                formatter=_mb_to_gib,
                justify="right",
            ),
            DerivedColumn("Used %", extractor=_percent_used, justify="right"),
        ),
        sort_key=lambda row: str(row.get("poolId", "")),
    ),
    "hosts.list": TableView(
        title="Hosts",
        columns=(
            Column("Host", ("hostName",)),
            Column("IP Address", ("ipAddress",)),
        ),
        sort_key=lambda row: str(row.get("hostName", "")),
    ),
}

__all__ = ["CLI_TABLE_VIEWS", "Column", "DerivedColumn", "TableView"]
