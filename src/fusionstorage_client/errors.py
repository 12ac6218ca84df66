"""Translate CLI result codes into human-readable error records."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from importlib import resources
from pathlib import Path

from .exceptions import CliError

FALLBACK_MESSAGE = "CLI execute error"
_DATA_PACKAGE = "fusionstorage_client.data"
_DATA_FILE = "cli_error_codes.json"


@dataclass(frozen=True, slots=True)
class ErrorRecord:
    """A backend result code paired with its message."""

    code: str
    message: str


def load_default_table() -> dict[str, str]:
    """Load the code table shipped with the package."""

    raw = resources.files(_DATA_PACKAGE).joinpath(_DATA_FILE).read_text(encoding="utf-8")
    return _coerce_table(json.loads(raw))


class ErrorTranslator:
    """Map CLI result codes to messages using a declarative table.

    The table is plain data. Additional codes can be supplied through the
    constructor, merged later via `extend`, or read from a JSON file with
    `from_file`; entries supplied by the caller override the packaged ones.
    """

    def __init__(self, table: Mapping[str, str] | None = None, *, include_defaults: bool = True) -> None:
        self._table: dict[str, str] = load_default_table() if include_defaults else {}
        if table:
            self._table.update(_coerce_table(table))

    @classmethod
    def from_file(cls, path: str | Path, *, include_defaults: bool = True) -> ErrorTranslator:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls(_coerce_table(data), include_defaults=include_defaults)

    def extend(self, table: Mapping[str, str]) -> None:
        self._table.update(_coerce_table(table))

    def translate(self, code: str) -> ErrorRecord:
        message = self._table.get(code, FALLBACK_MESSAGE)
        return ErrorRecord(code=code, message=message)

    def to_error(self, code: str, **kwargs) -> CliError:
        record = self.translate(code)
        return CliError(record.message, record.code, **kwargs)

    def __contains__(self, code: object) -> bool:
        return code in self._table

    def __len__(self) -> int:
        return len(self._table)


def _coerce_table(data: object) -> dict[str, str]:
    if not isinstance(data, Mapping):
        raise ValueError("Error code table must be a mapping of code to message.")
    return {str(code): str(message) for code, message in data.items()}


__all__ = ["ErrorRecord", "ErrorTranslator", "FALLBACK_MESSAGE", "load_default_table"]
