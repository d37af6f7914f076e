from __future__ import annotations

from dataclasses import dataclass
from typing import Any

CONTACT_ID_COLUMN = "ContactID"
FIRST_NAME_COLUMN = "FirstName"
ACCOUNT_ID_COLUMN = "AccountID"


def _cell_text(v: Any) -> str | None:
    if v is None:
        return None
    s = str(v).strip()
    return s if s != "" else None


def _dig(payload: Any, *keys: str) -> dict[str, Any]:
    node = payload
    for key in keys:
        node = node.get(key) if isinstance(node, dict) else None
    return node if isinstance(node, dict) else {}


@dataclass(frozen=True)
class ContactProfile:
    contact_id: str
    first_name: str | None
    account_id: str | None


class ReportTable:
    """
    Column-ordered Zoho export: {"response": {"result": {"column_order": [...], "rows": [[...], ...]}}}.
    """

    def __init__(self, payload: dict[str, Any] | None):
        result = _dig(payload, "response", "result")
        self.columns: list[str] = [str(c) for c in (result.get("column_order") or [])]
        self.rows: list[list[Any]] = [r for r in (result.get("rows") or []) if isinstance(r, list)]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column_index(self, name: str) -> int | None:
        try:
            return self.columns.index(name)
        except ValueError:
            return None

    def find_row(self, column: str, value: str) -> dict[str, Any] | None:
        idx = self.column_index(column)
        if idx is None:
            return None
        for row in self.rows:
            if idx < len(row) and _cell_text(row[idx]) == value:
                return dict(zip(self.columns, row))
        return None

    def contact_profile(self, contact_id: str) -> ContactProfile | None:
        for col in (CONTACT_ID_COLUMN, FIRST_NAME_COLUMN, ACCOUNT_ID_COLUMN):
            if self.column_index(col) is None:
                return None
        row = self.find_row(CONTACT_ID_COLUMN, contact_id)
        if row is None:
            return None
        return ContactProfile(
            contact_id=contact_id,
            first_name=_cell_text(row.get(FIRST_NAME_COLUMN)),
            account_id=_cell_text(row.get(ACCOUNT_ID_COLUMN)),
        )
