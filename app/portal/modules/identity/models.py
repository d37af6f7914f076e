from __future__ import annotations

from dataclasses import dataclass

from app.portal.registry import IdentifierKind


def present(value: object) -> str | None:
    """
    Normalize a raw candidate: a non-blank string is a value, everything else is absent.

    Only blank input is absent; "0" or "0000000000" are real identifiers.
    """
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value if value != "" else None


@dataclass(frozen=True)
class ResolvedIdentity:
    contact_id: str | None = None
    account_id: str | None = None

    def get(self, kind: IdentifierKind) -> str | None:
        return self.contact_id if kind is IdentifierKind.CONTACT else self.account_id

    @property
    def is_empty(self) -> bool:
        return self.contact_id is None and self.account_id is None


EMPTY_IDENTITY = ResolvedIdentity()
