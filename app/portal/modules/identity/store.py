from __future__ import annotations

from collections.abc import MutableMapping
from typing import Any

from app.portal.modules.identity.models import present
from app.portal.registry import IdentifierKind

SESSION_KEYS = {
    IdentifierKind.CONTACT: "fleet_contact_id",
    IdentifierKind.ACCOUNT: "fleet_account_id",
}


class IdentityStore:
    """
    Browser-persisted identifiers: at most one value per kind, last write wins.

    The resolver is the only writer.
    """

    def get(self, kind: IdentifierKind) -> str | None:
        raise NotImplementedError

    def set(self, kind: IdentifierKind, value: str) -> None:
        raise NotImplementedError

    def clear(self, kind: IdentifierKind) -> None:
        raise NotImplementedError


def _checked(value: str) -> str:
    v = present(value)
    if v is None:
        raise ValueError("Identity store only accepts non-blank identifier strings")
    return v


class InMemoryIdentityStore(IdentityStore):
    def __init__(self, initial: dict[IdentifierKind, str] | None = None):
        self._values: dict[IdentifierKind, str] = {}
        for kind, value in (initial or {}).items():
            self.set(kind, value)

    def get(self, kind: IdentifierKind) -> str | None:
        return self._values.get(kind)

    def set(self, kind: IdentifierKind, value: str) -> None:
        self._values[kind] = _checked(value)

    def clear(self, kind: IdentifierKind) -> None:
        self._values.pop(kind, None)

    def snapshot(self) -> dict[IdentifierKind, str]:
        return dict(self._values)


class SessionIdentityStore(IdentityStore):
    """
    Identity kept in the signed Flask session cookie, scoped to the origin serving this app.
    """

    def __init__(self, session: MutableMapping[str, Any]):
        self._session = session

    def get(self, kind: IdentifierKind) -> str | None:
        return present(self._session.get(SESSION_KEYS[kind]))

    def set(self, kind: IdentifierKind, value: str) -> None:
        value = _checked(value)
        key = SESSION_KEYS[kind]
        # Only write on change.
        if self._session.get(key) != value:
            self._session[key] = value

    def clear(self, kind: IdentifierKind) -> None:
        self._session.pop(SESSION_KEYS[kind], None)
