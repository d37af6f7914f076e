from __future__ import annotations

import logging
import re
import urllib.parse
from collections.abc import Mapping
from dataclasses import dataclass

from app.portal.modules.identity.models import present
from app.portal.modules.identity.store import IdentityStore
from app.portal.registry import IdentifierKind

logger = logging.getLogger(__name__)

DEFAULT_IDENTIFIER_PATTERN = re.compile(r"\d{10,}")

# Accepted spellings, preferred first. Links are always written with the first one.
QUERY_KEYS = {
    IdentifierKind.CONTACT: ("contactId", "contactID"),
    IdentifierKind.ACCOUNT: ("accountId", "accountID"),
}
LEGACY_QUERY_KEY = "id"


@dataclass(frozen=True)
class QueryCandidates:
    contact_id: str | None = None
    account_id: str | None = None
    generic_id: str | None = None

    def for_kind(self, kind: IdentifierKind) -> str | None:
        return self.contact_id if kind is IdentifierKind.CONTACT else self.account_id


@dataclass(frozen=True)
class StoredValues:
    contact_id: str | None = None
    account_id: str | None = None

    def for_kind(self, kind: IdentifierKind) -> str | None:
        return self.contact_id if kind is IdentifierKind.CONTACT else self.account_id


@dataclass(frozen=True)
class SourceReadings:
    path_candidate: str | None = None
    query: QueryCandidates = QueryCandidates()
    stored: StoredValues = StoredValues()


def read_path_candidate(path: str | None, pattern: re.Pattern[str] = DEFAULT_IDENTIFIER_PATTERN) -> str | None:
    """First path segment that fully matches the identifier pattern."""
    for segment in (path or "").split("/"):
        value = present(urllib.parse.unquote(segment))
        if value is not None and pattern.fullmatch(value):
            return value
    return None


def _first_present(args: Mapping[str, str], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = present(args.get(key))
        if value is not None:
            return value
    return None


def read_query_candidates(args: Mapping[str, str] | None) -> QueryCandidates:
    args = args or {}
    return QueryCandidates(
        contact_id=_first_present(args, QUERY_KEYS[IdentifierKind.CONTACT]),
        account_id=_first_present(args, QUERY_KEYS[IdentifierKind.ACCOUNT]),
        generic_id=_first_present(args, (LEGACY_QUERY_KEY,)),
    )


def read_stored_values(store: IdentityStore) -> StoredValues:
    try:
        return StoredValues(
            contact_id=store.get(IdentifierKind.CONTACT),
            account_id=store.get(IdentifierKind.ACCOUNT),
        )
    except Exception as e:
        logger.warning("Identity store unreadable, treating as empty: %s", e)
        return StoredValues()


def read_sources(
    path: str | None,
    args: Mapping[str, str] | None,
    store: IdentityStore,
    pattern: re.Pattern[str] = DEFAULT_IDENTIFIER_PATTERN,
) -> SourceReadings:
    return SourceReadings(
        path_candidate=read_path_candidate(path, pattern),
        query=read_query_candidates(args),
        stored=read_stored_values(store),
    )
