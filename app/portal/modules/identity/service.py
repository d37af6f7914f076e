from __future__ import annotations

import logging
from collections.abc import Mapping

from app.portal.modules.identity.models import ResolvedIdentity, present
from app.portal.modules.identity.sources import SourceReadings
from app.portal.modules.identity.store import IdentityStore
from app.portal.registry import AppDescriptor, IdentifierKind

logger = logging.getLogger(__name__)


def legacy_kind_for(current_app: AppDescriptor, override: IdentifierKind | None = None) -> IdentifierKind:
    """
    Kind assigned to the legacy generic `?id=` parameter.

    Bookmarked links carried whatever the linking app put in its path, so the current app's
    own path kind is the best reading; apps with no path identifier default to contact.
    """
    if override is not None:
        return override
    return current_app.expected_kind or IdentifierKind.CONTACT


def resolve_identity(
    current_app: AppDescriptor,
    readings: SourceReadings,
    store: IdentityStore,
    *,
    seeds: Mapping[IdentifierKind, str | None] | None = None,
    legacy_id_kind: IdentifierKind | None = None,
) -> ResolvedIdentity:
    """
    Resolve the authoritative (contact id, account id) pair for `current_app`.

    Precedence per kind: the path segment (only for the kind the current app carries in its
    path), then the query backpack, then the persisted value, then `seeds` (best-effort values
    from the report lookup; a seed equal to the other kind's value is ignored). A contact id equal to the account id is a misfiled value: the
    contact id is dropped and its persisted entry cleared. Every surviving value is written
    back to `store`.

    Never raises on bad input; an all-absent identity is a valid result.
    """
    values: dict[IdentifierKind, str | None] = {kind: None for kind in IdentifierKind}
    origin: dict[IdentifierKind, str] = {}

    path_kind = current_app.expected_kind
    if path_kind is not None and readings.path_candidate is not None:
        values[path_kind] = readings.path_candidate
        origin[path_kind] = "path"

    legacy_kind = legacy_kind_for(current_app, legacy_id_kind)
    for kind in IdentifierKind:
        if values[kind] is not None:
            continue
        value = readings.query.for_kind(kind)
        if value is None and kind is legacy_kind:
            value = readings.query.generic_id
        if value is not None:
            values[kind] = value
            origin[kind] = "query"

    for kind in IdentifierKind:
        if values[kind] is None and readings.stored.for_kind(kind) is not None:
            values[kind] = readings.stored.for_kind(kind)
            origin[kind] = "stored"

    for kind, seed in (seeds or {}).items():
        seed = present(seed)
        if values[kind] is not None or seed is None:
            continue
        other = next(k for k in IdentifierKind if k is not kind)
        # A seed may only fill a gap; it never displaces a value resolved from the request or store.
        if seed == values[other]:
            logger.warning(
                "Ignoring %s seed on app=%s: it equals the %s id resolved from %s",
                kind.value,
                current_app.key,
                other.value,
                origin.get(other),
            )
            continue
        values[kind] = seed
        origin[kind] = "seed"

    contact_id = values[IdentifierKind.CONTACT]
    account_id = values[IdentifierKind.ACCOUNT]
    poisoned = contact_id is not None and contact_id == account_id
    if poisoned:
        logger.warning(
            "Poisoned identifier on app=%s: contact id equals account id (contact from %s, account from %s); "
            "discarding contact id",
            current_app.key,
            origin.get(IdentifierKind.CONTACT),
            origin.get(IdentifierKind.ACCOUNT),
        )
        contact_id = None

    _persist(store, current_app, contact_id=contact_id, account_id=account_id, clear_contact=poisoned)
    return ResolvedIdentity(contact_id=contact_id, account_id=account_id)


def _persist(
    store: IdentityStore,
    current_app: AppDescriptor,
    *,
    contact_id: str | None,
    account_id: str | None,
    clear_contact: bool,
) -> None:
    try:
        if clear_contact:
            store.clear(IdentifierKind.CONTACT)
        if contact_id is not None:
            store.set(IdentifierKind.CONTACT, contact_id)
        if account_id is not None:
            store.set(IdentifierKind.ACCOUNT, account_id)
    except Exception as e:
        # Links are built from the resolved pair, not from the store.
        logger.warning("Could not persist identity on app=%s: %s", current_app.key, e)
