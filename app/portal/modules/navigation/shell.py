from __future__ import annotations

from collections.abc import Mapping

from flask import Blueprint, current_app, g, request, session

from app.portal.modules.identity.models import EMPTY_IDENTITY, ResolvedIdentity
from app.portal.modules.identity.service import resolve_identity
from app.portal.modules.identity.sources import read_sources
from app.portal.modules.identity.store import SessionIdentityStore
from app.portal.modules.navigation.service import build_navigation, home_link
from app.portal.registry import AppDescriptor, AppRegistry, IdentifierKind

bp = Blueprint("navigation", __name__)

NON_PAGE_PREFIXES = ("/static/", "/health", "/healthz", "/api/")


def _registry() -> AppRegistry:
    return current_app.extensions["app_registry"]


def current_app_descriptor() -> AppDescriptor:
    return _registry().get(current_app.config["CURRENT_APP"], current_app.config["URL_ENVIRONMENT"])


def legacy_id_kind() -> IdentifierKind | None:
    raw = (current_app.config.get("LEGACY_ID_KIND") or "").strip().lower()
    return IdentifierKind(raw) if raw else None


def resolve_request_identity(*, seeds: Mapping[IdentifierKind, str | None] | None = None) -> ResolvedIdentity:
    """
    Resolve identity for the current request and remember it on g.identity.

    Safe to call more than once per request: the second call sees what the first persisted
    and only adds `seeds`.
    """
    store = SessionIdentityStore(session)
    readings = read_sources(request.path, request.args, store, current_app.extensions["identifier_pattern"])
    identity = resolve_identity(
        current_app_descriptor(),
        readings,
        store,
        seeds=seeds,
        legacy_id_kind=legacy_id_kind(),
    )
    if not identity.is_empty:
        session.permanent = True
    g.identity = identity
    return identity


@bp.before_app_request
def _resolve_identity_for_page():
    if request.path.startswith(NON_PAGE_PREFIXES):
        g.identity = EMPTY_IDENTITY
        return None
    resolve_request_identity()
    return None


@bp.app_context_processor
def _inject_navigation() -> dict:
    identity: ResolvedIdentity = getattr(g, "identity", None) or EMPTY_IDENTITY
    apps = _registry().for_environment(current_app.config["URL_ENVIRONMENT"])
    nav_links = build_navigation(apps, identity, current_app.config["CURRENT_APP"])
    return {"identity": identity, "nav_links": nav_links, "home_link": home_link(nav_links)}
