from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from app.portal.modules.identity.links import link_to
from app.portal.modules.identity.models import ResolvedIdentity
from app.portal.registry import AppDescriptor


@dataclass(frozen=True)
class NavLink:
    key: str
    name: str
    href: str
    icon: str
    description: str = ""
    is_current: bool = False
    is_home: bool = False


def _nav_link(app: AppDescriptor, identity: ResolvedIdentity, current_key: str | None) -> NavLink:
    return NavLink(
        key=app.key,
        name=app.name or app.key,
        href=link_to(app, identity),
        icon=app.icon,
        description=app.description,
        is_current=app.key == current_key,
        is_home=app.is_home,
    )


def build_navigation(
    apps: Iterable[AppDescriptor],
    identity: ResolvedIdentity,
    current_key: str | None = None,
) -> list[NavLink]:
    """One menu entry per satellite app, in catalog order."""
    return [_nav_link(app, identity, current_key) for app in apps]


def app_tiles(apps: Iterable[AppDescriptor], identity: ResolvedIdentity) -> list[NavLink]:
    """Home page grid: apps flagged show_on_home."""
    return [_nav_link(app, identity, None) for app in apps if app.show_on_home]


def home_link(nav_links: list[NavLink]) -> NavLink | None:
    """The catalog's home app, or the first entry when none is flagged."""
    return next((link for link in nav_links if link.is_home), nav_links[0] if nav_links else None)
