"""
Static catalog of the fleet's satellite apps.

Each descriptor says where an app lives (one base URL per environment) and which identifier
kind it expects as its path segment. Nothing else in the portal knows about concrete apps:
adding a satellite means adding one entry to DEFAULT_CATALOG.
"""
from __future__ import annotations

import enum
import os
import urllib.parse
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace

ENVIRONMENTS = ("development", "production")


class RegistryError(RuntimeError):
    pass


class IdentifierKind(str, enum.Enum):
    CONTACT = "contact"
    ACCOUNT = "account"

    @property
    def query_key(self) -> str:
        return "contactId" if self is IdentifierKind.CONTACT else "accountId"


@dataclass(frozen=True)
class AppDescriptor:
    key: str
    base_url: str
    expected_kind: IdentifierKind | None
    name: str = ""
    description: str = ""
    icon: str = ""
    show_on_home: bool = True
    is_home: bool = False


@dataclass(frozen=True)
class CatalogEntry:
    key: str
    name: str
    expected_kind: IdentifierKind | None
    dev_url: str
    prod_url: str
    description: str = ""
    icon: str = ""
    show_on_home: bool = True
    is_home: bool = False


DEFAULT_CATALOG: tuple[CatalogEntry, ...] = (
    CatalogEntry(
        key="portal",
        name="Fleet Portal",
        expected_kind=IdentifierKind.CONTACT,
        dev_url="http://localhost:3000",
        prod_url="https://your-portal-url.com",
        description="One dashboard to access all your fleet utilities.",
        icon="home",
        show_on_home=False,
        is_home=True,
    ),
    CatalogEntry(
        key="vessel",
        name="Vessel Activity",
        expected_kind=IdentifierKind.ACCOUNT,
        dev_url="http://localhost:3001",
        prod_url="https://v0-cruising-fleet-member-activity.vercel.app",
        description="View past and future cruises you have signed up for.",
        icon="ship",
    ),
    CatalogEntry(
        key="member",
        name="Member Activity",
        expected_kind=IdentifierKind.CONTACT,
        dev_url="http://localhost:3002",
        prod_url="https://cruisingfleet.vercel.app",
        description="View past and future events you have participated in.",
        icon="users",
    ),
    CatalogEntry(
        key="vendors",
        name="Vendor Directory",
        expected_kind=None,
        dev_url="http://localhost:3003",
        prod_url="https://fleet-vendors.vercel.app",
        description="View a list of peer-recommended marine service providers.",
        icon="book-open",
    ),
    CatalogEntry(
        key="downloads",
        name="Downloads",
        expected_kind=None,
        dev_url="http://localhost:3004",
        prod_url="https://fleet-downloads.vercel.app",
        description="Access forms, presentations, and other useful files.",
        icon="download",
    ),
)


def normalize_base_url(raw: str, *, app_key: str = "?") -> str:
    url = (raw or "").strip().rstrip("/")
    parts = urllib.parse.urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise RegistryError(f"Base URL for app {app_key!r} must be an absolute http(s) URL, got {raw!r}")
    if parts.query or parts.fragment:
        raise RegistryError(f"Base URL for app {app_key!r} must not carry a query or fragment: {raw!r}")
    return url


class AppRegistry:
    """Read-only lookup over the catalog, keyed by app key."""

    def __init__(self, entries: tuple[CatalogEntry, ...] | list[CatalogEntry]):
        by_key: dict[str, dict[str, AppDescriptor]] = {}
        for entry in entries:
            if entry.key in by_key:
                raise RegistryError(f"Duplicate app key in catalog: {entry.key}")
            by_key[entry.key] = {
                env: AppDescriptor(
                    key=entry.key,
                    base_url=normalize_base_url(url, app_key=entry.key),
                    expected_kind=entry.expected_kind,
                    name=entry.name,
                    description=entry.description,
                    icon=entry.icon,
                    show_on_home=entry.show_on_home,
                    is_home=entry.is_home,
                )
                for env, url in (("development", entry.dev_url), ("production", entry.prod_url))
            }
        homes = [e.key for e in entries if e.is_home]
        if len(homes) > 1:
            raise RegistryError(f"At most one home app may be flagged in the catalog, got {homes}")
        self._by_key = by_key
        self._order = tuple(e.key for e in entries)

    def __contains__(self, app_key: object) -> bool:
        return app_key in self._by_key

    def __iter__(self) -> Iterator[str]:
        return iter(self._order)

    def __len__(self) -> int:
        return len(self._order)

    def _check_env(self, environment: str) -> str:
        if environment not in ENVIRONMENTS:
            raise RegistryError(f"Unknown environment {environment!r}; expected one of {ENVIRONMENTS}")
        return environment

    def get(self, app_key: str, environment: str) -> AppDescriptor:
        return self._by_key[app_key][self._check_env(environment)]

    def base_url_for(self, app_key: str, environment: str) -> str:
        return self.get(app_key, environment).base_url

    def expected_kind_for(self, app_key: str) -> IdentifierKind | None:
        return self._by_key[app_key]["development"].expected_kind

    def for_environment(self, environment: str) -> list[AppDescriptor]:
        env = self._check_env(environment)
        return [self._by_key[k][env] for k in self._order]


def catalog_from_env(
    environ: Mapping[str, str] | None = None,
    catalog: tuple[CatalogEntry, ...] = DEFAULT_CATALOG,
) -> list[CatalogEntry]:
    """
    Apply FLEET_<KEY>_URL_DEV / FLEET_<KEY>_URL_PROD overrides to the catalog.
    """
    env = os.environ if environ is None else environ
    out: list[CatalogEntry] = []
    for entry in catalog:
        prefix = f"FLEET_{entry.key.upper()}_URL"
        dev = (env.get(f"{prefix}_DEV") or "").strip() or entry.dev_url
        prod = (env.get(f"{prefix}_PROD") or "").strip() or entry.prod_url
        out.append(replace(entry, dev_url=dev, prod_url=prod))
    return out


def registry_from_env(environ: Mapping[str, str] | None = None) -> AppRegistry:
    return AppRegistry(catalog_from_env(environ))
