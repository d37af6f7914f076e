"""Link shapes for each kind of target app."""
from dataclasses import replace

import pytest

from app.portal.modules.identity.links import link_to
from app.portal.modules.identity.models import ResolvedIdentity
from app.portal.modules.navigation.service import app_tiles, build_navigation, home_link
from app.portal.registry import DEFAULT_CATALOG, AppDescriptor, AppRegistry, IdentifierKind, RegistryError


@pytest.fixture()
def apps():
    registry = AppRegistry(DEFAULT_CATALOG)
    return {app.key: app for app in registry.for_environment("development")}


def test_contact_target_with_only_account_known(apps):
    assert link_to(apps["member"], ResolvedIdentity(account_id="55")) == "http://localhost:3002?accountId=55"


def test_contact_target_with_contact_known(apps):
    identity = ResolvedIdentity(contact_id="99", account_id="55")
    assert link_to(apps["portal"], identity) == "http://localhost:3000/99?accountId=55"


def test_account_target_with_account_known(apps):
    identity = ResolvedIdentity(contact_id="99", account_id="55")
    assert link_to(apps["vessel"], identity) == "http://localhost:3001/55?contactId=99"


def test_account_target_with_only_contact_known(apps):
    assert link_to(apps["vessel"], ResolvedIdentity(contact_id="99")) == "http://localhost:3001?contactId=99"


def test_static_target_carries_full_backpack(apps):
    identity = ResolvedIdentity(contact_id="99", account_id="55")
    assert link_to(apps["vendors"], identity) == "http://localhost:3003?contactId=99&accountId=55"


@pytest.mark.parametrize("key", ["portal", "vessel", "member", "vendors", "downloads"])
def test_no_identifiers_gives_bare_base_url(apps, key):
    href = link_to(apps[key], ResolvedIdentity())
    assert href == apps[key].base_url
    assert "?" not in href
    assert ":id" not in href
    assert not href.endswith("/")


def test_path_identifier_is_percent_encoded():
    target = AppDescriptor(key="member", base_url="https://members.example.org", expected_kind=IdentifierKind.CONTACT)
    assert link_to(target, ResolvedIdentity(contact_id="a/b c")) == "https://members.example.org/a%2Fb%20c"


def test_link_builder_does_not_touch_identity(apps):
    identity = ResolvedIdentity(contact_id="99", account_id="55")
    link_to(apps["member"], identity)
    assert identity == ResolvedIdentity(contact_id="99", account_id="55")


def test_navigation_has_one_link_per_app_in_catalog_order(apps):
    identity = ResolvedIdentity(contact_id="1234567890")
    links = build_navigation(apps.values(), identity, current_key="portal")
    assert [link.key for link in links] == ["portal", "vessel", "member", "vendors", "downloads"]
    assert [link.is_current for link in links] == [True, False, False, False, False]
    assert links[2].href == "http://localhost:3002/1234567890"
    assert links[2].name == "Member Activity"


def test_home_tiles_skip_the_portal_itself(apps):
    tiles = app_tiles(apps.values(), ResolvedIdentity())
    assert [t.key for t in tiles] == ["vessel", "member", "vendors", "downloads"]
    assert tiles[0].description.startswith("View past and future cruises")


def test_home_link_follows_the_catalog_flag(apps):
    links = build_navigation(apps.values(), ResolvedIdentity(contact_id="1234567890"))
    assert home_link(links).key == "portal"
    assert home_link(links).href == "http://localhost:3000/1234567890"


def test_home_link_moves_with_the_flag():
    catalog = tuple(replace(e, is_home=e.key == "member") for e in DEFAULT_CATALOG)
    apps = AppRegistry(catalog).for_environment("development")
    assert home_link(build_navigation(apps, ResolvedIdentity())).key == "member"


def test_home_link_defaults_to_first_entry():
    catalog = tuple(replace(e, is_home=False) for e in DEFAULT_CATALOG)
    apps = AppRegistry(catalog).for_environment("development")
    assert home_link(build_navigation(apps, ResolvedIdentity())).key == "portal"
    assert home_link([]) is None


def test_catalog_rejects_two_home_apps():
    catalog = tuple(replace(e, is_home=True) for e in DEFAULT_CATALOG[:2])
    with pytest.raises(RegistryError):
        AppRegistry(catalog)
