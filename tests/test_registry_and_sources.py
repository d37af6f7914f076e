"""Tests for the app registry and identifier source readers."""
import re

import pytest

from app.portal.config import url_environment
from app.portal.modules.identity.sources import read_path_candidate, read_query_candidates, read_stored_values
from app.portal.modules.identity.store import InMemoryIdentityStore, SessionIdentityStore
from app.portal.registry import (
    DEFAULT_CATALOG,
    AppRegistry,
    CatalogEntry,
    IdentifierKind,
    RegistryError,
    registry_from_env,
)


class TestAppRegistry:
    def test_base_url_per_environment(self):
        registry = AppRegistry(DEFAULT_CATALOG)
        assert registry.base_url_for("vessel", "development") == "http://localhost:3001"
        assert registry.base_url_for("vessel", "production") == "https://v0-cruising-fleet-member-activity.vercel.app"

    def test_expected_kinds(self):
        registry = AppRegistry(DEFAULT_CATALOG)
        assert registry.expected_kind_for("portal") is IdentifierKind.CONTACT
        assert registry.expected_kind_for("member") is IdentifierKind.CONTACT
        assert registry.expected_kind_for("vessel") is IdentifierKind.ACCOUNT
        assert registry.expected_kind_for("vendors") is None
        assert registry.expected_kind_for("downloads") is None

    def test_unknown_app_and_environment(self):
        registry = AppRegistry(DEFAULT_CATALOG)
        with pytest.raises(KeyError):
            registry.expected_kind_for("nope")
        with pytest.raises(RegistryError):
            registry.base_url_for("portal", "staging")

    def test_new_app_needs_only_a_catalog_entry(self):
        extra = CatalogEntry(
            key="regattas",
            name="Regattas",
            expected_kind=IdentifierKind.ACCOUNT,
            dev_url="http://localhost:3005/",
            prod_url="https://regattas.example.org",
        )
        registry = AppRegistry(DEFAULT_CATALOG + (extra,))
        assert "regattas" in registry
        assert registry.base_url_for("regattas", "development") == "http://localhost:3005"
        assert list(registry)[-1] == "regattas"

    @pytest.mark.parametrize(
        "url",
        ["", "localhost:3000", "ftp://files.example.org", "https://x.example.org/?a=1", "https://x.example.org/#top"],
    )
    def test_rejects_bad_base_urls(self, url):
        entry = CatalogEntry(key="bad", name="Bad", expected_kind=None, dev_url=url, prod_url="https://ok.example.org")
        with pytest.raises(RegistryError):
            AppRegistry((entry,))

    def test_rejects_duplicate_keys(self):
        with pytest.raises(RegistryError):
            AppRegistry(DEFAULT_CATALOG + (DEFAULT_CATALOG[0],))

    def test_env_overrides(self):
        registry = registry_from_env({"FLEET_VENDORS_URL_PROD": "https://vendors.example.org/"})
        assert registry.base_url_for("vendors", "production") == "https://vendors.example.org"
        assert registry.base_url_for("vendors", "development") == "http://localhost:3003"

    def test_url_environment(self):
        assert url_environment("production") == "production"
        assert url_environment("prod") == "production"
        assert url_environment("development") == "development"
        assert url_environment("test") == "development"


class TestSourceReaders:
    def test_path_candidate_matches_long_digits(self):
        assert read_path_candidate("/1234567890") == "1234567890"
        assert read_path_candidate("/members/12345678901234/history") == "12345678901234"

    def test_path_candidate_absent(self):
        assert read_path_candidate("/") is None
        assert read_path_candidate("") is None
        assert read_path_candidate(None) is None
        assert read_path_candidate("/123") is None
        assert read_path_candidate("/abc1234567890") is None

    def test_path_candidate_custom_pattern(self):
        assert read_path_candidate("/A-42", re.compile(r"A-\d+")) == "A-42"

    def test_query_candidates(self):
        q = read_query_candidates({"contactId": "1", "accountID": "2", "id": "3"})
        assert (q.contact_id, q.account_id, q.generic_id) == ("1", "2", "3")

    def test_query_preferred_spelling_wins(self):
        q = read_query_candidates({"contactID": "old", "contactId": "new"})
        assert q.contact_id == "new"

    def test_blank_query_values_are_absent(self):
        q = read_query_candidates({"contactId": "", "accountId": "   ", "id": ""})
        assert (q.contact_id, q.account_id, q.generic_id) == (None, None, None)

    def test_zero_like_query_value_is_kept(self):
        assert read_query_candidates({"accountId": "0"}).account_id == "0"

    def test_missing_args(self):
        q = read_query_candidates(None)
        assert (q.contact_id, q.account_id, q.generic_id) == (None, None, None)

    def test_stored_values(self):
        store = InMemoryIdentityStore({IdentifierKind.ACCOUNT: "55"})
        stored = read_stored_values(store)
        assert (stored.contact_id, stored.account_id) == (None, "55")


class TestStores:
    def test_in_memory_rejects_blank(self):
        store = InMemoryIdentityStore()
        with pytest.raises(ValueError):
            store.set(IdentifierKind.CONTACT, "")

    def test_session_store_keys(self):
        session = {}
        store = SessionIdentityStore(session)
        store.set(IdentifierKind.CONTACT, "1")
        store.set(IdentifierKind.ACCOUNT, "2")
        assert session == {"fleet_contact_id": "1", "fleet_account_id": "2"}
        store.clear(IdentifierKind.CONTACT)
        assert store.get(IdentifierKind.CONTACT) is None
        assert store.get(IdentifierKind.ACCOUNT) == "2"

    def test_session_store_ignores_non_string_values(self):
        store = SessionIdentityStore({"fleet_contact_id": 12345, "fleet_account_id": ""})
        assert store.get(IdentifierKind.CONTACT) is None
        assert store.get(IdentifierKind.ACCOUNT) is None
