import json

import pytest

from app.portal import create_app
from app.portal.config import load_config
from app.portal.models import Base, import_all_models
from app.portal.modules.report_sync.service import BLOB_PREFIX
from app.portal.registry import RegistryError


def _set_env(monkeypatch, tmp_path):
    monkeypatch.setenv("SECRET_KEY", "test-secret")
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path/'test.db'}")
    monkeypatch.setenv("ENV", "test")
    monkeypatch.setenv("STORAGE_BACKEND", "local")
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
    for k in ("CURRENT_APP", "IDENTIFIER_PATTERN", "LEGACY_ID_KIND", "CRON_SECRET"):
        monkeypatch.delenv(k, raising=False)


@pytest.fixture()
def app(tmp_path, monkeypatch):
    _set_env(monkeypatch, tmp_path)
    app = create_app()
    import_all_models()
    Base.metadata.create_all(bind=app.extensions["sqlalchemy_engine"])
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def _write_report(tmp_path, rows):
    payload = {
        "response": {
            "result": {
                "column_order": ["ContactID", "FirstName", "AccountID"],
                "rows": rows,
            }
        }
    }
    root = tmp_path / "storage"
    root.mkdir(parents=True, exist_ok=True)
    (root / f"{BLOB_PREFIX}-seed.json").write_text(json.dumps(payload), encoding="utf-8")


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json["ok"] is True
    assert client.get("/healthz").status_code == 200


def test_home_without_identity_links_to_app_roots(client):
    r = client.get("/")
    assert r.status_code == 200
    html = r.get_data(as_text=True)
    assert 'href="http://localhost:3001"' in html
    assert 'href="http://localhost:3002"' in html
    assert 'href="http://localhost:3003"' in html
    assert ":id" not in html


def test_member_entry_propagates_contact_id(client):
    r = client.get("/1234567890")
    assert r.status_code == 200
    html = r.get_data(as_text=True)
    assert 'href="http://localhost:3002/1234567890"' in html
    assert 'href="http://localhost:3001?contactId=1234567890"' in html
    assert 'href="http://localhost:3004?contactId=1234567890"' in html

    with client.session_transaction() as sess:
        assert sess["fleet_contact_id"] == "1234567890"

    # Later visits without the path still carry the persisted contact id.
    html = client.get("/").get_data(as_text=True)
    assert 'href="http://localhost:3002/1234567890"' in html


def test_query_backpack_is_resolved(client):
    html = client.get("/?accountId=5555555555").get_data(as_text=True)
    assert 'href="http://localhost:3002?accountId=5555555555"' in html
    assert 'href="http://localhost:3001/5555555555"' in html


def test_report_greets_and_seeds_account(client, tmp_path):
    _write_report(tmp_path, [["1234567890", "Ada", "9876543210"], ["1111111111", "Grace", "2222222222"]])
    r = client.get("/1234567890")
    html = r.get_data(as_text=True)
    assert "Welcome Ada" in html
    assert 'href="http://localhost:3001/9876543210?contactId=1234567890"' in html
    assert 'href="http://localhost:3002/1234567890?accountId=9876543210"' in html
    with client.session_transaction() as sess:
        assert sess["fleet_account_id"] == "9876543210"


def test_report_row_with_contact_as_account_keeps_path_contact(client, tmp_path):
    _write_report(tmp_path, [["1234567890", "Ada", "1234567890"]])
    html = client.get("/1234567890").get_data(as_text=True)
    assert "Welcome Ada" in html
    assert 'href="http://localhost:3002/1234567890"' in html
    assert 'href="http://localhost:3001?contactId=1234567890"' in html
    with client.session_transaction() as sess:
        assert sess["fleet_contact_id"] == "1234567890"
        assert "fleet_account_id" not in sess


def test_broken_report_does_not_block_render(client, tmp_path):
    root = tmp_path / "storage"
    root.mkdir(parents=True, exist_ok=True)
    (root / f"{BLOB_PREFIX}-broken.json").write_text("{not json", encoding="utf-8")
    r = client.get("/1234567890")
    assert r.status_code == 200
    assert "Welcome" not in r.get_data(as_text=True)


def test_non_identifier_segment_is_404(client):
    r = client.get("/favicon.ico")
    assert r.status_code == 404


def test_vessel_deployment_reads_path_as_account(tmp_path, monkeypatch):
    _set_env(monkeypatch, tmp_path)
    monkeypatch.setenv("CURRENT_APP", "vessel")
    app = create_app()
    c = app.test_client()
    with c.session_transaction() as sess:
        sess["fleet_contact_id"] = "1234567890"
    html = c.get("/1234567890").get_data(as_text=True)
    # Stored contact equal to the path account is discarded.
    assert 'href="http://localhost:3000?accountId=1234567890"' in html
    with c.session_transaction() as sess:
        assert "fleet_contact_id" not in sess
        assert sess["fleet_account_id"] == "1234567890"


def test_unknown_current_app_fails_fast(tmp_path, monkeypatch):
    _set_env(monkeypatch, tmp_path)
    monkeypatch.setenv("CURRENT_APP", "marina")
    with pytest.raises(RegistryError):
        create_app()


def test_production_requires_cron_secret(tmp_path, monkeypatch):
    _set_env(monkeypatch, tmp_path)
    monkeypatch.setenv("ENV", "production")
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@localhost/portal")
    with pytest.raises(RuntimeError):
        create_app()


@pytest.mark.parametrize("env, secure", [("Production", True), ("PROD", True), ("production", True), ("test", False)])
def test_session_cookie_secure_follows_env(tmp_path, monkeypatch, env, secure):
    _set_env(monkeypatch, tmp_path)
    monkeypatch.setenv("ENV", env)
    cfg = load_config()
    assert cfg["SESSION_COOKIE_SECURE"] is secure
    assert cfg["URL_ENVIRONMENT"] == ("production" if secure else "development")
