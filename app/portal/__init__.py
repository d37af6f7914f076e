import logging
import re
import uuid

from dotenv import load_dotenv
from flask import Flask, g, render_template

from app.portal.config import load_config
from app.portal.db import init_db, teardown_db_session
from app.portal.modules.navigation.shell import bp as navigation_bp
from app.portal.modules.report_sync.api import bp as report_sync_bp
from app.portal.registry import IdentifierKind, RegistryError, registry_from_env
from app.portal.routes import bp as routes_bp


def _init_identity(app: Flask) -> None:
    """Registry, current app and identifier pattern are resolved once, here."""
    try:
        app.extensions["identifier_pattern"] = re.compile(app.config["IDENTIFIER_PATTERN"])
    except re.error as e:
        raise RuntimeError(f"IDENTIFIER_PATTERN is not a valid regex: {e}") from e

    legacy = (app.config.get("LEGACY_ID_KIND") or "").strip().lower()
    if legacy and legacy not in {k.value for k in IdentifierKind}:
        raise RuntimeError(f"LEGACY_ID_KIND must be 'contact' or 'account', got {legacy!r}")

    registry = registry_from_env()
    if app.config["CURRENT_APP"] not in registry:
        raise RegistryError(f"CURRENT_APP {app.config['CURRENT_APP']!r} is not in the app catalog: {', '.join(registry)}")
    app.extensions["app_registry"] = registry
    app.logger.info(
        "Identity: current_app=%s url_environment=%s apps=%s",
        app.config["CURRENT_APP"],
        app.config["URL_ENVIRONMENT"],
        ",".join(registry),
    )


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__, template_folder="templates", static_folder="static")
    app.config.from_mapping(load_config())

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")
        if not app.config.get("CRON_SECRET"):
            raise RuntimeError("CRON_SECRET is required in production.")

    _init_identity(app)
    init_db(app)

    @app.before_request
    def _assign_request_id():
        if not getattr(g, "request_id", None):
            g.request_id = uuid.uuid4().hex

    app.register_blueprint(navigation_bp)
    app.register_blueprint(routes_bp)
    app.register_blueprint(report_sync_bp, url_prefix="/api")
    app.teardown_appcontext(teardown_db_session)

    @app.errorhandler(404)
    def _err_404(e):  # type: ignore[no-redef]
        return render_template("errors/404.html"), 404

    @app.errorhandler(500)
    def _err_500(e):  # type: ignore[no-redef]
        app.logger.exception("Unhandled 500 (request_id=%s)", getattr(g, "request_id", None))
        return render_template("errors/500.html"), 500

    logging.getLogger(__name__).info("create_app() complete; app ready to serve")
    return app
