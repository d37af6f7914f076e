from flask import Blueprint, abort, current_app, g, render_template

from app.portal.modules.navigation.service import app_tiles
from app.portal.modules.navigation.shell import resolve_request_identity
from app.portal.modules.report_sync.service import report_data_source
from app.portal.registry import IdentifierKind

bp = Blueprint("routes", __name__)


def _render_home():
    identity = g.identity
    profile = report_data_source(current_app).lookup_contact(identity.contact_id)
    if profile is not None and profile.account_id and identity.account_id is None:
        identity = resolve_request_identity(seeds={IdentifierKind.ACCOUNT: profile.account_id})
    apps = current_app.extensions["app_registry"].for_environment(current_app.config["URL_ENVIRONMENT"])
    return render_template(
        "public/index.html",
        first_name=profile.first_name if profile else None,
        tiles=app_tiles(apps, identity),
    )


@bp.get("/")
def index():
    return _render_home()


@bp.get("/<segment>")
def member_home(segment: str):
    """Portal entry for a member: /{contactId}."""
    if not current_app.extensions["identifier_pattern"].fullmatch(segment):
        abort(404)
    return _render_home()


@bp.get("/health")
def health():
    """Health check endpoint. Returns JSON."""
    return {"ok": True}


@bp.get("/healthz")
def healthz():
    """
    Fast health check for probes. No DB or storage access.
    """
    return "ok", 200
