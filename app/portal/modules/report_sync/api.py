from __future__ import annotations

import hmac
from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from app.portal.db import db_session
from app.portal.modules.report_sync.models import ReportSyncRun
from app.portal.modules.report_sync.service import get_report, sync_report
from app.portal.modules.report_sync.zoho_client import ReportRateLimited

bp = Blueprint("report_sync", __name__)


def _cron_authorized() -> bool:
    secret = (current_app.config.get("CRON_SECRET") or "").strip()
    if not secret:
        return False
    header = request.headers.get("Authorization") or ""
    return hmac.compare_digest(header, f"Bearer {secret}")


def _unauthorized():
    current_app.logger.error("Unauthorized cron request (path=%s)", request.path)
    return jsonify({"error": "Unauthorized"}), 401


@bp.get("/report")
def report():
    """Cached report payload; syncs once on a cold cache."""
    try:
        return jsonify(get_report(current_app))
    except ReportRateLimited as e:
        resp = jsonify(
            {"error": f"Zoho API rate limit reached. Please wait {e.wait_seconds} seconds and refresh the page."}
        )
        resp.status_code = 429
        resp.headers["Retry-After"] = str(e.wait_seconds)
        return resp
    except Exception:
        current_app.logger.exception("Error fetching cached report")
        return jsonify({"error": "Failed to fetch cached report data"}), 500


@bp.get("/cron/sync-report")
def cron_sync_report():
    if not _cron_authorized():
        return _unauthorized()
    try:
        result = sync_report(current_app, trigger="cron")
    except Exception as e:
        return jsonify({"success": False, "error": str(e) or e.__class__.__name__}), 500
    return jsonify(
        {
            "success": True,
            "blobKey": result.blob_key,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "rowCount": result.row_count,
        }
    )


@bp.get("/report/runs")
def report_runs():
    if not _cron_authorized():
        return _unauthorized()
    s = db_session()
    runs = s.query(ReportSyncRun).order_by(ReportSyncRun.ran_at.desc(), ReportSyncRun.id.desc()).limit(20).all()
    return jsonify({"runs": [r.to_dict() for r in runs]})
