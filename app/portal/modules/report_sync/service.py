from __future__ import annotations

import json
import logging
import secrets
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from flask import Flask

from app.portal.db import session_scope
from app.portal.modules.report_sync.models import ReportSyncRun
from app.portal.modules.report_sync.table import ContactProfile, ReportTable
from app.portal.modules.report_sync.zoho_client import ReportError, ZohoAnalyticsClient, client_from_config
from app.portal.storage import Storage, storage_from_config

logger = logging.getLogger(__name__)

BLOB_PREFIX = "cruising-fleet-zoho-report-blob"


@dataclass(frozen=True)
class SyncResult:
    blob_key: str
    row_count: int
    synced_at: datetime
    payload: dict[str, Any]


def report_client(app: Flask) -> ZohoAnalyticsClient:
    """Process-wide client so the access token cache survives across requests."""
    client = app.extensions.get("report_client")
    if client is None:
        client = client_from_config(app.config)
        app.extensions["report_client"] = client
    return client


def report_storage(app: Flask) -> Storage:
    storage = app.extensions.get("report_storage")
    if storage is None:
        storage = storage_from_config(app.config)
        app.extensions["report_storage"] = storage
    return storage


def _record_run(app: Flask, **fields: Any) -> None:
    try:
        with session_scope(app) as s:
            s.add(ReportSyncRun(**fields))
    except Exception:
        logger.exception("Could not record report sync run (ok=%s)", fields.get("ok"))


def sync_report(
    app: Flask,
    *,
    trigger: str = "cron",
    client: ZohoAnalyticsClient | None = None,
    storage: Storage | None = None,
) -> SyncResult:
    """
    Pull the report from Zoho and replace the cached blob.

    Old blobs under BLOB_PREFIX are deleted before the new one is written, so readers see at
    most one cached report. Every attempt is recorded as a ReportSyncRun.
    """
    client = client or report_client(app)
    storage = storage or report_storage(app)
    started = time.monotonic()
    logger.info("Report sync start: trigger=%s", trigger)

    try:
        missing = client.missing_settings()
        if missing:
            raise ReportError(f"Missing Zoho settings: {', '.join(missing)}")

        payload = client.fetch_report()
        row_count = ReportTable(payload).row_count

        existing = storage.list_keys(BLOB_PREFIX)
        if existing:
            logger.info("Deleting %d existing report blob(s)", len(existing))
            for key in existing:
                storage.delete(key)

        blob_key = f"{BLOB_PREFIX}-{secrets.token_hex(8)}.json"
        storage.put_bytes(blob_key, json.dumps(payload).encode("utf-8"), content_type="application/json")
    except Exception as e:
        logger.exception("Report sync failed: trigger=%s", trigger)
        _record_run(
            app,
            ok=False,
            trigger=trigger,
            duration_seconds=int(time.monotonic() - started),
            message=str(e)[:500],
        )
        raise

    _record_run(
        app,
        ok=True,
        trigger=trigger,
        row_count=row_count,
        blob_key=blob_key,
        duration_seconds=int(time.monotonic() - started),
    )
    source = app.extensions.get("report_data_source")
    if source is not None:
        source.invalidate()
    logger.info("Report sync done: blob=%s rows=%d", blob_key, row_count)
    return SyncResult(blob_key=blob_key, row_count=row_count, synced_at=datetime.now(timezone.utc), payload=payload)


def load_cached_report(storage: Storage) -> dict[str, Any] | None:
    """Newest cached report payload, or None when nothing has been synced yet."""
    keys = storage.list_keys(BLOB_PREFIX)
    if not keys:
        return None
    latest = keys[0]
    data = json.loads(storage.read_bytes(latest).decode("utf-8"))
    logger.debug("Read cached report blob=%s rows=%d", latest, ReportTable(data).row_count)
    return data


def get_report(app: Flask) -> dict[str, Any]:
    """Cached report, syncing from Zoho when the cache is cold. Raises ReportRateLimited/ReportError."""
    cached = load_cached_report(report_storage(app))
    if cached is not None:
        return cached
    logger.info("No cached report in storage; fetching fresh data")
    return sync_report(app, trigger="cold_cache").payload


class ReportDataSource:
    """
    Read side used while rendering pages: contact lookups against the cached report only.

    Lookups never raise and never call Zoho; a parsed table is reused for `cache_seconds`.
    """

    def __init__(self, storage: Storage, *, cache_seconds: float = 60.0):
        self.storage = storage
        self.cache_seconds = cache_seconds
        self._lock = threading.Lock()
        self._table: ReportTable | None = None
        self._loaded_at = 0.0

    def _current_table(self) -> ReportTable | None:
        with self._lock:
            now = time.monotonic()
            if self._table is None or now - self._loaded_at >= self.cache_seconds:
                payload = load_cached_report(self.storage)
                self._table = ReportTable(payload) if payload is not None else None
                self._loaded_at = now
            return self._table

    def invalidate(self) -> None:
        with self._lock:
            self._table = None
            self._loaded_at = 0.0

    def lookup_contact(self, contact_id: str | None) -> ContactProfile | None:
        if contact_id is None:
            return None
        try:
            table = self._current_table()
        except Exception as e:
            logger.warning("Report lookup failed for contact=%s: %s", contact_id, e)
            return None
        if table is None:
            return None
        return table.contact_profile(contact_id)


def report_data_source(app: Flask) -> ReportDataSource:
    source = app.extensions.get("report_data_source")
    if source is None:
        source = ReportDataSource(report_storage(app))
        app.extensions["report_data_source"] = source
    return source
