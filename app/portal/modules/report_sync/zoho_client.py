from __future__ import annotations

import json
import logging
import time
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

TOKEN_TTL_SECONDS = 50 * 60  # Zoho tokens live 1h
MIN_REFRESH_INTERVAL_SECONDS = 60
RATE_LIMIT_BACKOFF_SECONDS = 120


class ReportError(RuntimeError):
    pass


class ReportRateLimited(ReportError):
    def __init__(self, wait_seconds: int):
        super().__init__(f"Zoho API rate limit reached; retry in {wait_seconds}s")
        self.wait_seconds = wait_seconds


def parse_report_payload(raw: str) -> dict[str, Any]:
    """
    Parse a Zoho JSON export.

    Exports sometimes carry unescaped backslashes inside cell text. The first attempt doubles
    every backslash and then restores the escapes JSON needs (\\" \\n \\t \\r); if that still
    fails the raw text is parsed as-is.
    """
    cleaned = (
        raw.replace("\\", "\\\\")
        .replace('\\\\"', '\\"')
        .replace("\\\\n", "\\n")
        .replace("\\\\t", "\\t")
        .replace("\\\\r", "\\r")
    )
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        logger.warning("Report JSON parse failed on cleaned text, retrying raw: %s", e)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e2:
            raise ReportError(f"Invalid JSON from Zoho export: {e2}") from e2
    if not isinstance(data, dict):
        raise ReportError("Zoho export is not a JSON object")
    return data


@dataclass
class ZohoAnalyticsClient:
    client_id: str
    client_secret: str
    refresh_token: str
    owner_email: str
    workspace_name: str
    report_name: str
    accounts_url: str = "https://accounts.zoho.com/oauth/v2/token"
    api_url: str = "https://analyticsapi.zoho.com"
    timeout_seconds: int = 60
    opener: Callable[..., Any] = field(default=urllib.request.urlopen, repr=False)
    clock: Callable[[], float] = field(default=time.time, repr=False)

    # Process-wide token state; one client instance lives on the Flask app.
    _token: str | None = field(default=None, init=False, repr=False)
    _token_expires_at: float = field(default=0.0, init=False, repr=False)
    _last_refresh_attempt: float | None = field(default=None, init=False, repr=False)
    _rate_limited_until: float = field(default=0.0, init=False, repr=False)

    def missing_settings(self) -> list[str]:
        names = {
            "ZOHO_CLIENT_ID": self.client_id,
            "ZOHO_CLIENT_SECRET": self.client_secret,
            "ZOHO_REFRESH_TOKEN": self.refresh_token,
            "ZOHO_OWNER_EMAIL": self.owner_email,
            "ZOHO_WORKSPACE_NAME": self.workspace_name,
            "ZOHO_REPORT_NAME": self.report_name,
        }
        return [k for k, v in names.items() if not v]

    def _send(self, req: urllib.request.Request) -> tuple[int, str]:
        try:
            with self.opener(req, timeout=self.timeout_seconds) as resp:
                status = getattr(resp, "status", 200)
                return status, resp.read().decode("utf-8", errors="replace")
        except urllib.error.HTTPError as e:
            try:
                body = e.read().decode("utf-8", errors="ignore")
            except Exception:
                body = ""
            return e.code, body
        except urllib.error.URLError as e:
            raise ReportError(f"Zoho request failed: {e.reason}") from e

    def _wait_seconds(self, until: float) -> int:
        return max(1, int(until - self.clock() + 0.999))

    def get_access_token(self, *, force_refresh: bool = False) -> str:
        now = self.clock()
        if self._rate_limited_until > now:
            raise ReportRateLimited(self._wait_seconds(self._rate_limited_until))

        if not force_refresh and self._token and self._token_expires_at > now:
            logger.debug("Using cached Zoho access token")
            return self._token

        if self._last_refresh_attempt is not None and now - self._last_refresh_attempt < MIN_REFRESH_INTERVAL_SECONDS:
            if self._token:
                logger.info("Zoho refresh throttled; reusing cached token")
                return self._token
            raise ReportRateLimited(self._wait_seconds(self._last_refresh_attempt + MIN_REFRESH_INTERVAL_SECONDS))

        self._last_refresh_attempt = now
        body = urllib.parse.urlencode(
            {
                "grant_type": "refresh_token",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "refresh_token": self.refresh_token,
            }
        ).encode("utf-8")
        req = urllib.request.Request(self.accounts_url, data=body, method="POST")
        req.add_header("Content-Type", "application/x-www-form-urlencoded")

        logger.info("Requesting new Zoho access token")
        status, text = self._send(req)
        if status >= 400:
            logger.error("Zoho token refresh failed: status=%s body=%s", status, text[:300])
            if status == 400 and "too many requests" in text.lower():
                self._rate_limited_until = self.clock() + RATE_LIMIT_BACKOFF_SECONDS
                raise ReportRateLimited(RATE_LIMIT_BACKOFF_SECONDS)
            raise ReportError(f"Failed to refresh access token: {status}")

        try:
            token = json.loads(text).get("access_token")
        except (json.JSONDecodeError, AttributeError) as e:
            raise ReportError("Invalid token response from Zoho") from e
        if not token:
            raise ReportError("Zoho token response has no access_token")

        self._token = token
        self._token_expires_at = self.clock() + TOKEN_TTL_SECONDS
        logger.info("Got new Zoho access token")
        return token

    def export_url(self) -> str:
        path = "/api/{}/{}/{}".format(
            urllib.parse.quote(self.owner_email, safe="@"),
            urllib.parse.quote(self.workspace_name, safe=""),
            urllib.parse.quote(self.report_name, safe=""),
        )
        params = {
            "ZOHO_ACTION": "EXPORT",
            "ZOHO_OUTPUT_FORMAT": "JSON",
            "ZOHO_ERROR_FORMAT": "JSON",
            "ZOHO_API_VERSION": "1.0",
        }
        return self.api_url.rstrip("/") + path + "?" + urllib.parse.urlencode(params)

    def export_report_text(self) -> str:
        token = self.get_access_token()
        req = urllib.request.Request(self.export_url(), method="GET")
        req.add_header("Authorization", f"Zoho-oauthtoken {token}")
        status, text = self._send(req)
        if status >= 400:
            logger.error("Zoho API error: status=%s body=%s", status, text[:300])
            raise ReportError(f"Failed to fetch report data: {status}")
        return text

    def fetch_report(self) -> dict[str, Any]:
        return parse_report_payload(self.export_report_text())


def client_from_config(config: dict) -> ZohoAnalyticsClient:
    return ZohoAnalyticsClient(
        client_id=config.get("ZOHO_CLIENT_ID") or "",
        client_secret=config.get("ZOHO_CLIENT_SECRET") or "",
        refresh_token=config.get("ZOHO_REFRESH_TOKEN") or "",
        owner_email=config.get("ZOHO_OWNER_EMAIL") or "",
        workspace_name=config.get("ZOHO_WORKSPACE_NAME") or "",
        report_name=config.get("ZOHO_REPORT_NAME") or "",
        accounts_url=config.get("ZOHO_ACCOUNTS_URL") or "https://accounts.zoho.com/oauth/v2/token",
        api_url=config.get("ZOHO_API_URL") or "https://analyticsapi.zoho.com",
    )
