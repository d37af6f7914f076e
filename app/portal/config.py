import os
from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    current_app: str
    identifier_pattern: str
    legacy_id_kind: str
    identity_cookie_days: int

    storage_backend: str
    storage_root: str
    s3_endpoint: str
    s3_region: str
    s3_bucket: str
    s3_access_key_id: str
    s3_secret_access_key: str

    zoho_client_id: str
    zoho_client_secret: str
    zoho_refresh_token: str
    zoho_owner_email: str
    zoho_workspace_name: str
    zoho_report_name: str
    zoho_accounts_url: str
    zoho_api_url: str
    cron_secret: str


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///portal.db"),
        current_app=_getenv("CURRENT_APP", "portal"),
        identifier_pattern=_getenv("IDENTIFIER_PATTERN", r"\d{10,}"),
        legacy_id_kind=_getenv("LEGACY_ID_KIND", ""),
        identity_cookie_days=int(_getenv("IDENTITY_COOKIE_DAYS", "365") or "365"),
        storage_backend=_getenv("STORAGE_BACKEND", "local"),
        storage_root=_getenv("STORAGE_ROOT", ""),
        s3_endpoint=_getenv("S3_ENDPOINT", ""),
        s3_region=_getenv("S3_REGION", "nyc3"),
        s3_bucket=_getenv("S3_BUCKET", ""),
        s3_access_key_id=_getenv("S3_ACCESS_KEY_ID", ""),
        s3_secret_access_key=_getenv("S3_SECRET_ACCESS_KEY", ""),
        zoho_client_id=_getenv("ZOHO_CLIENT_ID", ""),
        zoho_client_secret=_getenv("ZOHO_CLIENT_SECRET", ""),
        zoho_refresh_token=_getenv("ZOHO_REFRESH_TOKEN", ""),
        zoho_owner_email=_getenv("ZOHO_OWNER_EMAIL", ""),
        zoho_workspace_name=_getenv("ZOHO_WORKSPACE_NAME", ""),
        zoho_report_name=_getenv("ZOHO_REPORT_NAME", ""),
        zoho_accounts_url=_getenv("ZOHO_ACCOUNTS_URL", "https://accounts.zoho.com/oauth/v2/token"),
        zoho_api_url=_getenv("ZOHO_API_URL", "https://analyticsapi.zoho.com"),
        cron_secret=_getenv("CRON_SECRET", ""),
    )


def url_environment(env: str) -> str:
    """Map ENV onto the satellite URL set: "production" or "development"."""
    return "production" if (env or "").strip().lower() in ("prod", "production") else "development"


def load_config() -> dict:
    s = load_settings()
    is_production = url_environment(s.env) == "production"
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "URL_ENVIRONMENT": url_environment(s.env),
        "DATABASE_URL": s.database_url,
        "CURRENT_APP": s.current_app,
        "IDENTIFIER_PATTERN": s.identifier_pattern,
        "LEGACY_ID_KIND": s.legacy_id_kind,
        "PERMANENT_SESSION_LIFETIME": timedelta(days=s.identity_cookie_days),
        "STORAGE_BACKEND": s.storage_backend,
        "STORAGE_ROOT": s.storage_root,
        "S3_ENDPOINT": s.s3_endpoint,
        "S3_REGION": s.s3_region,
        "S3_BUCKET": s.s3_bucket,
        "S3_ACCESS_KEY_ID": s.s3_access_key_id,
        "S3_SECRET_ACCESS_KEY": s.s3_secret_access_key,
        "ZOHO_CLIENT_ID": s.zoho_client_id,
        "ZOHO_CLIENT_SECRET": s.zoho_client_secret,
        "ZOHO_REFRESH_TOKEN": s.zoho_refresh_token,
        "ZOHO_OWNER_EMAIL": s.zoho_owner_email,
        "ZOHO_WORKSPACE_NAME": s.zoho_workspace_name,
        "ZOHO_REPORT_NAME": s.zoho_report_name,
        "ZOHO_ACCOUNTS_URL": s.zoho_accounts_url,
        "ZOHO_API_URL": s.zoho_api_url,
        "CRON_SECRET": s.cron_secret,
        # identity cookie hygiene
        "SESSION_COOKIE_HTTPONLY": True,
        "SESSION_COOKIE_SAMESITE": "Lax",
        "SESSION_COOKIE_SECURE": is_production,  # Require HTTPS in production
    }
