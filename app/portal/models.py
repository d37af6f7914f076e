from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


def import_all_models() -> None:
    """Register every module's tables on Base.metadata (alembic autogenerate, test fixtures)."""
    from app.portal.modules.report_sync import models as _report_sync_models  # noqa: F401
