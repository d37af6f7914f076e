from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.portal.models import Base


class ReportSyncRun(Base):
    __tablename__ = "report_sync_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ran_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False, default=datetime.utcnow)

    ok: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    trigger: Mapped[str] = mapped_column(Text, nullable=False, default="cron")  # cron | cold_cache | cli
    row_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    blob_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration_seconds: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "ranAt": self.ran_at.isoformat() if self.ran_at else None,
            "ok": self.ok,
            "trigger": self.trigger,
            "rowCount": self.row_count,
            "blobKey": self.blob_key,
            "durationSeconds": self.duration_seconds,
            "message": self.message,
        }
