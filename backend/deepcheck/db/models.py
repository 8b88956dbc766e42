"""SQLAlchemy async models for the analysis job store."""
from __future__ import annotations
import json
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, Text, DateTime
from sqlalchemy.orm import DeclarativeBase


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class Analysis(Base):
    __tablename__ = "analyses"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    video_name = Column(String, nullable=False, default="")
    content_type = Column(String, nullable=False, default="")
    size_bytes = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default="processing")  # processing|complete|failed
    result_json = Column(Text, nullable=True)       # camelCase score fields once complete
    error = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_now, index=True)
    updated_at = Column(DateTime, default=_now, onupdate=_now)

    @property
    def result(self) -> dict | None:
        return json.loads(self.result_json) if self.result_json else None

    def to_payload(self) -> dict:
        """Flat wire form consumed by AnalysisJob.model_validate."""
        created = self.created_at
        if created is not None and created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        payload = {
            "id": self.id,
            "videoName": self.video_name,
            "createdAt": created.isoformat() if created else None,
            "status": self.status,
        }
        if self.status == "complete" and self.result:
            payload.update(self.result)
        return payload
