"""SQLAlchemy model for registered push devices."""

from __future__ import annotations

import datetime
import uuid

from sqlalchemy import DateTime, Index, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from pushcore.core.database import Base


class PushDevice(Base):
  """Persist a single FCM registration token owned by a user."""

  __tablename__ = "push_devices"
  __table_args__ = (Index("ux_push_devices_user_device", "user_id", "device_id", unique=True),)

  id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
  user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
  device_id: Mapped[str] = mapped_column(Text, nullable=False)
  platform: Mapped[str] = mapped_column(String(32), nullable=False)
  lang: Mapped[str] = mapped_column(String(16), nullable=False, default="")
  last_seen: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
