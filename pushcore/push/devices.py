"""Device store contract, its Postgres implementation, and recipient device lookup."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Protocol

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from pushcore.core.database import get_session_factory
from pushcore.push.errors import DeviceStoreError
from pushcore.push.models import Device
from pushcore.schema.devices import PushDevice

logger = logging.getLogger(__name__)


class DeviceStore(Protocol):
  """Registered-device storage shared by concurrent dispatch runs."""

  async def get_all(self, *user_ids: str) -> tuple[dict[str, list[Device]], int]:
    """Return devices grouped by owner and the total device count."""

  async def delete(self, user_id: str, device_id: str) -> None:
    """Remove one device registration."""


class DeviceRepository:
  """Read and prune push devices in Postgres."""

  async def get_all(self, *user_ids: str) -> tuple[dict[str, list[Device]], int]:
    if not user_ids:
      return {}, 0

    session_factory = get_session_factory()
    if session_factory is None:
      return {}, 0

    async with session_factory() as session:
      return await self._get_all_with_session(session=session, user_ids=user_ids)

  async def _get_all_with_session(self, *, session: AsyncSession, user_ids: Iterable[str]) -> tuple[dict[str, list[Device]], int]:
    stmt = select(PushDevice).where(PushDevice.user_id.in_(list(user_ids)))
    result = await session.execute(stmt)
    rows = result.scalars().all()
    devices: dict[str, list[Device]] = {}
    for row in rows:
      devices.setdefault(row.user_id, []).append(Device(user_id=row.user_id, device_id=row.device_id, platform=row.platform, lang=row.lang or "", last_seen=row.last_seen))
    return devices, len(rows)

  async def delete(self, user_id: str, device_id: str) -> None:
    session_factory = get_session_factory()
    if session_factory is None:
      return

    async with session_factory() as session:
      await self._delete_with_session(session=session, user_id=user_id, device_id=device_id)

  async def _delete_with_session(self, *, session: AsyncSession, user_id: str, device_id: str) -> None:
    # Constrain by owner so a token reused by another account survives.
    stmt = delete(PushDevice).where(PushDevice.user_id == user_id, PushDevice.device_id == device_id)
    await session.execute(stmt)
    await session.commit()


class NullDeviceStore:
  """Device store used when no database is configured; it knows no devices."""

  async def get_all(self, *user_ids: str) -> tuple[dict[str, list[Device]], int]:
    logger.debug("No device store configured; skipping lookup for %d users", len(user_ids))
    return {}, 0

  async def delete(self, user_id: str, device_id: str) -> None:
    return None


async def resolve_devices(store: DeviceStore, user_ids: Iterable[str]) -> tuple[dict[str, list[Device]], int]:
  """Fetch every registered device of the recipients."""
  try:
    return await store.get_all(*user_ids)
  except DeviceStoreError:
    raise
  except Exception as exc:  # noqa: BLE001
    raise DeviceStoreError(f"Device lookup failed: {exc}") from exc
