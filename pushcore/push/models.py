"""Data model for push receipts, payloads and registered devices."""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum, IntFlag
from typing import Any


class EventKind(str, Enum):
  """Event kinds that can be pushed."""

  MESSAGE = "msg"
  SUBSCRIPTION = "sub"


class AccessMode(IntFlag):
  """Topic permission bits; rendered as a letter string such as "JRWPS"."""

  NONE = 0
  JOIN = 0x01
  READ = 0x02
  WRITE = 0x04
  PRES = 0x08
  APPROVE = 0x10
  SHARE = 0x20
  DELETE = 0x40
  OWNER = 0x80

  def render(self) -> str:
    """Return the canonical string form: "N" for no permissions, else the letters of set bits."""
    if self == AccessMode.NONE:
      return "N"
    return "".join(letter for bit, letter in _MODE_LETTERS if self & bit)


_MODE_LETTERS = (
  (AccessMode.JOIN, "J"),
  (AccessMode.READ, "R"),
  (AccessMode.WRITE, "W"),
  (AccessMode.PRES, "P"),
  (AccessMode.APPROVE, "A"),
  (AccessMode.SHARE, "S"),
  (AccessMode.DELETE, "D"),
  (AccessMode.OWNER, "O"),
)


def render_mode(mode: AccessMode | str | None) -> str:
  if mode is None:
    return ""
  if isinstance(mode, AccessMode):
    return mode.render()
  return mode


@dataclass(frozen=True)
class Payload:
  """Event content and metadata pushed to devices."""

  what: EventKind | str
  topic: str
  origin: str
  timestamp: datetime.datetime
  silent: bool = False
  # Message-post fields.
  seq_id: int = 0
  content_type: str = ""
  content: Any = None
  # Subscription-change fields.
  mode_want: AccessMode | str | None = None
  mode_given: AccessMode | str | None = None


@dataclass(frozen=True)
class Recipient:
  """Per-user delivery info: devices already notified live and the unread badge count."""

  devices: tuple[str, ...] = ()
  unread: int = 0


@dataclass(frozen=True)
class Receipt:
  """One push request covering a single event and its recipients."""

  payload: Payload
  to: Mapping[str, Recipient] = field(default_factory=dict)

  def skip_devices(self) -> frozenset[str]:
    """Device ids that already received the event and need no push."""
    return frozenset(device_id for recipient in self.to.values() for device_id in recipient.devices)


@dataclass(frozen=True)
class Device:
  """A registered push endpoint."""

  user_id: str
  device_id: str
  platform: str
  lang: str = ""
  last_seen: datetime.datetime | None = None
