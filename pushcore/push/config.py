"""Push configuration schema and notification text resolution."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated, Any

import msgspec

from pushcore.push.models import EventKind

# Intake queue capacity when the config leaves it unset or non-positive.
DEFAULT_BUFFER = 32

# Body value that stands for the rendered message content.
CONTENT_PLACEHOLDER = "$content"

TEXT_FIELDS = ("title_loc_key", "title", "body_loc_key", "body", "icon", "icon_color", "click_action")


class AndroidPayload(msgspec.Struct, kw_only=True):
  """Notification text for one tier of the Android override hierarchy."""

  title_loc_key: str = ""
  title: str = ""
  body_loc_key: str = ""
  body: str = ""
  icon: str = ""
  icon_color: str = ""
  click_action: str = ""


class AndroidConfig(AndroidPayload, kw_only=True):
  """Default tier (inherited fields) plus per-event-kind override tiers."""

  enabled: bool = False
  msg: AndroidPayload = msgspec.field(default_factory=AndroidPayload)
  sub: AndroidPayload = msgspec.field(default_factory=AndroidPayload)


class PushConfig(msgspec.Struct, kw_only=True):
  """Top-level FCM push configuration document."""

  enabled: bool = False
  buffer: int = 0
  credentials: dict[str, Any] | None = None
  credentials_file: str = ""
  time_to_live: Annotated[int, msgspec.Meta(ge=0)] = 0
  android: AndroidConfig = msgspec.field(default_factory=AndroidConfig)

  @property
  def queue_size(self) -> int:
    return self.buffer if self.buffer > 0 else DEFAULT_BUFFER


@dataclass(frozen=True)
class NotificationText:
  """Resolved Android notification strings for one event kind."""

  title_loc_key: str = ""
  title: str = ""
  body_loc_key: str = ""
  body: str = ""
  icon: str = ""
  icon_color: str = ""
  click_action: str = ""


def _override_tier(config: AndroidConfig, what: str) -> AndroidPayload | None:
  if what == EventKind.MESSAGE:
    return config.msg
  if what == EventKind.SUBSCRIPTION:
    return config.sub
  return None


def resolve_field(config: AndroidConfig, what: str, field: str) -> str:
  """Return the event-kind tier value of `field`, falling back to the default tier, then to ""."""
  if field not in TEXT_FIELDS:
    raise KeyError(field)

  tier = _override_tier(config, what)
  value = getattr(tier, field) if tier is not None else ""
  if not value:
    value = getattr(config, field)
  return value or ""


def resolve_text(config: AndroidConfig, what: str, content: str = "") -> NotificationText:
  """Resolve every notification field for an event kind."""
  values = {field: resolve_field(config, what, field) for field in TEXT_FIELDS}
  if values["body"] == CONTENT_PLACEHOLDER:
    values["body"] = content
  return NotificationText(**values)
