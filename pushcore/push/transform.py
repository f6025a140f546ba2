"""Flatten push payloads into FCM data attributes."""

from __future__ import annotations

import datetime

from pushcore.drafty import ContentRenderer
from pushcore.push.errors import UnsupportedEventKindError
from pushcore.push.models import EventKind, Payload, render_mode

# Maximum length of message content in code points.
MAX_MESSAGE_LENGTH = 80

ELLIPSIS = "…"


def format_timestamp(ts: datetime.datetime) -> str:
  """Format as RFC 3339 in UTC with trailing fractional zeros trimmed."""
  if ts.tzinfo is None:
    ts = ts.replace(tzinfo=datetime.UTC)
  ts = ts.astimezone(datetime.UTC)
  text = ts.strftime("%Y-%m-%dT%H:%M:%S")
  if ts.microsecond:
    text += f".{ts.microsecond:06d}".rstrip("0")
  return text + "Z"


def truncate_content(content: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
  """Trim to `limit` code points and append an ellipsis when anything was cut."""
  # A string can't have more code points than UTF-8 bytes; skip the count when short.
  if len(content.encode("utf-8")) <= limit:
    return content
  if len(content) <= limit:
    return content
  return content[:limit] + ELLIPSIS


def payload_to_data(payload: Payload, renderer: ContentRenderer) -> dict[str, str]:
  """Convert a payload into the string-keyed attribute map sent as FCM data."""
  data: dict[str, str] = {}
  what = payload.what.value if isinstance(payload.what, EventKind) else str(payload.what)
  data["what"] = what
  if payload.silent:
    data["silent"] = "true"
  data["topic"] = payload.topic
  data["ts"] = format_timestamp(payload.timestamp)
  # "from" is reserved by FCM; the origin travels as "xfrom".
  data["xfrom"] = payload.origin

  if what == EventKind.MESSAGE:
    data["seq"] = str(payload.seq_id)
    data["mime"] = payload.content_type
    data["content"] = truncate_content(renderer.to_plain_text(payload.content))
  elif what == EventKind.SUBSCRIPTION:
    data["modeWant"] = render_mode(payload.mode_want)
    data["modeGiven"] = render_mode(payload.mode_given)
  else:
    raise UnsupportedEventKindError(what)

  return data
