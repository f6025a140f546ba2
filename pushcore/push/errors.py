"""Exception types raised by the push dispatch pipeline."""

from __future__ import annotations


class PushError(Exception):
  """Base class for all push dispatch failures."""


class PushConfigError(PushError):
  """Raised when push configuration or credentials cannot be loaded at startup."""


class UnsupportedEventKindError(PushError):
  """Raised when a payload describes an event kind that cannot be pushed."""

  def __init__(self, what: str) -> None:
    super().__init__(f"Unsupported push event kind: {what!r}")
    self.what = what


class ContentRenderError(PushError, ValueError):
  """Raised when rich message content cannot be rendered to plain text."""


class DeviceStoreError(PushError):
  """Raised when the device registration store cannot be read."""
