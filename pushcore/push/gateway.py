"""FCM delivery client returning tagged send outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

import firebase_admin
from firebase_admin import exceptions, messaging
from starlette.concurrency import run_in_threadpool


class SendOutcome(str, Enum):
  """Result of one send attempt as reported by the gateway."""

  OK = "ok"
  RATE_EXCEEDED = "rate_exceeded"
  SERVER_UNAVAILABLE = "server_unavailable"
  INTERNAL = "internal"
  UNKNOWN = "unknown"
  MISMATCHED_CREDENTIAL = "mismatched_credential"
  INVALID_ARGUMENT = "invalid_argument"
  TOKEN_NOT_REGISTERED = "token_not_registered"
  OTHER = "other"


@dataclass(frozen=True)
class SendResult:
  """Outcome of a single message send."""

  outcome: SendOutcome
  message_id: str | None = None
  error: Exception | None = None

  @property
  def ok(self) -> bool:
    return self.outcome is SendOutcome.OK


class PushGateway(Protocol):
  """Delivery contract for sending one message; safe for concurrent use."""

  async def send(self, message: messaging.Message) -> SendResult:
    """Send one message and report the outcome instead of raising gateway errors."""


# Subclasses come before their bases.
_ERROR_OUTCOMES: tuple[tuple[type[Exception], SendOutcome], ...] = (
  (messaging.UnregisteredError, SendOutcome.TOKEN_NOT_REGISTERED),
  (messaging.QuotaExceededError, SendOutcome.RATE_EXCEEDED),
  (messaging.SenderIdMismatchError, SendOutcome.MISMATCHED_CREDENTIAL),
  (messaging.ThirdPartyAuthError, SendOutcome.MISMATCHED_CREDENTIAL),
  (exceptions.ResourceExhaustedError, SendOutcome.RATE_EXCEEDED),
  (exceptions.UnavailableError, SendOutcome.SERVER_UNAVAILABLE),
  (exceptions.InternalError, SendOutcome.INTERNAL),
  (exceptions.UnknownError, SendOutcome.UNKNOWN),
  (exceptions.InvalidArgumentError, SendOutcome.INVALID_ARGUMENT),
)


def outcome_for_error(exc: Exception) -> SendOutcome:
  """Map an FCM SDK exception to a send outcome."""
  for error_type, outcome in _ERROR_OUTCOMES:
    if isinstance(exc, error_type):
      return outcome
  # The SDK validates messages locally and raises ValueError for malformed fields.
  if isinstance(exc, ValueError):
    return SendOutcome.INVALID_ARGUMENT
  return SendOutcome.OTHER


class FcmGateway(PushGateway):
  """`firebase_admin.messaging` backed gateway bound to one Firebase app."""

  def __init__(self, *, app: firebase_admin.App, dry_run: bool = False) -> None:
    self._app = app
    self._dry_run = dry_run

  async def send(self, message: messaging.Message) -> SendResult:
    # The SDK call blocks on HTTP; run it off the event loop so runs proceed in parallel.
    try:
      message_id = await run_in_threadpool(messaging.send, message, self._dry_run, self._app)
    except (exceptions.FirebaseError, ValueError) as exc:
      return SendResult(outcome=outcome_for_error(exc), error=exc)
    return SendResult(outcome=SendOutcome.OK, message_id=message_id)
