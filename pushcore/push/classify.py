"""Decide what a send outcome means for the rest of the batch."""

from __future__ import annotations

from enum import Enum

from pushcore.push.gateway import SendOutcome


class Remediation(str, Enum):
  CONTINUE = "continue"
  ABORT_BATCH = "abort_batch"
  PRUNE_DEVICE = "prune_device"


# Transient and configuration failures would recur for every later device in the
# run, so they stop the batch. Token and other failures only concern one device.
REMEDIATIONS: dict[SendOutcome, Remediation] = {
  SendOutcome.OK: Remediation.CONTINUE,
  SendOutcome.RATE_EXCEEDED: Remediation.ABORT_BATCH,
  SendOutcome.SERVER_UNAVAILABLE: Remediation.ABORT_BATCH,
  SendOutcome.INTERNAL: Remediation.ABORT_BATCH,
  SendOutcome.UNKNOWN: Remediation.ABORT_BATCH,
  SendOutcome.MISMATCHED_CREDENTIAL: Remediation.ABORT_BATCH,
  SendOutcome.INVALID_ARGUMENT: Remediation.ABORT_BATCH,
  SendOutcome.TOKEN_NOT_REGISTERED: Remediation.PRUNE_DEVICE,
  SendOutcome.OTHER: Remediation.CONTINUE,
}

TRANSIENT_OUTCOMES = frozenset({SendOutcome.RATE_EXCEEDED, SendOutcome.SERVER_UNAVAILABLE, SendOutcome.INTERNAL, SendOutcome.UNKNOWN})


def classify(outcome: SendOutcome) -> Remediation:
  return REMEDIATIONS[outcome]
