"""Shared fixtures for pushcore tests."""

from __future__ import annotations

import datetime
from unittest.mock import AsyncMock

import pytest

from pushcore.push.models import EventKind, Payload


@pytest.fixture
def anyio_backend():
  return "asyncio"


@pytest.fixture
def message_payload():
  return Payload(what=EventKind.MESSAGE, topic="grp1", origin="usrAlice", timestamp=datetime.datetime(2024, 5, 1, 12, 30, 15, 250000, tzinfo=datetime.UTC), seq_id=42, content_type="text/x-drafty", content="Hello")


@pytest.fixture
def device_store():
  store = AsyncMock()
  store.get_all.return_value = ({}, 0)
  return store


