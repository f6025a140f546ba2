from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI

from pushcore.core import lifespan as lifespan_module
from pushcore.push.errors import PushConfigError


@pytest.fixture
def patched(monkeypatch):
  monkeypatch.setattr(lifespan_module, "get_settings", lambda: MagicMock())
  monkeypatch.setattr(lifespan_module, "_initialize_logging", lambda settings: None)
  dispose = AsyncMock()
  monkeypatch.setattr(lifespan_module, "dispose_engine", dispose)
  return monkeypatch, dispose


@pytest.mark.anyio
async def test_lifespan_starts_and_stops_dispatcher(patched):
  monkeypatch, dispose = patched
  dispatcher = MagicMock()
  dispatcher.wait_stopped = AsyncMock()
  monkeypatch.setattr(lifespan_module, "build_push_dispatcher_from_settings", lambda settings: dispatcher)
  app = FastAPI()

  async with lifespan_module.lifespan(app):
    assert app.state.push_dispatcher is dispatcher
    dispatcher.start.assert_called_once()

  dispatcher.stop.assert_called_once()
  dispatcher.wait_stopped.assert_awaited_once()
  dispose.assert_awaited_once()


@pytest.mark.anyio
async def test_lifespan_refuses_to_start_on_config_error(patched):
  monkeypatch, _ = patched

  def _fail(settings):
    raise PushConfigError("missing credentials")

  monkeypatch.setattr(lifespan_module, "build_push_dispatcher_from_settings", _fail)

  with pytest.raises(PushConfigError):
    async with lifespan_module.lifespan(FastAPI()):
      pass
