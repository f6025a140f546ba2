import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pushcore.config import get_settings
from pushcore.core.database import dispose_engine
from pushcore.core.logging import _initialize_logging
from pushcore.push.factory import build_push_dispatcher_from_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
  """Start the push dispatcher with the app and stop it on shutdown."""
  settings = get_settings()
  logger = logging.getLogger("pushcore.core.lifespan")

  _initialize_logging(settings)

  try:
    dispatcher = build_push_dispatcher_from_settings(settings)
  except Exception:
    # Initialization failures are fatal; refuse to start half-configured.
    logger.error("Push dispatcher initialization failed; refusing to start.", exc_info=True)
    raise

  app.state.push_dispatcher = dispatcher
  if dispatcher is not None:
    dispatcher.start()

  try:
    yield
  finally:
    if dispatcher is not None:
      dispatcher.stop()
      await dispatcher.wait_stopped()
    await dispose_engine()
    logger.info("Shutdown complete.")
