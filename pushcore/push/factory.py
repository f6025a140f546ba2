"""Composition root for the FCM push dispatcher."""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials

from pushcore.config import Settings, load_push_config
from pushcore.drafty import ContentRenderer, DraftyRenderer
from pushcore.push.config import PushConfig
from pushcore.push.devices import DeviceRepository, DeviceStore, NullDeviceStore
from pushcore.push.dispatcher import PushDispatcher
from pushcore.push.errors import PushConfigError
from pushcore.push.gateway import FcmGateway, PushGateway

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "pushcore-fcm"


def load_credentials(config: PushConfig) -> credentials.Certificate:
  """Load service-account credentials from inline JSON or a file path."""
  try:
    if config.credentials is not None:
      return credentials.Certificate(config.credentials)
    if config.credentials_file:
      return credentials.Certificate(config.credentials_file)
  except (ValueError, OSError) as exc:
    raise PushConfigError(f"Invalid FCM credentials: {exc}") from exc
  raise PushConfigError("missing credentials")


def get_firebase_app(cred: credentials.Certificate) -> firebase_admin.App:
  """Return the named Firebase app, creating it on first use."""
  try:
    return firebase_admin.get_app(FIREBASE_APP_NAME)
  except ValueError:
    pass

  try:
    return firebase_admin.initialize_app(cred, name=FIREBASE_APP_NAME)
  except ValueError as exc:
    raise PushConfigError(f"Failed to initialize Firebase app: {exc}") from exc


def build_push_dispatcher(config: PushConfig, *, store: DeviceStore, gateway: PushGateway | None = None, renderer: ContentRenderer | None = None) -> PushDispatcher | None:
  """Build a dispatcher from config; returns None when push is disabled."""
  if not config.enabled:
    logger.info("FCM push disabled by configuration.")
    return None

  if gateway is None:
    gateway = FcmGateway(app=get_firebase_app(load_credentials(config)))

  return PushDispatcher(gateway=gateway, store=store, renderer=renderer or DraftyRenderer(), config=config)


def build_push_dispatcher_from_settings(settings: Settings) -> PushDispatcher | None:
  """Wire the dispatcher from process settings, using Postgres when configured."""
  config = load_push_config(settings)
  store: DeviceStore = DeviceRepository() if settings.pg_dsn else NullDeviceStore()
  return build_push_dispatcher(config, store=store)
