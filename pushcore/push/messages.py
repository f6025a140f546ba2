"""Platform-specific FCM message construction."""

from __future__ import annotations

from firebase_admin import messaging

from pushcore.push.config import NotificationText
from pushcore.push.models import Device

PLATFORM_ANDROID = "android"
PLATFORM_IOS = "ios"

IOS_TITLE = "New message"
IOS_SOUND = "default"
ANDROID_PRIORITY = "high"


def _opt(value: str) -> str | None:
  # The SDK rejects empty strings for optional notification fields.
  return value or None


def build_android_config(*, topic: str, text: NotificationText | None, ttl: int = 0) -> messaging.AndroidConfig:
  """High-priority delivery, plus a visible notification block when text is configured.

  Without the notification block Android delivers the data silently and lets a
  foreground app render it. With the block the system shows the notification
  itself when the app is in the background, which is the only way the user sees
  anything in that state. The tag collapses all pushes for one topic into one
  visible notification.
  """
  notification = None
  if text is not None:
    notification = messaging.AndroidNotification(
      tag=_opt(topic),
      title_loc_key=_opt(text.title_loc_key),
      title=_opt(text.title),
      body_loc_key=_opt(text.body_loc_key),
      body=_opt(text.body),
      icon=_opt(text.icon),
      color=_opt(text.icon_color),
      click_action=_opt(text.click_action),
    )
  return messaging.AndroidConfig(priority=ANDROID_PRIORITY, ttl=ttl if ttl > 0 else None, notification=notification)


def build_apns_config(*, content: str, unread: int) -> tuple[messaging.APNSConfig, messaging.Notification]:
  """APNS payload with the unread badge; mutable so a service extension can rewrite it."""
  body = _opt(content)
  aps = messaging.Aps(
    alert=messaging.ApsAlert(title=IOS_TITLE, body=body),
    badge=unread,
    sound=IOS_SOUND,
    content_available=True,
    mutable_content=True,
  )
  # Title and body are duplicated at the top level for older iOS clients.
  return messaging.APNSConfig(payload=messaging.APNSPayload(aps=aps)), messaging.Notification(title=IOS_TITLE, body=body)


def build_message(device: Device, data: dict[str, str], *, topic: str, unread: int = 0, text: NotificationText | None = None, ttl: int = 0) -> messaging.Message:
  """Build the message for one device; unknown platforms get a data-only push."""
  message = messaging.Message(token=device.device_id, data=data)

  if device.platform == PLATFORM_ANDROID:
    message.android = build_android_config(topic=topic, text=text, ttl=ttl)
  elif device.platform == PLATFORM_IOS:
    message.apns, message.notification = build_apns_config(content=data.get("content", ""), unread=unread)

  return message
