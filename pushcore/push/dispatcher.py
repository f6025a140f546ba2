"""Receipt intake loop and the per-receipt push pipeline."""

from __future__ import annotations

import asyncio
import logging

from pushcore.drafty import ContentRenderer
from pushcore.push.classify import TRANSIENT_OUTCOMES, Remediation, classify
from pushcore.push.config import PushConfig, resolve_text
from pushcore.push.devices import DeviceStore, resolve_devices
from pushcore.push.errors import ContentRenderError, DeviceStoreError, UnsupportedEventKindError
from pushcore.push.gateway import PushGateway
from pushcore.push.messages import build_message
from pushcore.push.models import Receipt
from pushcore.push.transform import payload_to_data

logger = logging.getLogger(__name__)


class PushDispatcher:
  """Reads receipts from a bounded queue and pushes each one in its own task.

  Runs are spawned and never joined, so they overlap freely and finish in any
  order. Within a run devices are sent one at a time so a batch abort stops
  every later send.
  """

  def __init__(self, *, gateway: PushGateway, store: DeviceStore, renderer: ContentRenderer, config: PushConfig) -> None:
    self._gateway = gateway
    self._store = store
    self._renderer = renderer
    self._config = config
    self._queue: asyncio.Queue[Receipt] | None = None
    self._stop: asyncio.Event | None = None
    self._loop: asyncio.AbstractEventLoop | None = None
    self._runner: asyncio.Task[None] | None = None
    self._runs: set[asyncio.Task[None]] = set()

  @property
  def is_ready(self) -> bool:
    """True once started and until stopped."""
    return self._queue is not None and self._stop is not None and not self._stop.is_set()

  @property
  def pending(self) -> int:
    """Receipts accepted but not yet picked up by the loop."""
    return self._queue.qsize() if self._queue is not None else 0

  def start(self) -> None:
    """Create a fresh intake queue and start the loop on the running event loop.

    Calling start while running is a no-op. A stopped dispatcher can be started
    again; receipts left in the old queue are discarded.
    """
    if self.is_ready:
      return
    self._loop = asyncio.get_running_loop()
    self._queue = asyncio.Queue(maxsize=self._config.queue_size)
    self._stop = asyncio.Event()
    self._runner = asyncio.create_task(self._run(self._queue, self._stop), name="push-dispatcher")
    logger.info("Push dispatcher started buffer=%d", self._config.queue_size)

  def stop(self) -> None:
    """Stop accepting receipts; runs already spawned drain on their own."""
    if self._stop is not None:
      self._stop.set()

  async def wait_stopped(self) -> None:
    runner = self._runner
    if runner is not None:
      await runner
      if self._runner is runner:
        self._runner = None

  def submit(self, receipt: Receipt) -> bool:
    """Enqueue without blocking; a full queue drops the receipt and returns False."""
    if not self.is_ready:
      logger.debug("Push dispatcher not running; dropping receipt topic=%s", receipt.payload.topic)
      return False
    try:
      self._queue.put_nowait(receipt)
    except asyncio.QueueFull:
      logger.debug("Push queue full; dropping receipt topic=%s", receipt.payload.topic)
      return False
    return True

  def submit_threadsafe(self, receipt: Receipt) -> bool:
    """Hand a receipt to the loop from another thread.

    Returns False when the dispatcher is not running or its loop is closed.
    True only means the receipt reached the loop; a full queue still drops it
    there.
    """
    loop = self._loop
    if loop is None or loop.is_closed() or not self.is_ready:
      logger.debug("Push dispatcher not running; dropping receipt topic=%s", receipt.payload.topic)
      return False
    try:
      loop.call_soon_threadsafe(self.submit, receipt)
    except RuntimeError:
      # Loop closed between the check and the call.
      logger.debug("Push dispatcher loop closed; dropping receipt topic=%s", receipt.payload.topic)
      return False
    return True

  async def _run(self, queue: asyncio.Queue[Receipt], stop: asyncio.Event) -> None:
    stop_wait = asyncio.ensure_future(stop.wait())
    try:
      while True:
        next_receipt = asyncio.ensure_future(queue.get())
        done, _ = await asyncio.wait({next_receipt, stop_wait}, return_when=asyncio.FIRST_COMPLETED)
        if stop_wait in done:
          if next_receipt in done:
            logger.debug("Push dispatcher stopping; dropping receipt topic=%s", next_receipt.result().payload.topic)
          else:
            next_receipt.cancel()
          break
        self._spawn(next_receipt.result())
    finally:
      stop_wait.cancel()
      logger.info("Push dispatcher stopped in_flight=%d", len(self._runs))

  def _spawn(self, receipt: Receipt) -> None:
    task = asyncio.create_task(self.send_notifications(receipt))
    # Hold a reference only so the task is not collected mid-run.
    self._runs.add(task)
    task.add_done_callback(self._runs.discard)
    task.add_done_callback(self._log_task_error)

  @staticmethod
  def _log_task_error(task: asyncio.Task[None]) -> None:
    """Log run failures so nothing disappears silently."""
    if task.cancelled():
      return
    exc = task.exception()
    if exc is not None:
      logger.error("Push dispatch run failed: %s", exc, exc_info=exc)

  async def send_notifications(self, receipt: Receipt) -> None:
    """Run the full pipeline for one receipt."""
    payload = receipt.payload
    try:
      data = payload_to_data(payload, self._renderer)
    except (UnsupportedEventKindError, ContentRenderError) as exc:
      logger.error("fcm push: could not parse payload topic=%s: %s", payload.topic, exc)
      return

    skip_devices = receipt.skip_devices()
    try:
      devices, count = await resolve_devices(self._store, receipt.to.keys())
    except DeviceStoreError as exc:
      logger.error("fcm push: db error: %s", exc)
      return
    if count == 0:
      return

    android = self._config.android
    text = resolve_text(android, data["what"], data.get("content", "")) if android.enabled else None

    for user_id, user_devices in devices.items():
      recipient = receipt.to.get(user_id)
      unread = recipient.unread if recipient is not None else 0
      for device in user_devices:
        if not device.device_id or device.device_id in skip_devices:
          continue

        message = build_message(device, data, topic=payload.topic, unread=unread, text=text, ttl=self._config.time_to_live)
        try:
          result = await self._gateway.send(message)
        except Exception as exc:  # noqa: BLE001
          logger.error("fcm push: send failed user_id=%s: %s", user_id, exc, exc_info=True)
          continue

        remediation = classify(result.outcome)
        if remediation is Remediation.ABORT_BATCH:
          if result.outcome in TRANSIENT_OUTCOMES:
            logger.warning("fcm transient failure outcome=%s: %s", result.outcome.value, result.error)
          else:
            logger.error("fcm push: failed outcome=%s: %s", result.outcome.value, result.error)
          return
        if remediation is Remediation.PRUNE_DEVICE:
          logger.info("fcm push: invalid token user_id=%s: %s", user_id, result.error)
          await self._prune_device(user_id, device.device_id)
        elif not result.ok:
          logger.warning("fcm push: outcome=%s: %s", result.outcome.value, result.error)

  async def _prune_device(self, user_id: str, device_id: str) -> None:
    try:
      await self._store.delete(user_id, device_id)
    except Exception as exc:  # noqa: BLE001
      logger.error("fcm push: failed to delete invalid token user_id=%s: %s", user_id, exc, exc_info=True)
