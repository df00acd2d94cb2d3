"""
In-App Auto-Publisher — background thread that runs queue passes on an interval.

For hosts without an external cron: checks the scheduling_queue every
`check_interval` seconds and publishes whatever is due.
"""

import logging
import threading
import time

from .queue_processor import QueueProcessor

logger = logging.getLogger(__name__)

_publisher_thread = None
_publisher_running = False


def _publisher_loop(processor: QueueProcessor, check_interval: int):
    """Background loop; a failing pass is logged and retried next interval."""
    global _publisher_running
    logger.info(f"🚀 Auto-publisher started (checking every {check_interval}s)")

    while _publisher_running:
        try:
            summary = processor.run_pass()
            if summary.total:
                logger.info(f"Run complete: {summary.succeeded} published, {summary.failed} failed")
        except Exception as e:
            logger.error(f"Publisher error: {e}")

        # Sleep in small increments so we can stop quickly
        for _ in range(check_interval):
            if not _publisher_running:
                break
            time.sleep(1)

    logger.info("Auto-publisher stopped")


def start_publisher(processor: QueueProcessor, check_interval=60):
    """Start the background auto-publisher thread (idempotent)."""
    global _publisher_thread, _publisher_running

    if _publisher_running and _publisher_thread and _publisher_thread.is_alive():
        return _publisher_thread

    _publisher_running = True
    _publisher_thread = threading.Thread(
        target=_publisher_loop, args=(processor, check_interval), daemon=True
    )
    _publisher_thread.start()
    return _publisher_thread


def stop_publisher(timeout=None):
    """Stop the background auto-publisher thread."""
    global _publisher_running
    _publisher_running = False
    if _publisher_thread is not None:
        _publisher_thread.join(timeout)


def is_running() -> bool:
    return bool(_publisher_running and _publisher_thread and _publisher_thread.is_alive())
