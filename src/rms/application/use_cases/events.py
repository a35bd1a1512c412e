from __future__ import annotations

import logging

from rms.application.ports.publisher import EventPublisher

logger = logging.getLogger(__name__)


def publish_quietly(publisher: EventPublisher, channel: str, message: str) -> None:
    """Publish after commit; a broker outage never fails the request."""
    try:
        publisher.publish(channel=channel, message=message)
    except Exception:
        logger.warning("event_publish_failed", extra={"channel": channel}, exc_info=True)
