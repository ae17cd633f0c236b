"""Asynchronous tasks of the core module."""

from __future__ import annotations

import structlog
from celery import shared_task
from django.db import transaction

from modules.core.models import OutboxEvent
from shared.domain.events import DomainEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)


@shared_task(name="core.debug_task")
def debug_task():
    """Diagnostic task used to check that the worker is up."""
    logger.info("debug_task.executed", status="ok")
    return {"status": "ok", "message": "Celery is working"}


@shared_task(name="core.publish_outbox_events")
def publish_outbox_events(batch_size: int = 100) -> dict:
    """Deliver pending outbox events to the in-process event bus.

    Each event is handled in its own transaction with the row locked, so
    two workers never publish the same event.  Handler failures mark the
    row as ``FAILED`` and bump ``retry_count``; the batch carries on.
    """
    published = 0
    failed = 0
    candidate_ids = list(
        OutboxEvent.publishable().values_list("id", flat=True)[:batch_size]
    )
    for event_id in candidate_ids:
        with transaction.atomic():
            row = (
                OutboxEvent.publishable()
                .select_for_update()
                .filter(id=event_id)
                .first()
            )
            if row is None:
                continue
            log = logger.bind(event_type=row.event_type, aggregate_id=row.aggregate_id)
            try:
                event = DomainEvent.from_payload(row.event_type, row.payload)
                event_bus.publish(event)
            except Exception as exc:  # noqa: BLE001 - recorded on the row
                row.mark_as_failed(f"{type(exc).__name__}: {exc}")
                log.warning("outbox.publish_failed", error=str(exc))
                failed += 1
                continue
            row.mark_as_published()
            published += 1

    logger.info("outbox.batch_processed", published=published, failed=failed)
    return {"published": published, "failed": failed}
