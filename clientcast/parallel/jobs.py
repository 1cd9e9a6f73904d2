"""
Batch jobs built on ``ParallelRunner``.

- ``fetch_client_details``: one detail lookup per filtered client
- ``mass_send``: one message per recipient, optionally resuming at an offset
- ``send_test_message``: a single send to a known recipient before going wide
"""

from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..client.directory_client import DirectoryClient
from ..types import ClientDetail, ClientSummary, MessageItem, Session
from .runner import DEFAULT_PACE_SECONDS, BatchResult, run_batch_sync

logger = logging.getLogger(__name__)


def fetch_client_details(
    client: DirectoryClient,
    session: Session,
    clients: Sequence[ClientSummary],
    workers: int = 300,
    pace_seconds: float = DEFAULT_PACE_SECONDS,
    timeout_per_call: float | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
) -> BatchResult[ClientSummary, ClientDetail]:
    """
    Look up ``ClientDetail`` for every summary with ``workers`` parallel calls.

    Each detail carries its client id, so results can be matched back to the
    input even though they arrive in completion order.
    """
    logger.info(
        "Fetching details for %d clients with %d workers", len(clients), workers
    )

    def fetch(summary: ClientSummary) -> ClientDetail:
        return client.get_client_detail(session, summary.id)

    return run_batch_sync(
        clients,
        fetch,
        max_workers=workers,
        pace_seconds=pace_seconds,
        timeout_per_call=timeout_per_call,
        item_id=lambda summary: summary.id,
        name="client_details",
        progress_callback=progress_callback,
    )


def build_message_items(
    details: Sequence[ClientDetail],
    text: str,
    start_index: int = 0,
) -> list[MessageItem]:
    """
    Slice ``details`` at ``start_index`` and pair each recipient with ``text``.

    An index past the end yields an empty list.
    """
    if start_index < 0:
        raise ValueError(f"start_index must be >= 0, got {start_index}")
    return [MessageItem(detail=detail, text=text) for detail in details[start_index:]]


def mass_send(
    client: DirectoryClient,
    session: Session,
    details: Sequence[ClientDetail],
    text: str,
    bot_id: str,
    workers: int = 10,
    start_index: int = 0,
    pace_seconds: float = DEFAULT_PACE_SECONDS,
    timeout_per_call: float | None = None,
    progress_callback: Callable[[int, int], None] | None = None,
) -> BatchResult[MessageItem, None]:
    """
    Send ``text`` to every recipient in ``details[start_index:]``.

    Failed recipients are in ``result.failed_items``; feeding them back in
    (or re-running with a later ``start_index``) resumes the broadcast.
    """
    items = build_message_items(details, text, start_index=start_index)
    logger.info(
        "Starting mass send: %d recipients (skipped %d), %d workers",
        len(items),
        min(start_index, len(details)),
        workers,
    )

    def send(item: MessageItem) -> None:
        client.send_message(session, item.recipient, item.text, bot_id)

    result = run_batch_sync(
        items,
        send,
        max_workers=workers,
        pace_seconds=pace_seconds,
        timeout_per_call=timeout_per_call,
        item_id=lambda item: f"{item.detail.id}:{item.recipient}",
        name="mass_send",
        progress_callback=progress_callback,
    )
    for failure in result.failures:
        logger.warning("Mass send failed for %s: %s", failure.item_id, failure.error)
    logger.info(
        "Mass send finished: %d sent, %d failed",
        result.success_count,
        result.failure_count,
    )
    return result


def send_test_message(
    client: DirectoryClient,
    session: Session,
    recipient: str,
    text: str,
    bot_id: str,
) -> None:
    """Send one message to ``recipient``; errors propagate to the caller."""
    logger.info("Sending test message to %s", recipient)
    client.send_message(session, recipient, text, bot_id)
    logger.info("Test message delivered to %s", recipient)
