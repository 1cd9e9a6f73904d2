"""Flat JSON dumps of a run's collections. Each save overwrites the file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable, List

from ..client.errors import DecodeError
from ..parallel.runner import BatchResult
from ..types import ClientDetail, ClientSummary

logger = logging.getLogger(__name__)

CLIENTS_FILENAME = "all_clients.json"
DETAILS_FILENAME = "client_info.json"
SEND_FAILURES_FILENAME = "send_failures.json"


def save_json(data: Any, path: str | Path) -> Path:
    output_file = Path(path)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    with open(output_file, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4, ensure_ascii=False)
    return output_file


def save_clients(clients: Iterable[ClientSummary], path: str | Path) -> Path:
    rows = [c.to_dict() for c in clients]
    logger.info("Saving %d clients to %s", len(rows), path)
    output_file = save_json(rows, path)
    logger.info("Clients saved to %s", output_file)
    return output_file


def save_client_details(details: Iterable[ClientDetail], path: str | Path) -> Path:
    rows = [d.to_dict() for d in details]
    logger.info("Saving details of %d clients to %s", len(rows), path)
    output_file = save_json(rows, path)
    logger.info("Client details saved to %s", output_file)
    return output_file


def save_send_failures(result: BatchResult, path: str | Path) -> Path:
    """
    Record failed recipients of a mass send so a later run can retry them.
    """
    data = {
        "total": result.total_items,
        "sent": result.success_count,
        "failed": result.failure_count,
        "failures": [
            {
                "id": r.item.detail.id,
                "telegramId": r.item.recipient,
                "error": r.error,
                "errorType": r.error_type,
            }
            for r in result.failures
        ],
    }
    output_file = save_json(data, path)
    logger.info("Saved %d send failures to %s", result.failure_count, output_file)
    return output_file


def load_client_details(path: str | Path) -> List[ClientDetail]:
    """Read a details dump written by ``save_client_details``."""
    try:
        with open(path, encoding="utf-8") as f:
            rows = json.load(f)
        return [ClientDetail.from_dict(row) for row in rows]
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise DecodeError(f"{path} is not a client details dump: {e}") from e
