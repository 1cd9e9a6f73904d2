"""
Run driver: authenticate, list, filter, fetch details, persist, broadcast.

Every step that is not a batch raises on failure and stops the run. Batch
steps never raise for a single item; their failures are in the returned
``BatchResult``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .client.directory_client import DirectoryClient
from .client.errors import AuthenticationError, ConfigError
from .config import ClientCastConfig
from .parallel.jobs import fetch_client_details, mass_send, send_test_message
from .parallel.runner import BatchResult
from .storage.json_dump import (
    CLIENTS_FILENAME,
    DETAILS_FILENAME,
    SEND_FAILURES_FILENAME,
    load_client_details,
    save_client_details,
    save_clients,
    save_send_failures,
)
from .types import ClientDetail, Session

logger = logging.getLogger(__name__)

PREVIEW_LIMIT = 10


@dataclass
class RunOptions:
    send: bool = False
    start_index: int = 0
    skip_test_send: bool = False
    # Use an earlier details dump instead of listing and fetching again
    details_from: Optional[str] = None


@dataclass
class RunReport:
    clients_total: int = 0
    clients_kept: int = 0
    clients_dropped: int = 0
    details: Optional[BatchResult] = None
    send: Optional[BatchResult] = None
    output_files: List[Path] = field(default_factory=list)
    elapsed_sec: float = 0.0

    @property
    def detail_count(self) -> int:
        return self.details.success_count if self.details else 0


class ClientCastPipeline:
    """
    Sequences a full run against one ``DirectoryClient``.

    Example:
        >>> cfg = load_config("config.yaml")
        >>> with DirectoryClient(cfg.base_url, timeout=cfg.request_timeout) as client:
        ...     report = ClientCastPipeline(cfg, client).run(RunOptions(send=True))
    """

    def __init__(self, config: ClientCastConfig, client: DirectoryClient) -> None:
        self.config = config
        self.client = client
        self.output_dir = Path(config.output_dir)

    def run(self, options: Optional[RunOptions] = None) -> RunReport:
        options = options or RunOptions()
        start = time.monotonic()
        report = RunReport()

        message = None
        if options.send:
            message = self.config.read_message()
            if not message:
                raise ConfigError("Sending requested but no message is configured")
            if not self.config.bot_id:
                raise ConfigError("Sending requested but no bot_id is configured")

        session = self.authenticate()

        if options.details_from:
            details = load_client_details(options.details_from)
            logger.info(
                "Loaded %d client details from %s", len(details), options.details_from
            )
        else:
            details = self.collect_details(session, report)

        if options.send and message:
            if self.config.test_recipient and not options.skip_test_send:
                send_test_message(
                    self.client,
                    session,
                    self.config.test_recipient,
                    message,
                    self.config.bot_id,
                )
            report.send = mass_send(
                self.client,
                session,
                details,
                message,
                self.config.bot_id,
                workers=self.config.send_workers,
                start_index=options.start_index,
                pace_seconds=self.config.pace_seconds,
                timeout_per_call=self.config.request_timeout,
            )
            if report.send.failures:
                report.output_files.append(
                    save_send_failures(
                        report.send, self.output_dir / SEND_FAILURES_FILENAME
                    )
                )

        report.elapsed_sec = time.monotonic() - start
        logger.info(
            "Run finished in %.1fs: %d clients kept, %d details",
            report.elapsed_sec,
            report.clients_kept,
            len(details),
        )
        return report

    def authenticate(self) -> Session:
        session = self.client.authenticate(self.config.credentials)
        if not session.is_valid:
            raise AuthenticationError(
                f"No access token received for {self.config.login} "
                f"(isAuth={session.authenticated})"
            )
        logger.info("Authenticated as %s", self.config.login)
        return session

    def collect_details(self, session: Session, report: RunReport) -> List[ClientDetail]:
        clients = self.client.list_clients(session)
        filtered = self.client.filter_clients(clients)
        report.clients_total = filtered.total
        report.clients_kept = len(filtered.retained)
        report.clients_dropped = filtered.dropped
        report.output_files.append(
            save_clients(filtered.retained, self.output_dir / CLIENTS_FILENAME)
        )

        report.details = fetch_client_details(
            self.client,
            session,
            filtered.retained,
            workers=self.config.detail_workers,
            pace_seconds=self.config.pace_seconds,
            timeout_per_call=self.config.request_timeout,
        )
        details = report.details.values
        logger.info(
            "Fetched %d details in %.1fs (%d failed)",
            len(details),
            report.details.total_time_ms / 1000,
            report.details.failure_count,
        )
        report.output_files.append(
            save_client_details(details, self.output_dir / DETAILS_FILENAME)
        )

        for detail in details[:PREVIEW_LIMIT]:
            logger.info("Client %d, telegram id %s", detail.id, detail.telegram_id)
        if len(details) > PREVIEW_LIMIT:
            logger.info("... and %d more clients", len(details) - PREVIEW_LIMIT)
        return details


def run_pipeline(config: ClientCastConfig, options: Optional[RunOptions] = None) -> RunReport:
    """Open a client from ``config`` and run the whole pipeline."""
    pool_size = max(config.detail_workers, config.send_workers)
    with DirectoryClient(
        base_url=config.base_url,
        timeout=config.request_timeout,
        pool_size=pool_size,
    ) as client:
        return ClientCastPipeline(config, client).run(options)
