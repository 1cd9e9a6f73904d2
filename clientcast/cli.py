"""Command line entry point: ``clientcast config.yaml [--send ...]``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .client.errors import ClientCastError, ConfigError
from .config import load_config
from .pipeline import RunOptions, run_pipeline
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_BAD_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clientcast",
        description="Fetch client details from the bot backend and optionally broadcast a message.",
    )
    parser.add_argument("config", help="Path to config YAML or JSON")
    parser.add_argument("--send", action="store_true", help="Broadcast the configured message")
    parser.add_argument(
        "--start-index",
        type=int,
        default=0,
        help="Skip the first N recipients (resume an interrupted broadcast)",
    )
    parser.add_argument(
        "--skip-test-send",
        action="store_true",
        help="Do not send to test_recipient before the broadcast",
    )
    parser.add_argument(
        "--details-from",
        help="Reuse a client_info.json dump instead of fetching details again",
    )
    parser.add_argument("--message-file", help="Read the message text from this file")
    parser.add_argument("--detail-workers", type=int, help="Override detail_workers")
    parser.add_argument("--send-workers", type=int, help="Override send_workers")
    parser.add_argument("--log-file", help="Write logs to this file")
    parser.add_argument("--log-level", help="Logging level (default from config)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        setup_logging(args.log_level or "INFO", args.log_file)
        logger.error("Config error: %s", e)
        return EXIT_BAD_CONFIG

    if args.message_file:
        cfg.message_file = args.message_file
    if args.detail_workers is not None:
        cfg.detail_workers = args.detail_workers
    if args.send_workers is not None:
        cfg.send_workers = args.send_workers
    if cfg.detail_workers < 1 or cfg.send_workers < 1:
        setup_logging(args.log_level or cfg.log_level, args.log_file or cfg.log_file)
        logger.error("--detail-workers and --send-workers must be >= 1")
        return EXIT_BAD_CONFIG
    if args.start_index < 0:
        setup_logging(args.log_level or cfg.log_level, args.log_file or cfg.log_file)
        logger.error("--start-index must be >= 0")
        return EXIT_BAD_CONFIG

    setup_logging(args.log_level or cfg.log_level, args.log_file or cfg.log_file)

    options = RunOptions(
        send=args.send,
        start_index=args.start_index,
        skip_test_send=args.skip_test_send,
        details_from=args.details_from,
    )
    try:
        report = run_pipeline(cfg, options)
    except ConfigError as e:
        logger.error("Config error: %s", e)
        return EXIT_BAD_CONFIG
    except (ClientCastError, OSError) as e:
        logger.error("Run failed: %s", e)
        return EXIT_RUN_FAILED

    if report.send is not None:
        print(
            f"Sent {report.send.success_count}/{report.send.total_items} messages "
            f"({report.send.failure_count} failed)."
        )
    print(
        f"Processed {report.clients_kept} clients, "
        f"{report.detail_count} details saved to {cfg.output_dir}."
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
