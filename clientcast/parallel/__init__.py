"""
clientcast parallel processing module.

Key Components:
    - ParallelRunner: bounded worker pool with a fixed pacing delay per item
    - BatchResult / RequestResult: unordered outcomes, successes and failures
    - map_concurrent / run_batch_sync: synchronous entry points
    - fetch_client_details / mass_send: the two batch jobs of a run

Example:
    >>> from clientcast.parallel import map_concurrent
    >>> result = map_concurrent(client_ids, 50, lookup, pace=0.1)
    >>> details = result.values
"""

from .jobs import build_message_items, fetch_client_details, mass_send, send_test_message
from .runner import (
    DEFAULT_PACE_SECONDS,
    BatchResult,
    ParallelRunner,
    ParallelRunnerConfig,
    RequestResult,
    estimate_duration,
    map_concurrent,
    run_batch_sync,
)

__all__ = [
    "DEFAULT_PACE_SECONDS",
    "BatchResult",
    "ParallelRunner",
    "ParallelRunnerConfig",
    "RequestResult",
    "estimate_duration",
    "map_concurrent",
    "run_batch_sync",
    "build_message_items",
    "fetch_client_details",
    "mass_send",
    "send_test_message",
]
