"""
clientcast: batch client for the bot backend client directory.

Authenticates once, lists clients, fetches per-client details with a bounded
worker pool, and broadcasts messages through the same pool.
"""

from .client import DirectoryClient, filter_reachable
from .config import ClientCastConfig, load_config
from .parallel import BatchResult, ParallelRunner, RequestResult, map_concurrent
from .pipeline import ClientCastPipeline, RunOptions, RunReport, run_pipeline
from .types import ClientDetail, ClientSummary, Credentials, MessageItem, Session

__version__ = "0.1.0"

__all__ = [
    "DirectoryClient",
    "filter_reachable",
    "ClientCastConfig",
    "load_config",
    "BatchResult",
    "ParallelRunner",
    "RequestResult",
    "map_concurrent",
    "ClientCastPipeline",
    "RunOptions",
    "RunReport",
    "run_pipeline",
    "ClientDetail",
    "ClientSummary",
    "Credentials",
    "MessageItem",
    "Session",
]
