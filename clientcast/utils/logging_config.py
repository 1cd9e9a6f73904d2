import logging
from pathlib import Path
from typing import Optional


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure basic logging for clientcast.

    Parameters
    ----------
    level:
        Logging level name (e.g., "INFO", "DEBUG").
    log_file:
        Optional path to log output, appended to across runs. When not
        provided, logs go to stderr.
    """

    logging_level = getattr(logging, level.upper(), logging.INFO)
    log_kwargs = {
        "level": logging_level,
        "format": "[%(levelname)s] %(name)s - %(message)s",
        "force": True,
    }

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        log_kwargs["filename"] = log_file
        log_kwargs["encoding"] = "utf-8"

    logging.basicConfig(**log_kwargs)

    # urllib3 logs every pooled connection at DEBUG
    logging.getLogger("urllib3").setLevel(max(logging_level, logging.INFO))
