"""
Root logging setup for applications that embed the ingestion pipeline.

The package itself never configures logging; a worker or script calls
``configure_logging()`` once at startup, before the first ingestion.
"""

import logging
import os
from typing import Optional


def configure_logging(env: Optional[str] = None) -> None:
    """
    Configure root logging from ``env`` or the ENV environment variable.

    ENV=dev: INFO level with detailed format (default)
    ENV=prod/staging: WARNING level, minimal logs
    """
    env = (env or os.getenv("ENV", "dev")).lower()
    is_dev = env == "dev"

    logging.basicConfig(
        level=logging.INFO if is_dev else logging.WARNING,
        format=(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
            if is_dev
            else "%(levelname)s | %(message)s"
        ),
        datefmt="%H:%M:%S",
    )

    # GitPython logs every git invocation at DEBUG
    logging.getLogger("git").setLevel(logging.WARNING)
