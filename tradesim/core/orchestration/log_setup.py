from __future__ import annotations

import logging

_NOISY_LOGGERS = ("botocore", "boto3", "urllib3")


def setup_logging(level: str = "INFO") -> None:
    level_name = str(level or "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
