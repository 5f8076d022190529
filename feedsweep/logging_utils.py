import json
import logging
from datetime import datetime, timezone


logging.basicConfig(level=logging.INFO)

logger = logging.getLogger("feedsweep")


def configure_logging(level: str) -> None:
    logger.setLevel(level.upper())


def log_event(event: str, *, level: int = logging.INFO, **fields):
    if not logger.isEnabledFor(level):
        return

    payload = {
        "ts": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "level": logging.getLevelName(level),
        **fields,
    }

    logger.log(level, json.dumps(payload, default=str))
