import logging

logger = logging.getLogger(__name__)
_warned_keys: set[str] = set()


def warn_once(key: str, message: str) -> None:
    if key not in _warned_keys:
        logger.warning(message)
        _warned_keys.add(key)
