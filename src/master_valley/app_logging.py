"""Logging configuration helpers."""

import logging

# Transport libraries log every request at INFO; one transform batch is many
# requests.
_NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def configure_logging(level: str | int = "INFO") -> None:
    """Attach one stream handler to the app logger and apply ``level``.

    Safe to call repeatedly: the level is updated on every call, the handler is
    added only once.
    """
    logger = logging.getLogger("master_valley")
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s: %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
