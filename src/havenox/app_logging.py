"""Logging configuration helpers."""

import logging

_CONTEXT_FIELDS = ("tent_id", "connection_id", "method", "path", "error")


class _ContextFormatter(logging.Formatter):
    """Appends the tent/room identifiers passed through ``extra=`` to each line."""

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = " ".join(
            f"{name}={getattr(record, name)}"
            for name in _CONTEXT_FIELDS
            if getattr(record, name, None) is not None
        )
        return f"{line} [{context}]" if context else line


def resolve_level(level: str | int) -> int:
    """Map a level name such as ``"debug"`` to its numeric value."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def configure_logging(level: str | int = logging.INFO) -> None:
    """Configure the ``havenox`` logger; repeated calls only adjust the level."""
    logger = logging.getLogger("havenox")
    logger.setLevel(resolve_level(level))
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(
        _ContextFormatter("%(asctime)s %(levelname)s: %(name)s: %(message)s")
    )
    logger.addHandler(handler)
    logger.propagate = False
