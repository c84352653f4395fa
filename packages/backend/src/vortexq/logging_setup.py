"""structlog configuration.

Learn: The log level setting doubles as an environment switch:
- local: colored console output, DEBUG and up
- dev:   JSON lines, DEBUG and up
- prod:  JSON lines, INFO and up
Any stdlib level name (debug, info, warning, ...) selects console output
at that level. Unknown values fall back to INFO.

Request IDs bound by RequestIdMiddleware show up in every entry through
structlog's contextvars merge.
"""

import logging

import structlog

_ENVIRONMENTS = {
    "local": (logging.DEBUG, False),
    "dev": (logging.DEBUG, True),
    "prod": (logging.INFO, True),
}


def resolve_level(log_level: str) -> tuple[int, bool]:
    """Map a configured log level to (stdlib level, render as JSON)."""
    key = log_level.strip().lower()
    if key in _ENVIRONMENTS:
        return _ENVIRONMENTS[key]
    level = logging.getLevelName(key.upper())
    if isinstance(level, int):
        return level, False
    return logging.INFO, False


def build_processors(as_json: bool) -> list:
    """The structlog processor chain for one output format.

    ConsoleRenderer formats exceptions itself, so format_exc_info only
    runs ahead of the JSON renderer.
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if as_json:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())
    return processors


def setup_logging(log_level: str = "local"):
    level, as_json = resolve_level(log_level)
    structlog.configure(
        processors=build_processors(as_json),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
    return structlog.get_logger()
