import logging
import sys

import structlog

from eventhub.core.config import Settings

# Libraries that log every request or statement at INFO on their own.
_CHATTY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine.Engine")


def _service_fields(env: str):
    def add_service(logger, method_name, event_dict):
        event_dict.setdefault("service", "eventhub")
        event_dict.setdefault("env", env)
        return event_dict

    return add_service


def configure_logging(settings: Settings) -> None:
    level = logging.getLevelName(settings.log_level)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            _service_fields(settings.env),
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        # Tests build several apps with different settings in one process.
        cache_logger_on_first_use=False,
    )
