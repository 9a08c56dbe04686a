"""
Structured logging setup shared by the API and the CLI.
"""
import logging
import sys

import structlog

from person_registry.config.settings import MonitoringSettings


def configure_logging(monitoring: MonitoringSettings) -> None:
    """Configure stdlib logging and structlog from monitoring settings"""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=monitoring.log_level,
        force=True,
    )

    if monitoring.log_format == "json":
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            *renderers,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
