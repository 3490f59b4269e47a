"""Centralized logging configuration driven by AppConfig."""

import logging
import sys
from typing import Optional
from pythonjsonlogger.json import JsonFormatter

from knowledge_assistant.config import AppConfig


class LoggingConfig:
    """Centralized logging configuration."""

    LOG_LEVEL = "INFO"
    LOG_FORMAT = "json"
    LOG_MESSAGE_CONTENT = True
    LOG_MASK_SENSITIVE = True
    LOG_SLOW_OPERATION_THRESHOLD_MS = 1000

    @classmethod
    def apply(cls, config: AppConfig) -> None:
        """Copy the logging block of the app config onto this class."""
        cls.LOG_LEVEL = config.log_level.upper()
        cls.LOG_FORMAT = config.log_format.lower()
        cls.LOG_MESSAGE_CONTENT = config.log_message_content
        cls.LOG_MASK_SENSITIVE = config.log_mask_sensitive
        cls.LOG_SLOW_OPERATION_THRESHOLD_MS = config.log_slow_operation_threshold_ms

    @classmethod
    def setup_logging(cls, config: Optional[AppConfig] = None) -> None:
        """Configure the root logger."""
        if config is not None:
            cls.apply(config)

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, cls.LOG_LEVEL, logging.INFO))

        # Remove existing handlers
        root_logger.handlers.clear()

        # stdout for serverless runtimes
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(getattr(logging, cls.LOG_LEVEL, logging.INFO))

        if cls.LOG_FORMAT == "json":
            formatter = JsonFormatter(
                "%(timestamp)s %(levelname)s %(name)s %(message)s",
                timestamp=True
            )
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )

        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

        # Suppress noisy third-party loggers
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)
        logging.getLogger("supabase").setLevel(logging.WARNING)
        logging.getLogger("anthropic").setLevel(logging.WARNING)
        logging.getLogger("openai").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the given name."""
    return logging.getLogger(name)
