"""Observability: logging configuration."""

from .logging import ROOT_LOGGER, JsonFormatter, TextFormatter, configure_logging

__all__ = ["ROOT_LOGGER", "JsonFormatter", "TextFormatter", "configure_logging"]
