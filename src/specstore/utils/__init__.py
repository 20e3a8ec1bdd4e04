"""Shared utilities for specstore."""

from ._logging import LogFormatType, create_default_logger, create_store_logger

__all__ = [
    "LogFormatType",
    "create_default_logger",
    "create_store_logger",
]
