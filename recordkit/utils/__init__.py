"""
Utilities package for recordkit.

Includes:
- Structured logging configuration helpers.
"""

from recordkit.utils.logging import JsonFormatter, configure_from_settings, configure_logging, get_logger

__all__ = ["JsonFormatter", "configure_from_settings", "configure_logging", "get_logger"]
