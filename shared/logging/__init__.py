"""Structured logging setup shared by catalog modules."""

from .structured_logger import bind_request, configure_logging, unbind_request

__all__ = ["bind_request", "configure_logging", "unbind_request"]
