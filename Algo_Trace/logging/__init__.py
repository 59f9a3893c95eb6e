"""Structured logging helpers."""

from .logger import log_entry, log_record

__all__ = ["log_entry", "log_record"]
