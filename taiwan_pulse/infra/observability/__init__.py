"""Observability infrastructure — logging, metrics."""

from .logging import setup_logging
from .metrics import get_llm_stats, record_llm_usage

__all__ = ["setup_logging", "record_llm_usage", "get_llm_stats"]
