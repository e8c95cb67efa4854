"""Utilities package."""

from .logger import get_app_logger, setup_logger, init_app_logger
from .query_cache import QueryCache, make_cache_key

__all__ = [
    "get_app_logger",
    "setup_logger",
    "init_app_logger",
    "QueryCache",
    "make_cache_key",
]
