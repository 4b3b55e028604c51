"""Middleware components."""

from .assembler import PipelineAssembler
from .caching import CachingMiddleware, ResultCache, message_cache_key
from .definition import MiddlewareDescriptor
from .logging import LoggingMiddleware
from .pipeline import PipelineInstance, PipelineLayer
from .registry import MiddlewareRegistry
from .retry import RetryMiddleware, RetryPolicy

__all__ = [
    "CachingMiddleware",
    "LoggingMiddleware",
    "MiddlewareDescriptor",
    "MiddlewareRegistry",
    "PipelineAssembler",
    "PipelineInstance",
    "PipelineLayer",
    "ResultCache",
    "RetryMiddleware",
    "RetryPolicy",
    "message_cache_key",
]
