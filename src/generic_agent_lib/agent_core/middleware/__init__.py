"""Middleware contracts, composition and the built-in middlewares."""

from .base import (
    MiddlewareContext,
    Middleware,
    StreamingMiddleware,
    FunctionMiddleware,
    FunctionStreamingMiddleware,
    as_middleware,
    as_streaming_middleware,
)
from .agent import MiddlewareAgent, MiddlewareStreamingAgent
from .function_call import FunctionCallMiddleware
from .logging_middleware import PrintMessageMiddleware

__all__ = [
    "MiddlewareContext",
    "Middleware",
    "StreamingMiddleware",
    "FunctionMiddleware",
    "FunctionStreamingMiddleware",
    "as_middleware",
    "as_streaming_middleware",
    "MiddlewareAgent",
    "MiddlewareStreamingAgent",
    "FunctionCallMiddleware",
    "PrintMessageMiddleware",
]
