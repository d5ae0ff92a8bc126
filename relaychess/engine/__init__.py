"""
Engine Module

Client for the remote move-suggestion API.
"""

from .client import (
    StockfishClient,
    RetryPolicy,
    EngineMove,
    EngineExhausted,
    EngineError,
    clamp_depth,
)

__all__ = [
    'StockfishClient',
    'RetryPolicy',
    'EngineMove',
    'EngineExhausted',
    'EngineError',
    'clamp_depth'
]
