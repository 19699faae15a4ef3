"""
Client-side helpers for calling the injected generation function
"""

from .invoker import RetryingInvoker

__all__ = ["RetryingInvoker"]
