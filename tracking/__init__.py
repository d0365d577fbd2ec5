"""Function call tracking helpers."""

from .runtime import counts, reset, t

__all__ = ["t", "counts", "reset"]
