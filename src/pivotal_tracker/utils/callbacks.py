"""Helpers for caller-supplied callbacks."""

from collections.abc import Callable
import inspect
from typing import Any


async def invoke_callback(callback: Callable[..., Any] | None, *args: Any) -> None:
    """Call a plain or async callback; None is a no-op."""
    if callback is None:
        return
    result = callback(*args)
    if inspect.isawaitable(result):
        await result
