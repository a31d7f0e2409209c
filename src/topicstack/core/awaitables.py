"""Helpers for callables that may be plain functions or coroutine functions."""

from __future__ import annotations

import inspect
from typing import Any


async def resolve(value: Any) -> Any:
    """Await *value* if it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


async def call(func: Any, *args: Any) -> Any:
    """Call *func* with *args* and resolve the result."""
    return await resolve(func(*args))
