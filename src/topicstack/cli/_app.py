"""Resolve ``module:attribute`` application specs into a topic registry."""

from __future__ import annotations

import importlib

from topicstack.core.registry import TopicRegistry

DEFAULT_APP = "topicstack.demo:build_registry"


def load_registry(spec: str = DEFAULT_APP) -> TopicRegistry:
    """Import *spec* and return its registry.

    The attribute may be a ``TopicRegistry``, an iterable of topics, or a
    zero-argument callable returning either.
    """
    module_name, _, attr = spec.partition(":")
    if not module_name:
        raise ValueError(f"Invalid app spec {spec!r}; expected 'module:attribute'")
    module = importlib.import_module(module_name)
    try:
        obj = getattr(module, attr or "build_registry")
    except AttributeError:
        raise ValueError(f"{module_name!r} has no attribute {attr or 'build_registry'!r}") from None
    if callable(obj) and not isinstance(obj, TopicRegistry):
        obj = obj()
    if isinstance(obj, TopicRegistry):
        return obj
    return TopicRegistry(obj)
