"""
Topic definitions.

A topic is an immutable, registry-resident descriptor: a name, an
initializer producing the frame's context data, an ordered list of
conditions, and the callbacks its child topics may report back to.

Usage::

    signup = define_topic(
        "signup",
        is_root=True,
        conditions=[regex_condition("name", [r"^name$"], ask_name)],
        callbacks=[on_validate_name],
    )
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from topicstack.core.conditions import Condition
from topicstack.core.exceptions import UnknownCallbackError

InitFunc = Callable[[Any, Any], Any]
AfterInit = Callable[..., Any]
Callback = Callable[..., Any]


def _no_data(args: Any, user_data: Any) -> None:
    return None


@dataclass(frozen=True, eq=False)
class Topic:
    """A named, reusable unit of dialog behaviour."""

    name: str
    init: InitFunc = _no_data
    is_root: bool = False
    conditions: tuple[Condition, ...] = ()
    callbacks: Mapping[str, Callback] = field(default_factory=lambda: MappingProxyType({}))
    after_init: AfterInit | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.callbacks, MappingProxyType):
            object.__setattr__(self, "callbacks", MappingProxyType(dict(self.callbacks)))

    @property
    def condition_names(self) -> list[str]:
        return [c.name for c in self.conditions]

    def find_condition(self, name: str) -> Condition | None:
        for condition in self.conditions:
            if condition.name == name:
                return condition
        return None

    def callback(self, name: str) -> Callback:
        """Return the callback registered under *name*."""
        try:
            return self.callbacks[name]
        except KeyError:
            raise UnknownCallbackError(self.name, name) from None

    def callback_name(self, selector: str | Callback) -> str:
        """Resolve a callback selector (name or function object) to its registered name."""
        if isinstance(selector, str):
            if selector not in self.callbacks:
                raise UnknownCallbackError(self.name, selector)
            return selector
        for name, func in self.callbacks.items():
            if func is selector:
                return name
        raise UnknownCallbackError(self.name, getattr(selector, "__name__", selector))

    def __repr__(self) -> str:
        kind = "root" if self.is_root else "sub"
        return f"<Topic {self.name!r} ({kind}, {len(self.conditions)} conditions)>"


def _callback_map(
    callbacks: Mapping[str, Callback] | Iterable[Callback] | None,
) -> Mapping[str, Callback]:
    if callbacks is None:
        return MappingProxyType({})
    if isinstance(callbacks, Mapping):
        return MappingProxyType(dict(callbacks))
    mapped: dict[str, Callback] = {}
    for func in callbacks:
        name = getattr(func, "__name__", None)
        if not name or name == "<lambda>":
            raise ValueError("Callbacks given as a list must be named functions")
        mapped[name] = func
    return MappingProxyType(mapped)


def define_topic(
    name: str,
    init: InitFunc | None = None,
    *,
    is_root: bool = False,
    conditions: Iterable[Condition] = (),
    callbacks: Mapping[str, Callback] | Iterable[Callback] | None = None,
    after_init: AfterInit | None = None,
) -> Topic:
    """Build a topic.

    Args:
        name: Registry key for the topic. ``"global"`` and ``"main"`` are
            reserved for the fallback topic and the auto-entered topic.
        init: ``init(args, user_data)`` returning the frame's context data.
        is_root: Entering a root topic replaces the whole stack.
        conditions: Ordered conditions; first match wins.
        callbacks: Mapping name → callback, or named functions keyed by ``__name__``.
        after_init: ``after_init(state)`` run once the new frame is live.
    """
    if not name:
        raise ValueError("Topic name must not be empty")
    conditions = tuple(conditions)
    seen: set[str] = set()
    for condition in conditions:
        if condition.name in seen:
            raise ValueError(f"Duplicate condition {condition.name!r} in topic {name!r}")
        seen.add(condition.name)
    return Topic(
        name=name,
        init=init or _no_data,
        is_root=is_root,
        conditions=conditions,
        callbacks=_callback_map(callbacks),
        after_init=after_init,
    )
