"""
Entry/exit protocol — the only code that mutates a conversation's stack.

Correctness invariants:
  - Only the active frame (identity with ``stack.top``) may enter, exit or
    clear.  ``enter_topic`` and ``clear_all_topics`` are also allowed when
    the stack is empty.  Violations raise ``IllegalTopicTransitionError``
    before anything is mutated.
  - Entering a root topic replaces the whole stack with the new frame; no
    exit callbacks fire for the discarded frames.
  - Entering a non-root topic pushes.
  - ``exit_topic`` pops exactly one frame and, if it carried a callback,
    invokes it once with the now-exposed parent frame active.
  - ``disable_conditions`` / ``disable_conditions_except`` overwrite the
    active frame's deny-list / allow-list; they never merge.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from topicstack.core.awaitables import call
from topicstack.core.exceptions import IllegalTopicTransitionError, UnknownCallbackError
from topicstack.core.stack import ApplicationState, TopicContext, detached_context
from topicstack.core.topics import Callback, Topic

logger = structlog.get_logger()


def _check_owner(state: ApplicationState, action: str) -> None:
    top = state.stack.top
    if top is not None and state.context is not top:
        raise IllegalTopicTransitionError(
            f"Cannot {action} from topic {state.context.topic.name!r}: "
            f"the active topic is {top.topic.name!r}"
        )


async def enter_topic(
    state: ApplicationState,
    new_topic: Topic,
    parent_topic: Topic | None = None,
    args: Any = None,
    callback: str | Callback | None = None,
) -> Any:
    """Enter *new_topic* from the active frame.

    Args:
        state: State of the calling handler; its context must be active.
        new_topic: Topic to instantiate.
        parent_topic: Topic that owns *callback* (usually the caller's topic).
        args: Passed to ``new_topic.init(args, user_data)``.
        callback: Name of, or the function registered as, a callback on
            *parent_topic*; invoked when the new frame exits.

    Returns:
        Whatever ``new_topic.after_init`` returned, or ``None``.
    """
    _check_owner(state, "enter a topic")

    callback_name: str | None = None
    if callback is not None:
        if parent_topic is None:
            raise UnknownCallbackError(None, callback)
        callback_name = parent_topic.callback_name(callback)

    data = await call(new_topic.init, args, state.user_data)
    frame = TopicContext(
        topic=new_topic,
        data=data,
        parent_topic=parent_topic,
        callback_name=callback_name,
    )

    stack = state.stack
    if new_topic.is_root:
        discarded = len(stack.items)
        stack.items = [frame]
    else:
        discarded = 0
        stack.items.append(frame)

    logger.debug(
        "topic_entered",
        topic=new_topic.name,
        parent=parent_topic.name if parent_topic else None,
        root=new_topic.is_root,
        discarded=discarded,
        depth=len(stack.items),
    )

    if new_topic.after_init is not None:
        return await call(
            new_topic.after_init,
            ApplicationState(context=frame, stack=stack, user_data=state.user_data),
        )
    return None


async def exit_topic(state: ApplicationState, args: Any = None) -> Any:
    """Pop the active frame and report *args* to its parent through the callback.

    Returns the callback's result, or ``None`` when the frame had no callback.
    """
    stack = state.stack
    if stack.top is None:
        raise IllegalTopicTransitionError("Cannot exit a topic: the stack is empty")
    _check_owner(state, "exit")

    frame = stack.items.pop()
    callback = frame.callback

    logger.debug(
        "topic_exited",
        topic=frame.topic.name,
        callback=frame.callback_name,
        depth=len(stack.items),
    )

    if callback is None:
        return None

    parent = stack.top
    if parent is None and frame.parent_topic is not None:
        parent = detached_context(frame.parent_topic)
    parent_state = ApplicationState(context=parent, stack=stack, user_data=state.user_data)
    return await call(callback, parent_state, args)


async def clear_all_topics(state: ApplicationState) -> None:
    """Abandon every frame. No callbacks fire."""
    _check_owner(state, "clear topics")
    dropped = len(state.stack.items)
    state.stack.items = []
    logger.debug("topics_cleared", dropped=dropped)


def disable_conditions(state: ApplicationState, names: Iterable[str]) -> None:
    """Set the active frame's deny-list for global conditions."""
    state.context.disabled_condition_names = list(names)


def disable_conditions_except(state: ApplicationState, names: Iterable[str]) -> None:
    """Set the active frame's allow-list for global conditions."""
    state.context.active_condition_names = list(names)
