"""
topicstack — stack-based dialog-state engine for turn-based conversations.

Compose topics once, then run one message per call::

    from topicstack import TopicEngine, define_topic, regex_condition

    main = define_topic(
        "main",
        is_root=True,
        conditions=[regex_condition("hello", [r"(?i)^hello"], lambda s, r: "hey, what's up!")],
    )
    engine = TopicEngine([main, define_topic("global")])

    turn = await engine.handle("hello world")
    turn.output        # ["hey, what's up!"]
    turn.state         # SerializableStack; store it and pass it back next turn
"""

from __future__ import annotations

from topicstack.core.conditions import (
    Condition,
    RegexParseResult,
    define_condition,
    message_text,
    no_match_on,
    regex_condition,
    regex_predicate,
)
from topicstack.core.conversation import ConversationRunner
from topicstack.core.dispatcher import DispatchResult, Dispatcher
from topicstack.core.engine import TopicEngine, TurnResult, init
from topicstack.core.exceptions import (
    IllegalTopicTransitionError,
    RegistryError,
    SerializationError,
    StoreError,
    TopicStackError,
    TurnTimeoutError,
    UnknownCallbackError,
    UnknownTopicError,
)
from topicstack.core.protocol import (
    clear_all_topics,
    disable_conditions,
    disable_conditions_except,
    enter_topic,
    exit_topic,
)
from topicstack.core.registry import GLOBAL_TOPIC, MAIN_TOPIC, TopicRegistry
from topicstack.core.serialization import (
    SerializableFrame,
    SerializableStack,
    from_serializable,
    to_serializable,
)
from topicstack.core.stack import ApplicationState, Stack, TopicContext, active_context
from topicstack.core.store import ConversationStore, MemoryStore, SQLiteStore
from topicstack.core.topics import Topic, define_topic

__version__ = "0.4.0"

__all__ = [
    "GLOBAL_TOPIC",
    "MAIN_TOPIC",
    "ApplicationState",
    "Condition",
    "ConversationRunner",
    "ConversationStore",
    "DispatchResult",
    "Dispatcher",
    "IllegalTopicTransitionError",
    "MemoryStore",
    "RegexParseResult",
    "RegistryError",
    "SQLiteStore",
    "SerializableFrame",
    "SerializableStack",
    "SerializationError",
    "Stack",
    "StoreError",
    "Topic",
    "TopicContext",
    "TopicEngine",
    "TopicRegistry",
    "TopicStackError",
    "TurnResult",
    "TurnTimeoutError",
    "UnknownCallbackError",
    "UnknownTopicError",
    "active_context",
    "clear_all_topics",
    "define_condition",
    "define_topic",
    "disable_conditions",
    "disable_conditions_except",
    "enter_topic",
    "exit_topic",
    "from_serializable",
    "init",
    "message_text",
    "no_match_on",
    "regex_condition",
    "regex_predicate",
    "to_serializable",
]
