"""Conversation runner — binds conversation ids to stored stacks."""

from topicstack.core.conversation.runner import ConversationRunner

__all__ = [
    "ConversationRunner",
]
