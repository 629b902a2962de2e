from .chat_context import build_chat_context, build_system_prompt
from .chat_service import (
    ChatService,
    ChatServiceError,
    ChatRateLimitError,
    ChatSession,
    ChatSessionStore,
    InMemoryChatSessionStore,
)

__all__ = [
    "build_chat_context",
    "build_system_prompt",
    "ChatService",
    "ChatServiceError",
    "ChatRateLimitError",
    "ChatSession",
    "ChatSessionStore",
    "InMemoryChatSessionStore",
]
