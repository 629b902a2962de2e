"""
Chat Service - Question Answering over Uploaded Reviews
========================================================

ARCHITECTURAL DECISION:
- Talks to any OpenAI-compatible chat-completions endpoint
- Sessions live in an injected ChatSessionStore, never in module state,
  so tests and multiple users get isolated conversations
- Prompt construction only: the review context is rendered once per
  session by chat_context and sent as the system message

EXTENSIBILITY:
- To persist sessions: implement ChatSessionStore (e.g. Redis, SQL)
- To use a different model: set LLM_MODEL / LLM_API_URL
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import requests

from ...domain.models import AggregatedData
from ..config import get_settings
from ..config.settings import LLMSettings
from .chat_context import build_system_prompt

logger = logging.getLogger(__name__)


class ChatServiceError(Exception):
    """Base exception for chat service errors."""
    pass


class ChatRateLimitError(ChatServiceError):
    """The LLM provider rejected the call with HTTP 429."""
    pass


@dataclass
class ChatSession:
    """One conversation about one uploaded dataset."""
    session_id: str
    system_prompt: str
    history: List[Dict[str, str]] = field(default_factory=list)


class ChatSessionStore(ABC):
    """
    Abstract storage for chat sessions.
    Implement this interface to add new session backends.
    """

    @abstractmethod
    def get(self, session_id: str) -> Optional[ChatSession]:
        """Return the session or None if it does not exist."""
        ...

    @abstractmethod
    def save(self, session: ChatSession) -> None:
        """Create or replace a session."""
        ...

    @abstractmethod
    def delete(self, session_id: str) -> bool:
        """Remove a session. Returns True if it existed."""
        ...

    @abstractmethod
    def clear(self) -> int:
        """Remove every session. Returns how many were removed."""
        ...


class InMemoryChatSessionStore(ChatSessionStore):
    """Process-local session store; one instance per app or per test."""

    def __init__(self):
        self._sessions: Dict[str, ChatSession] = {}

    def get(self, session_id: str) -> Optional[ChatSession]:
        return self._sessions.get(session_id)

    def save(self, session: ChatSession) -> None:
        self._sessions[session.session_id] = session

    def delete(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def clear(self) -> int:
        count = len(self._sessions)
        self._sessions.clear()
        return count

    def __len__(self) -> int:
        return len(self._sessions)


class ChatService:
    """
    Review Q&A over an LLM.

    USAGE:
        service = ChatService(InMemoryChatSessionStore())
        service.start_session("abc", aggregated_data)
        answer = service.send_message("abc", "What do users complain about?")
    """

    def __init__(self, store: ChatSessionStore, settings: Optional[LLMSettings] = None):
        self._store = store
        self._settings = settings or get_settings().llm

        if not self._settings.api_key:
            logger.warning("No LLM_API_KEY set. Chat requests will fail until it is configured.")

    @property
    def is_configured(self) -> bool:
        return bool(self._settings.api_key)

    def start_session(self, session_id: str, data: AggregatedData) -> ChatSession:
        """Start (or restart) a session grounded in the given snapshot."""
        prompt = build_system_prompt(data, max_reviews=self._settings.max_context_reviews)
        session = ChatSession(session_id=session_id, system_prompt=prompt)
        self._store.save(session)
        logger.info(f"Chat session {session_id} started with {data.total_reviews} reviews")
        return session

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        return self._store.get(session_id)

    def has_session(self, session_id: str) -> bool:
        return self._store.get(session_id) is not None

    def end_session(self, session_id: str) -> bool:
        return self._store.delete(session_id)

    def reset_sessions(self) -> None:
        """Drop every session, used when a new review snapshot replaces the old one."""
        removed = self._store.clear()
        if removed:
            logger.info(f"Cleared {removed} chat sessions for new review data")

    def send_message(self, session_id: str, message: str) -> str:
        """
        Ask a question within a session.

        Returns:
            The assistant's reply text.
        """
        session = self._store.get(session_id)
        if session is None:
            raise ChatServiceError(f"Unknown chat session: {session_id}")

        if not message or not message.strip():
            raise ChatServiceError("Message is empty")

        if not self.is_configured:
            raise ChatServiceError(
                "LLM API key is not configured. Add LLM_API_KEY to your .env file."
            )

        history = session.history[-self._settings.max_history_messages:]
        messages = [{"role": "system", "content": session.system_prompt}]
        messages += history
        messages.append({"role": "user", "content": message})

        reply = self._complete(messages)

        session.history.append({"role": "user", "content": message})
        session.history.append({"role": "assistant", "content": reply})
        self._store.save(session)
        return reply

    def _complete(self, messages: List[Dict[str, str]]) -> str:
        headers = {
            "Authorization": f"Bearer {self._settings.api_key}",
            "Content-Type": "application/json",
        }

        payload = {
            "model": self._settings.model,
            "messages": messages,
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }

        try:
            response = requests.post(
                self._settings.api_url,
                headers=headers,
                json=payload,
                timeout=self._settings.timeout_seconds,
            )
        except requests.Timeout as e:
            logger.warning("LLM API timeout")
            raise ChatServiceError("The assistant took too long to answer. Please try again.") from e
        except requests.RequestException as e:
            logger.warning(f"LLM API error: {e}")
            raise ChatServiceError(f"Could not reach the assistant: {e}") from e

        if response.status_code == 429:
            raise ChatRateLimitError("Rate limit reached. Please wait a moment and try again.")
        if response.status_code == 401:
            raise ChatServiceError("LLM API key was rejected. Check LLM_API_KEY.")

        try:
            response.raise_for_status()
        except requests.HTTPError as e:
            logger.warning(f"LLM API error: {e}")
            raise ChatServiceError(f"Assistant request failed: {e}") from e

        content = self._extract_response_content(response.json())
        if not content:
            raise ChatServiceError("The assistant returned an empty answer.")
        return content

    def _extract_response_content(self, data: dict) -> str:
        """Extract text content from API response."""
        try:
            choices = data.get("choices", [])
            if choices:
                message = choices[0].get("message", {})
                return (message.get("content") or "").strip()
        except (AttributeError, KeyError, IndexError, TypeError):
            pass
        return ""
