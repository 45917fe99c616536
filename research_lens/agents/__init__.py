"""Model factories and the chat assistant."""

from research_lens.agents.base import (
    create_model,
    create_search_model,
    invoke_structured,
    response_text,
)
from research_lens.agents.chat import (
    CHAT_ERROR_REPLY,
    SUGGESTED_QUESTIONS,
    ChatAssistant,
    welcome_message,
)

__all__ = [
    "create_model",
    "create_search_model",
    "invoke_structured",
    "response_text",
    "ChatAssistant",
    "CHAT_ERROR_REPLY",
    "SUGGESTED_QUESTIONS",
    "welcome_message",
]
