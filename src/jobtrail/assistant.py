"""Conversation with the job search assistant."""
from __future__ import annotations

from typing import Iterable, Protocol

from .log import get_logger
from .notifier import Message, MessageLog, MessageRole

log = get_logger(__name__)

FALLBACK_REPLY = "Sorry, I'm having trouble connecting right now. Please try again in a moment."


class ChatModel(Protocol):
    async def chat(self, history: Iterable[Message]) -> str: ...


class AssistantChat:
    """Append user turns and model replies to the shared message log."""

    def __init__(self, messages: MessageLog, model: ChatModel) -> None:
        self.messages = messages
        self.model = model

    async def send(self, text: str) -> Message:
        text = text.strip()
        if not text:
            raise ValueError("Message text cannot be blank")
        self.messages.append(Message.create(MessageRole.USER, text))
        try:
            reply = await self.model.chat(list(self.messages))
        except Exception as exc:
            log.warning("Assistant reply failed: %s", exc)
            reply = FALLBACK_REPLY
        return self.messages.append(Message.create(MessageRole.MODEL, reply))
