"""Assistant messages raised by job status transitions."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional
from uuid import uuid4

from .jobs import Job, JobStatus
from .log import get_logger

log = get_logger(__name__)

ASSISTANT_NAME = "Claire"

WELCOME_TEXT = (
    f"Hi there! I'm {ASSISTANT_NAME}, your personal job search assistant. "
    "How can I help you land your dream job today?"
)

ACCEPTED_TEMPLATE = (
    "🎉 Congratulations! I noticed you accepted an offer for the **{role}** position at "
    "**{company}**! That is absolutely fantastic news! Do you need any tips on salary "
    "negotiation or preparing for your first day?"
)

REJECTED_TEMPLATE = (
    "I saw the update about the **{role}** role at **{company}**. I know that can be "
    "disappointing, but don't let it discourage you. Rejection is often just redirection. "
    "Would you like to analyze the job description together to see if there are any skills "
    "we can highlight better for next time?"
)

NOTIFIABLE_TEMPLATES = {
    JobStatus.ACCEPTED: ACCEPTED_TEMPLATE,
    JobStatus.REJECTED: REJECTED_TEMPLATE,
}


class MessageRole(str, Enum):
    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class Message:
    """One entry of the assistant conversation."""

    id: str
    role: MessageRole
    text: str

    @classmethod
    def create(cls, role: MessageRole, text: str) -> "Message":
        return cls(id=uuid4().hex, role=role, text=text)

    def to_dict(self) -> dict:
        return {"id": self.id, "role": self.role.value, "text": self.text}

    @classmethod
    def from_dict(cls, payload: dict) -> "Message":
        return cls(
            id=str(payload.get("id") or uuid4().hex),
            role=MessageRole(payload.get("role", MessageRole.MODEL.value)),
            text=str(payload.get("text", "")),
        )


class MessageLog:
    """Append-only conversation history; entries are never edited or removed."""

    def __init__(self, messages: Optional[Iterable[Message]] = None) -> None:
        self._messages: List[Message] = list(messages or [])

    @classmethod
    def with_welcome(cls) -> "MessageLog":
        return cls([Message(id="welcome", role=MessageRole.MODEL, text=WELCOME_TEXT)])

    def append(self, message: Message) -> Message:
        self._messages.append(message)
        return message

    def latest(self) -> Optional[Message]:
        return self._messages[-1] if self._messages else None

    def __iter__(self) -> Iterator[Message]:
        return iter(tuple(self._messages))

    def __len__(self) -> int:
        return len(self._messages)

    def to_snapshot(self) -> List[dict]:
        return [message.to_dict() for message in self._messages]

    @classmethod
    def from_snapshot(cls, payload: Optional[Iterable[dict]]) -> "MessageLog":
        if not payload:
            return cls.with_welcome()
        return cls(Message.from_dict(entry) for entry in payload)


def transition_message(job: Job, previous: JobStatus) -> Optional[str]:
    """Return the notification text for ``previous -> job.status``, if any."""

    if previous is job.status:
        return None
    template = NOTIFIABLE_TEMPLATES.get(job.status)
    if template is None:
        return None
    return template.format(role=job.role, company=job.company)


class TransitionNotifier:
    """React to status changes by appending assistant messages.

    Its only state is the unread flag. Whether the consumer is looking at the
    chat is passed in with each change instead of read from shared UI state.
    """

    def __init__(self, messages: Optional[MessageLog] = None) -> None:
        self.messages = messages if messages is not None else MessageLog.with_welcome()
        self.unread = False

    def status_changed(self, previous: Job, current: Job, *, observing_chat: bool = False) -> Optional[Message]:
        text = transition_message(current, previous.status)
        if text is None:
            return None
        message = self.messages.append(Message.create(MessageRole.MODEL, text))
        if not observing_chat:
            self.unread = True
        log.info(
            "Status %s -> %s for %s @ %s; assistant notified",
            previous.status.value,
            current.status.value,
            current.role,
            current.company,
        )
        return message

    def chat_opened(self) -> None:
        self.unread = False
