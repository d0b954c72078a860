"""
Messaging-platform types used by the AI Playground adapter.

These mirror the shapes the host messaging client exchanges with the
plugin: users, threads, messages, and the server events pushed back.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

# Sender ids used inside threads
SELF_ID = "$c:self"
AI_SENDER_ID = "ai"
ACTION_ID = "action"


@dataclass
class Message:
    """A message in a thread."""
    id: str
    text: str
    sender_id: str
    timestamp: datetime = field(default_factory=datetime.now)
    is_sender: bool = False
    is_action: bool = False
    is_delivered: bool = False
    thread_id: Optional[str] = None


@dataclass
class Participant:
    """A thread participant; models are the contacts."""
    id: str
    full_name: str


@dataclass
class Thread:
    """A conversation with one model.

    extra holds the model binding (ai_model_id, prompt_type, model_type,
    title_generated) plus the user-adjustable options.
    """
    id: str
    description: str
    participants: list[Participant] = field(default_factory=list)
    title: Optional[str] = None
    type: str = "single"
    timestamp: datetime = field(default_factory=datetime.now)
    is_unread: bool = False
    is_read_only: bool = False
    extra: dict[str, Any] = field(default_factory=dict)


# Keys of Thread.extra that are bookkeeping, not request options
RESERVED_EXTRA_KEYS = ("ai_model_id", "title_generated", "prompt_type", "model_type")


@dataclass
class Paginated:
    """One page of results."""
    items: list[Any]
    has_more: bool = False
    oldest_cursor: Optional[str] = None


@dataclass
class CurrentUser:
    """The logged-in account: one provider and its key."""
    id: str
    display_text: str
    username: str = "User"


@dataclass
class LoginResult:
    """Outcome of a login attempt."""
    type: str  # "success" or "error"
    error_message: Optional[str] = None


class ActivityType(Enum):
    """Activity indicator shown next to a participant."""
    NONE = "none"
    CUSTOM = "custom"


@dataclass
class UserActivityEvent:
    """Show or clear an activity indicator."""
    thread_id: str
    participant_id: str
    activity_type: ActivityType
    custom_label: Optional[str] = None
    duration_ms: Optional[int] = None


@dataclass
class StateSyncEvent:
    """Upsert or update objects held by the client."""
    object_name: str  # "message" or "thread"
    mutation_type: str  # "upsert" or "update"
    entries: list[Any]
    thread_id: Optional[str] = None


ServerEvent = Union[UserActivityEvent, StateSyncEvent]
