"""Pydantic models for activity, session and message data.

All data structures use Pydantic v2 for validation, serialization, and type safety.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from src.enrollment.errors import MalformedResponseError


class Activity(BaseModel):
    """One activity and its roster, as reported by GET /activities.

    The API keys activities by name, so `name` is filled in from the mapping
    key rather than from the entry body.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    schedule: str
    max_participants: int
    participants: tuple[str, ...] = ()  # Server order

    @property
    def spots_left(self) -> int:
        # Not clamped: an over-enrolled activity shows a negative count
        return self.max_participants - len(self.participants)


class Session(BaseModel):
    """Identity of the current visitor; no username means anonymous."""

    model_config = ConfigDict(frozen=True)

    username: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.username)

    @classmethod
    def anonymous(cls) -> "Session":
        return cls()


class MessageKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Message(BaseModel):
    """Content of the single banner slot."""

    text: str
    kind: MessageKind
    visible: bool = True


def parse_activities(payload: Any) -> tuple[Activity, ...]:
    """Convert the GET /activities mapping into an ordered activity snapshot.

    Args:
        payload: Decoded JSON body, ``{name: {description, schedule,
            max_participants, participants}}``.

    Returns:
        Activities in the order the server listed them.

    Raises:
        MalformedResponseError: If the payload is not a mapping or an entry
            is missing fields.
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError(
            f"Expected an activity mapping, got {type(payload).__name__}"
        )
    try:
        return tuple(
            Activity.model_validate({**details, "name": name})
            for name, details in payload.items()
        )
    except (TypeError, ValidationError) as e:
        raise MalformedResponseError(f"Invalid activity entry: {e}") from e
