"""Domain models for photo edits."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class EditStatus(str, Enum):
    """Lifecycle of an edit."""

    PENDING = "pending"
    PROCESSING = "processing"
    DONE = "done"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in {EditStatus.DONE, EditStatus.FAILED}


ALLOWED_TRANSITIONS: dict[EditStatus, frozenset[EditStatus]] = {
    EditStatus.PENDING: frozenset({EditStatus.PROCESSING}),
    EditStatus.PROCESSING: frozenset({EditStatus.DONE, EditStatus.FAILED}),
    EditStatus.DONE: frozenset(),
    EditStatus.FAILED: frozenset(),
}

STICKER_OPERATION = "sticker"

# Token price per operation, fixed on the edit at creation time.
OPERATION_PRICES: dict[str, int] = {STICKER_OPERATION: 1}

INSTRUCTIONS: dict[str, str] = {
    "sticker": "cut out the main subject and replace the background with white.",
    "line-art": (
        "convert the photo into clean black line art on a white background, "
        "keeping the main outlines only."
    ),
    "cartoon": "redraw the photo as a flat, colorful cartoon illustration.",
    "watercolor": "repaint the photo as a soft watercolor painting.",
    "vintage": "give the photo a faded vintage film look with warm tones.",
}

STATUS_MESSAGES: dict[EditStatus, str] = {
    EditStatus.PENDING: "Processing in progress.",
    EditStatus.PROCESSING: "Processing in progress.",
    EditStatus.DONE: "Processing complete. Your sticker is ready.",
    EditStatus.FAILED: "Processing failed. No tokens were charged.",
}


def can_transition(current: EditStatus, target: EditStatus) -> bool:
    """Return true when the state machine allows current -> target."""
    return target in ALLOWED_TRANSITIONS[current]


@dataclass(frozen=True)
class EditRecord:
    """Represents a persisted edit request."""

    id: UUID
    user_id: UUID
    photo_id: UUID
    operation: str
    instruction_key: str
    status: EditStatus
    tokens_cost: int
    completed: datetime | None = None
    result_photo_id: UUID | None = None
    created_at: datetime | None = None


@dataclass(frozen=True)
class EditSubmission:
    """Result returned to the caller right after submit."""

    edit_id: UUID
    status: EditStatus
    message: str


@dataclass(frozen=True)
class EditStatusView:
    """Client-facing view of an edit."""

    id: UUID
    status: EditStatus
    tokens_cost: int
    completed: datetime | None
    message: str
    result_url: str | None = None
