"""Platform-neutral records consumed by the analytics core.

Both GitLab and GitHub payloads are normalized into these shapes before any
metric is computed (see ``year_in_review.normalize``).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

OwnerId = str | int


class WorkItemState(str, Enum):
    """Lifecycle state of a merge request, pull request or issue."""

    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"
    OTHER = "other"

    @classmethod
    def from_raw(cls, state: str | None) -> "WorkItemState":
        """Map a platform state label onto the unified lifecycle.

        GitLab reports ``opened``/``closed``/``merged``/``locked``; GitHub
        reports ``open``/``closed``. Anything unrecognised becomes ``OTHER``.
        """
        if state is None:
            return cls.OTHER

        value = state.lower()
        if value in ("open", "opened"):
            return cls.OPEN
        if value == "closed":
            return cls.CLOSED
        if value == "merged":
            return cls.MERGED
        return cls.OTHER


@dataclass(frozen=True)
class ActivityEvent:
    """A single timestamped action from a platform event feed."""

    timestamp: datetime | None
    kind: str
    owner_id: OwnerId | None = None


@dataclass(frozen=True)
class WorkItem:
    """A merge request, pull request or issue."""

    state: WorkItemState
    created_at: datetime | None
    resolved_at: datetime | None = None
    owner_id: OwnerId | None = None


@dataclass(frozen=True)
class ProjectRef:
    """A project (GitLab) or repository (GitHub) known by id and display name."""

    id: OwnerId
    name: str | None = None
