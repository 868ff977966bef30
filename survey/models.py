"""Core data models for ballots, ranked results and notices."""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator

ANONYMOUS = "Anonymous"


def new_ballot_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Ballot:
    """One voter's ranked flavor submission.

    Attributes:
        first_choice: Favorite flavor (always present)
        second_choice: Runner-up flavor, or None
        third_choice: Third-place flavor, or None
        voter_name: Name given by the voter, or None
        suggestion: Free-text flavor suggestion, or None
        ballot_id: Client-generated identifier used to merge each ballot
            into the local tally at most once

    Ballots should be built with survey.ballot.validate_ballot, which
    enforces that the choices are pairwise distinct.

    Example:
        >>> ballot = Ballot(
        ...     first_choice="Tiramisu",
        ...     second_choice="Parmesan",
        ...     third_choice="Spruce Tips",
        ... )
        >>> list(ballot.choices())
        [(1, 'Tiramisu'), (2, 'Parmesan'), (3, 'Spruce Tips')]
    """
    first_choice: str
    second_choice: str | None = None
    third_choice: str | None = None
    voter_name: str | None = None
    suggestion: str | None = None
    ballot_id: str = field(default_factory=new_ballot_id)

    def choices(self) -> Iterator[tuple[int, str]]:
        """Yield (rank_position, flavor) for each filled slot, 1st first."""
        slots = (self.first_choice, self.second_choice, self.third_choice)
        for position, flavor in enumerate(slots, start=1):
            if flavor:
                yield position, flavor

    def to_request(self) -> dict[str, str]:
        """Build the record sent to the remote survey endpoint."""
        return {
            "name": self.voter_name or ANONYMOUS,
            "firstChoice": self.first_choice,
            "secondChoice": self.second_choice or "",
            "thirdChoice": self.third_choice or "",
            "suggestion": self.suggestion or "",
            "ballotId": self.ballot_id,
        }


@dataclass
class RankedEntry:
    """A flavor's place in the results view.

    Attributes:
        rank: 1-indexed display position
        flavor: Flavor name
        points: Accumulated weighted points
        percentage: Share of all points, rounded to a whole percent
    """
    rank: int
    flavor: str
    points: int
    percentage: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "flavor": self.flavor,
            "points": self.points,
            "percentage": self.percentage,
        }


class NoticeKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass
class Notice:
    """A transient message shown to the voter."""
    kind: NoticeKind
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "message": self.message}
