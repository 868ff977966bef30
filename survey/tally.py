"""Weighted point tally across ballots.

Each rank position on a ballot awards points:
- 1st choice = 3 points
- 2nd choice = 2 points
- 3rd choice = 1 point

Points are summed per flavor across every merged ballot.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, Self

from survey.errors import ParseError
from survey.models import Ballot

RANK_WEIGHTS: dict[int, int] = {1: 3, 2: 2, 3: 1}


def weight_for(position: int) -> int:
    """Points awarded for a ballot slot (1-indexed); 0 outside the podium."""
    return RANK_WEIGHTS.get(position, 0)


def contributions(ballot: Ballot) -> Iterator[tuple[str, int]]:
    """Yield (flavor, points) for each filled slot on the ballot."""
    for position, flavor in ballot.choices():
        yield flavor, weight_for(position)


@dataclass
class Tally:
    """Accumulated points per flavor, in the order flavors were first seen."""
    points: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.points.values())

    def __len__(self) -> int:
        return len(self.points)

    def __getitem__(self, flavor: str) -> int:
        return self.points.get(flavor, 0)

    def items(self):
        return self.points.items()

    def add(self, flavor: str, points: int) -> None:
        if flavor not in self.points:
            self.points[flavor] = 0
        self.points[flavor] += points

    def to_dict(self) -> dict[str, int]:
        return dict(self.points)

    @classmethod
    def from_dict(cls, data: Any) -> Self:
        """Rebuild a tally from its JSON form ({flavor: points})."""
        if not isinstance(data, dict):
            raise ParseError(f"Expected an object of flavor totals, got {type(data).__name__}")
        tally = cls()
        for flavor, points in data.items():
            tally.add(str(flavor), _check_points(flavor, points))
        return tally

    @classmethod
    def from_results(cls, results: Any) -> Self:
        """Build a tally from a remote aggregate: [{"flavor": ..., "points": ...}]."""
        if not isinstance(results, list):
            raise ParseError(f"Expected a list of results, got {type(results).__name__}")
        tally = cls()
        for entry in results:
            if not isinstance(entry, dict) or not entry.get("flavor"):
                raise ParseError(f"Result entry has no flavor: {entry!r}")
            flavor = str(entry["flavor"])
            tally.add(flavor, _check_points(flavor, entry.get("points")))
        return tally


def _check_points(flavor: Any, points: Any) -> int:
    # bool is an int subclass but never a valid point total
    if isinstance(points, bool) or not isinstance(points, int) or points < 0:
        raise ParseError(f"Invalid point total for {flavor!r}: {points!r}")
    return points


def merge(tally: Tally, ballot: Ballot) -> Tally:
    """Add a ballot's weighted choices to the tally and return it.

    The tally is updated in place. Every call counts as one vote, so merging
    the same ballot twice counts it twice.
    """
    for flavor, points in contributions(ballot):
        tally.add(flavor, points)
    return tally
