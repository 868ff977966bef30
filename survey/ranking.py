"""Sorted, percentage-annotated projection of a tally."""

from survey.models import RankedEntry
from survey.tally import Tally

DISPLAY_LIMIT = 6


def percentage_of(points: int, total: int) -> int:
    """Whole-number share of the total, rounding halves up.

    Integer arithmetic keeps e.g. 1/8 -> 12.5% -> 13% exact, matching how
    the results page has always rounded.
    """
    if total <= 0:
        return 0
    return (200 * points + total) // (2 * total)


def rank(tally: Tally, limit: int | None = DISPLAY_LIMIT) -> list[RankedEntry]:
    """Order flavors by points (highest first) for display.

    Ties keep the order in which flavors entered the tally. Percentages are
    always relative to the whole tally, even when the output is truncated
    to the first `limit` entries. Pass limit=None for every entry.
    """
    total = tally.total
    # sorted() is stable, so equal totals stay in first-seen order
    ordered = sorted(tally.items(), key=lambda item: item[1], reverse=True)
    if limit is not None:
        ordered = ordered[:limit]

    return [
        RankedEntry(
            rank=position,
            flavor=flavor,
            points=points,
            percentage=percentage_of(points, total),
        )
        for position, (flavor, points) in enumerate(ordered, start=1)
    ]
