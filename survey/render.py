"""Presentation projection for the results view."""

from dataclasses import dataclass
from typing import Any

from survey.models import RankedEntry

CLASSIC_FLAVORS = [
    "Strawberry Buttermilk",
    "Sweet Cream & Blackberry Jam",
    "Mint Fudge Brownie",
    "Salted Caramel",
    "Salty Vanilla",
]

UNUSUAL_FLAVORS = [
    "Spruce Tips",
    "Parmesan",
    "Lovage Ginger & Rum Raisin",
    "Sour Cherry Lambic",
    "Ylang Ylang with Clove & Honeycomb",
    "Tiramisu",
    "Star Anise Black Pepper",
    "Orange-Szechuan",
]

FLAVORS = CLASSIC_FLAVORS + UNUSUAL_FLAVORS

DEFAULT_ICON = "\N{SOFT ICE CREAM}"

FLAVOR_ICONS = {
    "Strawberry Buttermilk": "\N{STRAWBERRY}",
    "Sweet Cream & Blackberry Jam": "\N{OLIVE}",
    "Mint Fudge Brownie": "\N{LEAF FLUTTERING IN WIND}",
    "Salted Caramel": "\N{HONEY POT}",
    "Salty Vanilla": "\N{SOFT ICE CREAM}",
    "Spruce Tips": "\N{EVERGREEN TREE}",
    "Parmesan": "\N{CHEESE WEDGE}",
    "Lovage Ginger & Rum Raisin": "\N{HERB}",
    "Sour Cherry Lambic": "\N{CHERRIES}",
    "Ylang Ylang with Clove & Honeycomb": "\N{HIBISCUS}",
    "Tiramisu": "\N{HOT BEVERAGE}",
    "Star Anise Black Pepper": "\N{WHITE MEDIUM STAR}",
    "Orange-Szechuan": "\N{TANGERINE}",
}

MEDALS = {
    1: "\N{FIRST PLACE MEDAL}",
    2: "\N{SECOND PLACE MEDAL}",
    3: "\N{THIRD PLACE MEDAL}",
}


def icon_for(flavor: str) -> str:
    return FLAVOR_ICONS.get(flavor, DEFAULT_ICON)


def rank_badge(rank: int) -> str:
    """Medal for the podium, "#N" for everyone else."""
    return MEDALS.get(rank, f"#{rank}")


@dataclass
class ResultRow:
    """One line of the results view, ready for a template."""
    rank: int
    badge: str
    icon: str
    flavor: str
    points: int
    percentage: int

    @property
    def label(self) -> str:
        return f"{self.points} pts ({self.percentage}%)"

    @property
    def bar_width(self) -> int:
        return max(0, min(100, self.percentage))

    def to_dict(self) -> dict[str, Any]:
        return {
            "rank": self.rank,
            "badge": self.badge,
            "icon": self.icon,
            "flavor": self.flavor,
            "points": self.points,
            "percentage": self.percentage,
            "label": self.label,
            "barWidth": self.bar_width,
        }


def build_rows(entries: list[RankedEntry]) -> list[ResultRow]:
    return [
        ResultRow(
            rank=entry.rank,
            badge=rank_badge(entry.rank),
            icon=icon_for(entry.flavor),
            flavor=entry.flavor,
            points=entry.points,
            percentage=entry.percentage,
        )
        for entry in entries
    ]


def render_text(rows: list[ResultRow], bar_length: int = 20) -> str:
    """Render rows as fixed-width text with a proportional bar per flavor."""
    if not rows:
        return "No votes yet. Be the first!"

    name_width = max(len(row.flavor) for row in rows)
    lines = []
    for row in rows:
        filled = round(bar_length * row.bar_width / 100)
        bar = "\N{FULL BLOCK}" * filled + "\N{LIGHT SHADE}" * (bar_length - filled)
        lines.append(
            f"{row.badge:>4} {row.icon} {row.flavor:<{name_width}}  {bar}  {row.label}"
        )
    return "\n".join(lines)
