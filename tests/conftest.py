"""Shared test helpers."""

import pytest
from faker import Faker

from survey.config import Settings
from survey.models import Ballot
from survey.store import MemoryStore
from survey.tally import Tally

FAKER_SEED = 20261019
ENDPOINT = "https://script.example.com/macros/s/abc/exec"


def make_tally(points: dict[str, int]) -> Tally:
    """Build a Tally from a compact {flavor: points} table, keeping its order."""
    return Tally(points=dict(points))


def make_ballot(*choices: str, **kwargs) -> Ballot:
    """Build a Ballot from up to three choices, 1st first."""
    slots = list(choices) + [None] * (3 - len(choices))
    return Ballot(
        first_choice=slots[0],
        second_choice=slots[1],
        third_choice=slots[2],
        **kwargs,
    )


def ranking_names(entries) -> list[str]:
    """Extract flavor names from ranked entries in order."""
    return [entry.flavor for entry in entries]


@pytest.fixture
def fake():
    faker = Faker()
    faker.seed_instance(FAKER_SEED)
    return faker


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def make_settings(tmp_path):
    """Factory for Settings isolated from the environment and the real store."""
    def _make(**overrides) -> Settings:
        values = {
            "strategy": "local",
            "endpoint_url": ENDPOINT,
            "store_path": tmp_path / "survey.json",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)
    return _make
