"""Ballot validation."""

from enum import Enum

from survey.errors import ValidationError
from survey.models import Ballot, new_ballot_id


class ValidationErrorKind(str, Enum):
    MISSING_FIRST_CHOICE = "MissingFirstChoice"
    DUPLICATE_CHOICE = "DuplicateChoice"


MESSAGES = {
    ValidationErrorKind.MISSING_FIRST_CHOICE:
        "Please choose your favorite flavor!",
    ValidationErrorKind.DUPLICATE_CHOICE:
        "Please pick a different flavor for each choice!",
}


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def validate_ballot(
    first: str | None,
    second: str | None = None,
    third: str | None = None,
    *,
    voter_name: str | None = None,
    suggestion: str | None = None,
    ballot_id: str | None = None,
) -> Ballot:
    """Turn raw form selections into a Ballot.

    Blank selections count as empty. The first slot must be filled; the
    second and third are optional, and no flavor may appear twice.

    Raises:
        ValidationError: With kind MISSING_FIRST_CHOICE or DUPLICATE_CHOICE
    """
    first, second, third = _clean(first), _clean(second), _clean(third)

    if first is None:
        kind = ValidationErrorKind.MISSING_FIRST_CHOICE
        raise ValidationError(kind, MESSAGES[kind])

    filled = [choice for choice in (first, second, third) if choice is not None]
    if len(set(filled)) != len(filled):
        kind = ValidationErrorKind.DUPLICATE_CHOICE
        raise ValidationError(kind, MESSAGES[kind])

    return Ballot(
        first_choice=first,
        second_choice=second,
        third_choice=third,
        voter_name=_clean(voter_name),
        suggestion=_clean(suggestion),
        ballot_id=_clean(ballot_id) or new_ballot_id(),
    )
