"""Orchestrator: send a ballot, merge it locally, resolve the results view."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from survey.ballot import validate_ballot
from survey.config import Settings
from survey.errors import ParseError, SubmissionError, TransportError
from survey.models import Ballot, Notice, NoticeKind, RankedEntry
from survey.ranking import DISPLAY_LIMIT, rank
from survey.store import (
    KeyValueStore,
    recover_merged_ids,
    recover_tally,
    save_merged_ids,
    save_tally,
)
from survey.strategies import SubmissionStrategy, get_strategy
from survey.tally import Tally, merge

logger = logging.getLogger(__name__)

THANK_YOU = "Thank you for your vote!"
SAVED_LOCALLY = "We couldn't reach the survey server, so your vote was saved on this device."
LOCAL_RESULTS_ONLY = "Thank you for your vote! Live results are unavailable, so these are the votes counted on this device."


class SubmissionState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED_REMOTE = "failed_remote"


class ResultsSource(str, Enum):
    REMOTE = "remote"  # aggregate returned with the submission
    FETCHED = "fetched"  # aggregate from the secondary results fetch
    LOCAL = "local"  # local tally


@dataclass
class SubmissionOutcome:
    """Everything the page needs after a submission finishes.

    Attributes:
        state: SUCCEEDED or FAILED_REMOTE
        ballot: The submitted ballot
        tally: The tally the results view was built from
        source: Where that tally came from
        results: Ranked entries for display
        notice: Message for the voter
        details: Diagnostics (e.g. the remote error) for logging/debugging
    """
    state: SubmissionState
    ballot: Ballot
    tally: Tally
    source: ResultsSource
    results: list[RankedEntry]
    notice: Notice
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "ballotId": self.ballot.ballot_id,
            "source": self.source.value,
            "notice": self.notice.to_dict(),
            "results": [entry.to_dict() for entry in self.results],
            "details": self.details,
        }


class BallotSubmission:
    """Drives one ballot through IDLE -> SUBMITTING -> SUCCEEDED/FAILED_REMOTE.

    Whatever the remote does, the ballot's points are merged into the local
    tally exactly once per ballot id. The results view uses the remote
    aggregate when one could be obtained and the local tally otherwise.
    """

    def __init__(
        self,
        ballot: Ballot,
        strategy: SubmissionStrategy,
        store: KeyValueStore,
        display_limit: int | None = DISPLAY_LIMIT,
    ):
        self.ballot = ballot
        self.strategy = strategy
        self.store = store
        self.display_limit = display_limit
        self.state = SubmissionState.IDLE

    def _transition(self, state: SubmissionState) -> None:
        logger.info(
            "Ballot %s: %s -> %s", self.ballot.ballot_id, self.state.value, state.value
        )
        self.state = state

    def run(self) -> SubmissionOutcome:
        if self.state is not SubmissionState.IDLE:
            raise SubmissionError(
                f"Ballot {self.ballot.ballot_id} was already submitted (state: {self.state.value})"
            )
        self._transition(SubmissionState.SUBMITTING)

        remote: Tally | None = None
        source = ResultsSource.LOCAL
        details: dict[str, Any] = {"strategy": self.strategy.name}

        try:
            reply = self.strategy.send(self.ballot)
        except TransportError as e:
            logger.warning("Submission of ballot %s failed: %s", self.ballot.ballot_id, e)
            details["error"] = str(e)
            details["status_code"] = e.status_code
            local = self._merge_locally()
            self._transition(SubmissionState.FAILED_REMOTE)
            return self._outcome(
                local, ResultsSource.LOCAL, Notice(NoticeKind.WARNING, SAVED_LOCALLY), details
            )
        except ParseError as e:
            logger.warning(
                "Could not interpret reply for ballot %s (%s); fetching results instead",
                self.ballot.ballot_id, e,
            )
            details["parse_error"] = str(e)
            remote = self._fetch_results(details)
            if remote is not None:
                source = ResultsSource.FETCHED
        else:
            if reply.has_results:
                remote = reply.results
                source = ResultsSource.REMOTE

        local = self._merge_locally()
        self._transition(SubmissionState.SUCCEEDED)
        if remote is not None:
            return self._outcome(remote, source, Notice(NoticeKind.SUCCESS, THANK_YOU), details)
        message = LOCAL_RESULTS_ONLY if "fetch_error" in details else THANK_YOU
        return self._outcome(local, source, Notice(NoticeKind.SUCCESS, message), details)

    def _fetch_results(self, details: dict[str, Any]) -> Tally | None:
        try:
            return self.strategy.fetch_results().results
        except (TransportError, ParseError) as e:
            logger.warning("Results fetch failed, showing local results: %s", e)
            details["fetch_error"] = str(e)
            return None

    def _merge_locally(self) -> Tally:
        """Merge the ballot into the stored tally unless it is already there."""
        tally = recover_tally(self.store)
        merged_ids = recover_merged_ids(self.store)
        if self.ballot.ballot_id in merged_ids:
            logger.info("Ballot %s already counted locally", self.ballot.ballot_id)
            return tally

        merge(tally, self.ballot)
        merged_ids.add(self.ballot.ballot_id)
        # ids first: a failed tally write must not let a retry count twice
        save_merged_ids(self.store, merged_ids)
        save_tally(self.store, tally)
        return tally

    def _outcome(
        self,
        tally: Tally,
        source: ResultsSource,
        notice: Notice,
        details: dict[str, Any],
    ) -> SubmissionOutcome:
        return SubmissionOutcome(
            state=self.state,
            ballot=self.ballot,
            tally=tally,
            source=source,
            results=rank(tally, limit=self.display_limit),
            notice=notice,
            details=details,
        )


def submit_ballot(
    ballot: Ballot,
    store: KeyValueStore,
    settings: Settings | None = None,
    transport=None,
) -> SubmissionOutcome:
    """Submit a validated ballot using the configured strategy."""
    settings = settings or Settings()
    strategy = get_strategy(settings.strategy, settings, transport=transport)
    submission = BallotSubmission(ballot, strategy, store, settings.display_limit)
    return submission.run()


def cast_vote(
    first: str | None,
    second: str | None = None,
    third: str | None = None,
    *,
    voter_name: str | None = None,
    suggestion: str | None = None,
    ballot_id: str | None = None,
    store: KeyValueStore,
    settings: Settings | None = None,
    transport=None,
) -> SubmissionOutcome:
    """Validate raw selections and submit them.

    Raises:
        ValidationError: If the selections do not form a valid ballot
    """
    ballot = validate_ballot(
        first, second, third,
        voter_name=voter_name, suggestion=suggestion, ballot_id=ballot_id,
    )
    return submit_ballot(ballot, store, settings=settings, transport=transport)


def current_results(store: KeyValueStore, limit: int | None = DISPLAY_LIMIT) -> list[RankedEntry]:
    """Ranked view of the locally stored tally."""
    return rank(recover_tally(store), limit=limit)
