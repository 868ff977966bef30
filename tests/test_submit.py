"""Tests for the submission orchestrator."""

import httpx
import pytest

from survey.errors import ParseError, SubmissionError, TransportError, ValidationError
from survey.models import NoticeKind
from survey.store import MERGED_KEY, TALLY_KEY, MemoryStore, load_merged_ids, load_tally, save_tally
from survey.strategies import RemoteReply, SubmissionStrategy
from survey.submit import (
    BallotSubmission,
    ResultsSource,
    SubmissionState,
    LOCAL_RESULTS_ONLY,
    THANK_YOU,
    cast_vote,
    current_results,
    submit_ballot,
)
from tests.conftest import make_ballot, make_tally, ranking_names
from tests.test_strategies.conftest import FakeEndpoint, RESULTS, raise_timeout


class ScriptedStrategy(SubmissionStrategy):
    """Strategy whose replies are given up front.

    `send_result` and `fetch_result` are either a RemoteReply to return or an
    exception to raise.
    """

    name = "scripted"

    def __init__(self, send_result, fetch_result=None):
        super().__init__(settings=None)
        self.send_result = send_result
        self.fetch_result = fetch_result if fetch_result is not None else ParseError("no results")
        self.sent = []
        self.fetches = 0

    def send(self, ballot):
        self.sent.append(ballot)
        if isinstance(self.send_result, Exception):
            raise self.send_result
        return self.send_result

    def fetch_results(self):
        self.fetches += 1
        if isinstance(self.fetch_result, Exception):
            raise self.fetch_result
        return self.fetch_result


REMOTE = make_tally({"Tiramisu": 12, "Parmesan": 9})


class TestRemoteAggregate:
    def test_uses_remote_results(self, store):
        ballot = make_ballot("Tiramisu", "Parmesan", "Spruce Tips")
        outcome = BallotSubmission(ballot, ScriptedStrategy(RemoteReply(REMOTE)), store).run()
        assert outcome.state is SubmissionState.SUCCEEDED
        assert outcome.source is ResultsSource.REMOTE
        assert outcome.tally is REMOTE
        assert ranking_names(outcome.results) == ["Tiramisu", "Parmesan"]
        assert outcome.notice.kind is NoticeKind.SUCCESS

    def test_local_tally_still_updated(self, store):
        ballot = make_ballot("Tiramisu", "Parmesan", "Spruce Tips")
        BallotSubmission(ballot, ScriptedStrategy(RemoteReply(REMOTE)), store).run()
        assert load_tally(store).to_dict() == {"Tiramisu": 3, "Parmesan": 2, "Spruce Tips": 1}


class TestAcknowledgement:
    def test_bare_ack_shows_local_tally(self, store):
        save_tally(store, make_tally({"Parmesan": 4}))
        outcome = BallotSubmission(make_ballot("Tiramisu"), ScriptedStrategy(RemoteReply()), store).run()
        assert outcome.state is SubmissionState.SUCCEEDED
        assert outcome.source is ResultsSource.LOCAL
        assert outcome.tally.to_dict() == {"Parmesan": 4, "Tiramisu": 3}

    def test_bare_ack_does_not_fetch(self, store):
        strategy = ScriptedStrategy(RemoteReply())
        BallotSubmission(make_ballot("Tiramisu"), strategy, store).run()
        assert strategy.fetches == 0


class TestTransportFailure:
    def test_falls_back_to_local_merge_with_warning(self, store):
        strategy = ScriptedStrategy(TransportError(503, "Service Unavailable"))
        ballot = make_ballot("Tiramisu", "Parmesan")
        outcome = BallotSubmission(ballot, strategy, store).run()
        assert outcome.state is SubmissionState.FAILED_REMOTE
        assert outcome.notice.kind is NoticeKind.WARNING
        assert outcome.source is ResultsSource.LOCAL
        assert load_tally(store).to_dict() == {"Tiramisu": 3, "Parmesan": 2}
        assert outcome.tally.to_dict() == {"Tiramisu": 3, "Parmesan": 2}
        assert outcome.details["status_code"] == 503

    def test_no_results_fetch_after_transport_failure(self, store):
        strategy = ScriptedStrategy(TransportError(None, "timeout"))
        BallotSubmission(make_ballot("Tiramisu"), strategy, store).run()
        assert strategy.fetches == 0


class TestParseFailure:
    def test_uses_fetched_results(self, store):
        strategy = ScriptedStrategy(ParseError("bad reply"), RemoteReply(REMOTE))
        outcome = BallotSubmission(make_ballot("Parmesan"), strategy, store).run()
        assert outcome.state is SubmissionState.SUCCEEDED
        assert outcome.source is ResultsSource.FETCHED
        assert outcome.tally is REMOTE
        assert strategy.fetches == 1
        assert load_tally(store).to_dict() == {"Parmesan": 3}

    @pytest.mark.parametrize("fetch_error", [
        ParseError("still bad"),
        TransportError(500, "Internal Server Error"),
    ])
    def test_generic_acknowledgement_when_fetch_fails(self, store, fetch_error):
        strategy = ScriptedStrategy(ParseError("bad reply"), fetch_error)
        outcome = BallotSubmission(make_ballot("Parmesan"), strategy, store).run()
        assert outcome.state is SubmissionState.SUCCEEDED
        assert outcome.source is ResultsSource.LOCAL
        assert outcome.notice.kind is NoticeKind.SUCCESS
        assert outcome.tally.to_dict() == {"Parmesan": 3}
        assert "fetch_error" in outcome.details


class TestStateMachine:
    def test_starts_idle(self, store):
        submission = BallotSubmission(make_ballot("Tiramisu"), ScriptedStrategy(RemoteReply()), store)
        assert submission.state is SubmissionState.IDLE

    def test_submitting_while_sending(self, store):
        states = []

        class Observing(ScriptedStrategy):
            def send(self, ballot):
                states.append(submission.state)
                return super().send(ballot)

        submission = BallotSubmission(make_ballot("Tiramisu"), Observing(RemoteReply()), store)
        submission.run()
        assert states == [SubmissionState.SUBMITTING]
        assert submission.state is SubmissionState.SUCCEEDED

    def test_cannot_run_twice(self, store):
        submission = BallotSubmission(make_ballot("Tiramisu"), ScriptedStrategy(RemoteReply()), store)
        submission.run()
        with pytest.raises(SubmissionError):
            submission.run()


class TestExactlyOnceLocalMerge:
    def test_resubmitted_ballot_counted_once(self, store):
        ballot = make_ballot("Tiramisu", ballot_id="same")
        BallotSubmission(ballot, ScriptedStrategy(TransportError(None, "down")), store).run()
        BallotSubmission(ballot, ScriptedStrategy(RemoteReply()), store).run()
        assert load_tally(store).to_dict() == {"Tiramisu": 3}
        assert load_merged_ids(store) == {"same"}

    def test_distinct_ballots_both_counted(self, store):
        for ballot_id in ("one", "two"):
            ballot = make_ballot("Tiramisu", ballot_id=ballot_id)
            BallotSubmission(ballot, ScriptedStrategy(RemoteReply()), store).run()
        assert load_tally(store).to_dict() == {"Tiramisu": 6}

    def test_many_voters(self, store, fake):
        for _ in range(20):
            ballot = make_ballot(
                "Tiramisu", "Parmesan", "Spruce Tips",
                voter_name=fake.name(), suggestion=fake.sentence(nb_words=3),
            )
            BallotSubmission(ballot, ScriptedStrategy(RemoteReply()), store).run()
        assert load_tally(store).to_dict() == {"Tiramisu": 60, "Parmesan": 40, "Spruce Tips": 20}


class TestDisplayLimit:
    def test_results_truncated_tally_complete(self, store):
        save_tally(store, make_tally({f"F{i}": 10 for i in range(8)}))
        outcome = BallotSubmission(make_ballot("Tiramisu"), ScriptedStrategy(RemoteReply()), store).run()
        assert len(outcome.results) == 6
        assert len(outcome.tally) == 9


class TestSubmitWithHttp:
    """End to end through real strategies against a fake endpoint."""

    def test_json_transport_failure_scenario(self, store, make_settings):
        endpoint = FakeEndpoint()
        endpoint.post = raise_timeout
        settings = make_settings(strategy="json", request_timeout_s=0.5)
        outcome = cast_vote(
            "Tiramisu", "Parmesan", "Spruce Tips",
            store=store, settings=settings, transport=endpoint.transport,
        )
        assert outcome.state is SubmissionState.FAILED_REMOTE
        assert outcome.notice.kind is NoticeKind.WARNING
        assert load_tally(store).to_dict() == {"Tiramisu": 3, "Parmesan": 2, "Spruce Tips": 1}

    def test_json_unreadable_reply_then_fetch(self, store, make_settings):
        endpoint = FakeEndpoint()
        endpoint.post = lambda request: httpx.Response(200, text="Saved!")
        outcome = cast_vote(
            "Parmesan", store=store,
            settings=make_settings(strategy="json"), transport=endpoint.transport,
        )
        assert endpoint.methods == ["POST", "GET"]
        assert outcome.source is ResultsSource.FETCHED
        assert outcome.tally.to_dict() == {r["flavor"]: r["points"] for r in RESULTS}

    def test_local_strategy(self, store, make_settings):
        outcome = submit_ballot(make_ballot("Tiramisu"), store, settings=make_settings(strategy="local"))
        assert outcome.source is ResultsSource.LOCAL
        assert [(e.flavor, e.points, e.percentage) for e in outcome.results] == [("Tiramisu", 3, 100)]

    def test_outcome_to_dict(self, store, make_settings):
        ballot = make_ballot("Tiramisu", ballot_id="b1")
        body = submit_ballot(ballot, store, settings=make_settings()).to_dict()
        assert body["state"] == "succeeded"
        assert body["ballotId"] == "b1"
        assert body["source"] == "local"
        assert body["notice"]["kind"] == "success"
        assert body["results"][0]["flavor"] == "Tiramisu"


class TestCastVote:
    def test_validation_error_blocks_submission(self, store, make_settings):
        with pytest.raises(ValidationError):
            cast_vote("", "Parmesan", store=store, settings=make_settings())
        assert load_tally(store).to_dict() == {}

    def test_current_results(self, store):
        save_tally(store, make_tally({"Parmesan": 1, "Tiramisu": 3}))
        assert ranking_names(current_results(store)) == ["Tiramisu", "Parmesan"]

    def test_current_results_empty(self, store):
        assert current_results(store) == []


class FailingTallyStore(MemoryStore):
    """Store whose tally writes fail, as a full disk would."""

    def set(self, key, value):
        if key == TALLY_KEY:
            raise OSError("disk full")
        super().set(key, value)


class TestUnreadableStore:
    def test_corrupt_tally_still_records_vote(self):
        store = MemoryStore({TALLY_KEY: "{not json"})
        submission = BallotSubmission(make_ballot("Tiramisu"), ScriptedStrategy(RemoteReply()), store)
        outcome = submission.run()
        assert submission.state is SubmissionState.SUCCEEDED
        assert outcome.notice.kind is NoticeKind.SUCCESS
        assert load_tally(store).to_dict() == {"Tiramisu": 3}

    def test_corrupt_tally_with_transport_failure(self):
        store = MemoryStore({TALLY_KEY: "[1, 2]"})
        outcome = BallotSubmission(
            make_ballot("Parmesan"), ScriptedStrategy(TransportError(None, "down")), store
        ).run()
        assert outcome.state is SubmissionState.FAILED_REMOTE
        assert outcome.notice.kind is NoticeKind.WARNING
        assert outcome.tally.to_dict() == {"Parmesan": 3}

    def test_corrupt_merged_ids(self):
        store = MemoryStore({MERGED_KEY: "oops"})
        BallotSubmission(make_ballot("Tiramisu", ballot_id="b1"), ScriptedStrategy(RemoteReply()), store).run()
        assert load_merged_ids(store) == {"b1"}

    def test_current_results_with_corrupt_tally(self):
        assert current_results(MemoryStore({TALLY_KEY: "{not json"})) == []


class TestWriteOrder:
    def test_ids_saved_before_tally(self):
        store = FailingTallyStore()
        ballot = make_ballot("Tiramisu", ballot_id="b1")
        with pytest.raises(OSError):
            BallotSubmission(ballot, ScriptedStrategy(RemoteReply()), store).run()
        assert load_merged_ids(store) == {"b1"}


class TestNoticeText:
    def test_fetch_failure_says_results_are_local(self, store):
        strategy = ScriptedStrategy(ParseError("bad reply"), TransportError(500, "down"))
        outcome = BallotSubmission(make_ballot("Parmesan"), strategy, store).run()
        assert outcome.notice.message == LOCAL_RESULTS_ONLY

    def test_remote_results_plain_thank_you(self, store):
        outcome = BallotSubmission(make_ballot("Parmesan"), ScriptedStrategy(RemoteReply(REMOTE)), store).run()
        assert outcome.notice.message == THANK_YOU

    def test_fetched_results_plain_thank_you(self, store):
        strategy = ScriptedStrategy(ParseError("bad reply"), RemoteReply(REMOTE))
        outcome = BallotSubmission(make_ballot("Parmesan"), strategy, store).run()
        assert outcome.notice.message == THANK_YOU
