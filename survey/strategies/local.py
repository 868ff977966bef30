"""Local-only voting: the ballot never leaves the page."""

from survey.errors import ParseError
from survey.models import Ballot
from survey.strategies import register_strategy
from survey.strategies.base import RemoteReply, SubmissionStrategy


@register_strategy
class LocalStrategy(SubmissionStrategy):
    """Strategy for running the survey without a remote endpoint.

    Every ballot is acknowledged immediately, and the results view is
    always the local tally.
    """

    name = "local"

    def send(self, ballot: Ballot) -> RemoteReply:
        return RemoteReply()

    def fetch_results(self) -> RemoteReply:
        raise ParseError("Local-only voting has no remote results")
