"""JSON submission."""

import logging

import httpx

from survey.errors import ParseError
from survey.models import Ballot
from survey.strategies import register_strategy
from survey.strategies.base import HttpStrategy, RemoteReply, interpret_reply

logger = logging.getLogger(__name__)


@register_strategy
class JsonPostStrategy(HttpStrategy):
    """Posts the ballot as a JSON body and reads a JSON reply.

    Expected reply: {"success": true, "results": [{"flavor": ..., "points": ...}]}.
    When the reply is unreadable, the submission falls back to
    fetch_results(), a GET on the results URL.
    """

    name = "json"

    def send(self, ballot: Ballot) -> RemoteReply:
        response = self._call("POST", self.endpoint_url, json=ballot.to_request())
        return interpret_reply(self.decode(response), response.status_code)

    def decode(self, response: httpx.Response):
        try:
            return response.json()
        except ValueError as e:
            logger.warning("Could not read reply from %s as JSON: %s", response.url, e)
            raise ParseError(f"Survey endpoint reply is not JSON: {e}") from e
