"""Form-encoded submission with an HTML-wrapped reply."""

import json
import logging

import httpx
from bs4 import BeautifulSoup

from survey.errors import ParseError
from survey.models import Ballot
from survey.strategies import register_strategy
from survey.strategies.base import HttpStrategy, RemoteReply, interpret_reply

logger = logging.getLogger(__name__)


@register_strategy
class FormPostStrategy(HttpStrategy):
    """Posts the ballot as an HTML form would.

    Spreadsheet script endpoints answer a form post with a small HTML page
    rather than bare JSON. The JSON reply sits either in a <pre> block or
    directly in the page body, e.g.:

        <html><body><pre>{"success": true, "results": [...]}</pre></body></html>

    A reply served as application/json is read directly.
    """

    name = "form"

    def send(self, ballot: Ballot) -> RemoteReply:
        response = self._call("POST", self.endpoint_url, data=ballot.to_request())
        return interpret_reply(self.decode(response), response.status_code)

    def decode(self, response: httpx.Response):
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            text = response.text
        else:
            soup = BeautifulSoup(response.text, "lxml")
            node = soup.find("pre") or soup.body or soup
            text = node.get_text(strip=True)

        if not text:
            raise ParseError("Survey endpoint sent an empty reply")
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.warning("Could not read form reply as JSON: %s", e)
            raise ParseError(f"Survey endpoint reply is not JSON: {e}") from e
