"""Base classes for submission strategies."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

from survey.errors import ConfigurationError, ParseError, TransportError
from survey.models import Ballot
from survey.tally import Tally

logger = logging.getLogger(__name__)


@dataclass
class RemoteReply:
    """What the remote endpoint told us after a request.

    Attributes:
        results: The remote aggregate tally, or None when the endpoint only
            acknowledged the ballot
    """
    results: Tally | None = None

    @property
    def has_results(self) -> bool:
        return self.results is not None


def interpret_reply(payload: Any, status_code: int | None = None) -> RemoteReply:
    """Interpret a decoded reply from the survey endpoint.

    {"success": true, "results": [...]} carries the remote aggregate;
    {"success": true} or any other value is a bare acknowledgement.

    Raises:
        TransportError: If the endpoint reported {"success": false}
        ParseError: If "results" is present but malformed
    """
    if not isinstance(payload, dict):
        return RemoteReply()

    if payload.get("success") is False:
        message = payload.get("error") or payload.get("message") or "Survey endpoint rejected the ballot"
        raise TransportError(status_code, str(message))

    results = payload.get("results")
    if results is None:
        return RemoteReply()
    return RemoteReply(results=Tally.from_results(results))


class SubmissionStrategy(ABC):
    """Abstract base class for delivering ballots.

    Each strategy handles one way of talking to the survey endpoint.
    Strategies are registered via the @register_strategy decorator in
    survey/strategies/__init__.py and selected by name from settings.
    """

    name: str = ""

    def __init__(self, settings, transport: httpx.BaseTransport | None = None):
        self.settings = settings
        self.transport = transport

    @abstractmethod
    def send(self, ballot: Ballot) -> RemoteReply:
        """Deliver a ballot.

        Returns:
            RemoteReply, with the remote aggregate if the endpoint sent one

        Raises:
            TransportError: If the request failed
            ParseError: If the reply could not be interpreted
        """
        pass

    @abstractmethod
    def fetch_results(self) -> RemoteReply:
        """Fetch the remote aggregate without submitting anything.

        Raises:
            TransportError: If the request failed
            ParseError: If the reply held no usable results
        """
        pass


class HttpStrategy(SubmissionStrategy):
    """Shared plumbing for strategies that talk to the endpoint over HTTP."""

    def __init__(self, settings, transport: httpx.BaseTransport | None = None):
        super().__init__(settings, transport=transport)
        if not settings.endpoint_url:
            raise ConfigurationError(
                f"The {self.name!r} strategy needs an endpoint URL (SURVEY_ENDPOINT_URL)"
            )
        self.endpoint_url = settings.endpoint_url

    def _client(self) -> httpx.Client:
        return httpx.Client(
            follow_redirects=True,
            timeout=self.settings.request_timeout_s,
            transport=self.transport,
        )

    def _call(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Make a request, converting every failure into TransportError."""
        try:
            with self._client() as client:
                response = client.request(method, url, **kwargs)
                response.raise_for_status()
                return response
        except httpx.HTTPStatusError as e:
            raise TransportError(
                e.response.status_code,
                f"Survey endpoint returned an error: {e.response.reason_phrase}",
            ) from e
        except httpx.TimeoutException as e:
            raise TransportError(
                None,
                f"Survey endpoint did not answer within {self.settings.request_timeout_s}s",
            ) from e
        except httpx.RequestError as e:
            raise TransportError(None, f"Error reaching survey endpoint: {e}") from e

    @abstractmethod
    def decode(self, response: httpx.Response) -> Any:
        """Extract the JSON payload from a response.

        Raises:
            ParseError: If the body holds no JSON
        """
        pass

    def fetch_results(self) -> RemoteReply:
        url = self.settings.resolved_results_url()
        response = self._call("GET", url)
        reply = interpret_reply(self.decode(response), response.status_code)
        if not reply.has_results:
            raise ParseError("Results reply did not include any results")
        return reply
