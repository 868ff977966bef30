"""Vercel serverless function for casting votes and reading results."""

import json
import sys
from pathlib import Path

# Add the project root to the path so we can import survey modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from survey.config import Settings
from survey.errors import ConfigurationError, ValidationError
from survey.models import Notice, NoticeKind
from survey.render import build_rows
from survey.store import JsonFileStore
from survey.submit import cast_vote, current_results


def handler(request, settings: Settings | None = None, transport=None):
    """Handle incoming survey requests.

    Accepts:
    - POST with JSON body: {"name", "firstChoice", "secondChoice",
      "thirdChoice", "suggestion", "ballotId"}
    - GET for the current results

    Returns JSON with a notice for the voter and the results rows.
    """
    # Handle CORS preflight
    if request.method == "OPTIONS":
        return create_response(
            "",
            status=204,
            headers={
                "Access-Control-Allow-Origin": "*",
                "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
                "Access-Control-Allow-Headers": "Content-Type",
            },
        )

    settings = settings or Settings()
    store = JsonFileStore(settings.store_path)

    if request.method == "GET":
        rows = build_rows(current_results(store, limit=settings.display_limit))
        return create_response({"results": [row.to_dict() for row in rows]})

    if request.method != "POST":
        return create_response(
            {"error": "Method not allowed. Use GET or POST."},
            status=405,
        )

    try:
        content_type = request.headers.get("content-type", "")
        if "application/json" not in content_type:
            return create_response(
                {"error": f"Unsupported content type: {content_type}"},
                status=400,
            )

        data = json.loads(request.body.decode("utf-8"))
        if not isinstance(data, dict):
            return create_response(
                {"error": "Request body must be a JSON object"},
                status=400,
            )

        outcome = cast_vote(
            data.get("firstChoice"),
            data.get("secondChoice"),
            data.get("thirdChoice"),
            voter_name=data.get("name"),
            suggestion=data.get("suggestion"),
            ballot_id=data.get("ballotId"),
            store=store,
            settings=settings,
            transport=transport,
        )

        body = outcome.to_dict()
        body["results"] = [row.to_dict() for row in build_rows(outcome.results)]
        return create_response(body)

    except ValidationError as e:
        return create_response(
            {
                "error": e.message,
                "kind": e.kind.value,
                "notice": Notice(NoticeKind.ERROR, e.message).to_dict(),
            },
            status=400,
        )
    except ConfigurationError as e:
        return create_response(
            {"error": f"Survey is misconfigured: {e}"},
            status=500,
        )
    except json.JSONDecodeError as e:
        return create_response(
            {"error": f"Invalid JSON: {e}"},
            status=400,
        )
    except Exception as e:
        return create_response(
            {"error": f"Internal error: {e}"},
            status=500,
        )


def create_response(body, status: int = 200, headers: dict = None):
    """Create a response object for Vercel."""
    response_headers = {
        "Content-Type": "application/json",
        "Access-Control-Allow-Origin": "*",
    }
    if headers:
        response_headers.update(headers)

    if isinstance(body, dict):
        body = json.dumps(body)

    # Return in format expected by Vercel Python runtime
    return {
        "statusCode": status,
        "headers": response_headers,
        "body": body,
    }
