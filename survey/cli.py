"""Command line front end for casting votes and viewing results.

Usage:
    flavor-survey vote Tiramisu Parmesan "Spruce Tips" --name Alice
    flavor-survey results
    flavor-survey results --all
"""

import argparse
import logging
import sys

from survey.config import Settings
from survey.errors import ConfigurationError, ValidationError
from survey.render import FLAVORS, build_rows, render_text
from survey.store import JsonFileStore
from survey.strategies import get_strategy_names
from survey.submit import cast_vote, current_results


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="flavor-survey",
        description="Vote for your favorite ice cream flavors.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log submission details")
    subparsers = parser.add_subparsers(dest="command", required=True)

    vote = subparsers.add_parser("vote", help="Cast a ranked ballot")
    vote.add_argument("first", help="Your favorite flavor (3 points)")
    vote.add_argument("second", nargs="?", help="Second choice (2 points)")
    vote.add_argument("third", nargs="?", help="Third choice (1 point)")
    vote.add_argument("--name", help="Your name (default: Anonymous)")
    vote.add_argument("--suggestion", help="A flavor you'd like to see")
    vote.add_argument(
        "--strategy",
        choices=get_strategy_names(),
        help="Override the configured submission strategy",
    )

    results = subparsers.add_parser("results", help="Show the current local results")
    results.add_argument("--all", action="store_true", help="Show every flavor, not just the top ones")

    subparsers.add_parser("flavors", help="List the flavors on the menu")
    return parser


def main(argv: list[str] | None = None, settings: Settings | None = None, transport=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    settings = settings or Settings()
    store = JsonFileStore(settings.store_path)

    if args.command == "flavors":
        for flavor in FLAVORS:
            print(flavor)
        return 0

    if args.command == "results":
        limit = None if args.all else settings.display_limit
        print(render_text(build_rows(current_results(store, limit=limit))))
        return 0

    if args.strategy:
        settings = settings.model_copy(update={"strategy": args.strategy})

    try:
        outcome = cast_vote(
            args.first, args.second, args.third,
            voter_name=args.name,
            suggestion=args.suggestion,
            store=store,
            settings=settings,
            transport=transport,
        )
    except ValidationError as e:
        print(e.message, file=sys.stderr)
        return 2
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    print(outcome.notice.message)
    print(render_text(build_rows(outcome.results)))
    return 0


if __name__ == "__main__":
    sys.exit(main())
