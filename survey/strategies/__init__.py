"""Ways of delivering a ballot to the remote survey endpoint."""

from survey.errors import ConfigurationError

from .base import RemoteReply, SubmissionStrategy

# Strategy registry - strategy modules register themselves on import
_strategies: dict[str, type[SubmissionStrategy]] = {}


def register_strategy(strategy_class: type[SubmissionStrategy]) -> type[SubmissionStrategy]:
    """Decorator to register a strategy class under its `name`."""
    _strategies[strategy_class.name] = strategy_class
    return strategy_class


def get_strategy_names() -> list[str]:
    """Return the names of all registered strategies."""
    return list(_strategies)


def get_strategy(name: str, settings, transport=None) -> SubmissionStrategy:
    """Build the strategy registered under `name`.

    Args:
        name: Strategy name (e.g. "local", "form", "json")
        settings: survey.config.Settings supplying URLs and the timeout
        transport: Optional httpx transport, used by tests to stand in
            for the remote endpoint

    Raises:
        ConfigurationError: If no strategy has that name
    """
    strategy_class = _strategies.get(name)
    if strategy_class is None:
        available = ", ".join(sorted(_strategies))
        raise ConfigurationError(
            f"Unknown submission strategy {name!r}. Available: {available}"
        )
    return strategy_class(settings, transport=transport)


# Import built-in strategies to register them
from survey.strategies import local, form_post, json_post  # noqa: E402,F401

__all__ = [
    "RemoteReply",
    "SubmissionStrategy",
    "get_strategy",
    "get_strategy_names",
    "register_strategy",
]
