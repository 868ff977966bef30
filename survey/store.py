"""Key-value persistence for the local tally."""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path

from survey.errors import ParseError
from survey.tally import Tally

logger = logging.getLogger(__name__)

TALLY_KEY = "iceCreamVotes"
MERGED_KEY = "iceCreamVotes:merged"


class KeyValueStore(ABC):
    """String key-value store, in the manner of a browser's localStorage."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the stored value, or None if the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass


class MemoryStore(KeyValueStore):
    """Store that lives only as long as the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore(KeyValueStore):
    """Store kept as a single JSON object in a file.

    A missing file is an empty store. Parent directories are created on the
    first write.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ParseError(f"Store file {self.path} is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ParseError(f"Store file {self.path} does not hold a JSON object")
        return data

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        try:
            data = self._read()
        except ParseError as e:
            logger.warning("Replacing unreadable store file: %s", e)
            data = {}
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _load_json(store: KeyValueStore, key: str):
    raw = store.get(key)
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise ParseError(f"Stored value under {key!r} is not valid JSON: {e}") from e


def load_tally(store: KeyValueStore) -> Tally:
    """Load the saved tally; an absent key means no votes yet."""
    data = _load_json(store, TALLY_KEY)
    if data is None:
        return Tally()
    return Tally.from_dict(data)


def save_tally(store: KeyValueStore, tally: Tally) -> None:
    store.set(TALLY_KEY, json.dumps(tally.to_dict()))
    logger.debug("Saved tally with %d flavors (%d points)", len(tally), tally.total)


def load_merged_ids(store: KeyValueStore) -> set[str]:
    """Ids of ballots already merged into the saved tally."""
    data = _load_json(store, MERGED_KEY)
    if data is None:
        return set()
    if not isinstance(data, list):
        raise ParseError(f"Stored value under {MERGED_KEY!r} is not a list")
    return {str(ballot_id) for ballot_id in data}


def save_merged_ids(store: KeyValueStore, ballot_ids: set[str]) -> None:
    store.set(MERGED_KEY, json.dumps(sorted(str(ballot_id) for ballot_id in ballot_ids)))


def recover_tally(store: KeyValueStore) -> Tally:
    """Like load_tally, but an unreadable value starts a fresh tally."""
    try:
        return load_tally(store)
    except ParseError as e:
        logger.warning("Discarding unreadable saved tally: %s", e)
        return Tally()


def recover_merged_ids(store: KeyValueStore) -> set[str]:
    """Like load_merged_ids, but an unreadable value starts a fresh set."""
    try:
        return load_merged_ids(store)
    except ParseError as e:
        logger.warning("Discarding unreadable merged ballot ids: %s", e)
        return set()
