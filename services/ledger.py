"""Record of Mastodon post ids that have already been handled.

The file format is a pretty-printed JSON array of id strings, read in full
at startup and rewritten in full on every commit.
"""

import json
import os
import tempfile

from errors import LedgerIOError
from logger import logger


class JsonFileStore:
    """Keeps the id list in a JSON file, replaced atomically on write."""

    def __init__(self, path):
        self.path = path

    def load(self):
        if not os.path.exists(self.path):
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise LedgerIOError(f"Could not read {self.path}: {e}") from e
        if not isinstance(data, list):
            raise LedgerIOError(f"{self.path} does not contain a JSON array")
        return [str(item) for item in data]

    def save(self, ids):
        directory = os.path.dirname(os.path.abspath(self.path))
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(ids, f, indent=2)
                    f.write("\n")
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
                raise
        except OSError as e:
            raise LedgerIOError(f"Could not write {self.path}: {e}") from e


class MemoryStore:
    def __init__(self, ids=None):
        self.ids = list(ids or [])
        self.saves = 0

    def load(self):
        return list(self.ids)

    def save(self, ids):
        self.ids = list(ids)
        self.saves += 1


class Ledger:
    """Set of committed post ids backed by a store with load()/save()."""

    def __init__(self, store):
        self.store = store
        try:
            self._ids = store.load()
        except LedgerIOError as e:
            logger.warning(f"{e}; starting with an empty ledger")
            self._ids = []
        self._seen = set(self._ids)

    def __contains__(self, post_id):
        return str(post_id) in self._seen

    def __len__(self):
        return len(self._ids)

    @property
    def ids(self):
        return list(self._ids)

    def commit(self, post_id):
        """Add ``post_id`` and persist before returning. Raises LedgerIOError."""
        post_id = str(post_id)
        if post_id in self._seen:
            return
        ids = self._ids + [post_id]
        self.store.save(ids)
        self._ids = ids
        self._seen.add(post_id)
