# grant_store.py

import logging
from pathlib import Path
from typing import Optional

import context._globals as _globals

logger = logging.getLogger(__name__)


class GrantStore:
    """
    Single-slot durable store for the temporary role-assignment id.

    There is no locking: two processes sharing one store is undefined behavior.
    """

    def read(self) -> Optional[str]:
        raise NotImplementedError

    def write(self, assignment_id: str) -> None:
        raise NotImplementedError

    def delete(self) -> None:
        raise NotImplementedError


class FileGrantStore(GrantStore):
    """Keeps the record as a single line in a local file."""

    def __init__(self, path: Path | str = None):
        self.path = Path(path or _globals.GRANT_STATE_FILE)

    def read(self) -> Optional[str]:
        try:
            text = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("[GrantStore] Could not read %s: %s", self.path, e)
            return None
        lines = text.strip().splitlines()
        return lines[0].strip() if lines else None

    def write(self, assignment_id: str) -> None:
        self.path.write_text(assignment_id.strip() + "\n", encoding="utf-8")
        logger.info("[GrantStore] Recorded temporary grant in %s", self.path)

    def delete(self) -> None:
        try:
            self.path.unlink()
            logger.info("[GrantStore] Removed %s", self.path)
        except FileNotFoundError:
            pass


class MemoryGrantStore(GrantStore):
    """In-process store, for tests and dry runs."""

    def __init__(self, assignment_id: Optional[str] = None):
        self._slot = assignment_id

    def read(self) -> Optional[str]:
        return self._slot

    def write(self, assignment_id: str) -> None:
        self._slot = assignment_id.strip()

    def delete(self) -> None:
        self._slot = None
