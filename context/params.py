import logging
import re
import shlex
from pathlib import Path
from types import MappingProxyType
from typing import Iterable, Mapping

import context._globals as _globals
from util.sanitization import to_json_string

logger = logging.getLogger(__name__)

_ASSIGNMENT = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)=(.*)$")


def _strip_inline_comment(value: str) -> str:
    """Cuts a trailing `# ...` comment: an unquoted # that starts a word."""
    quote = None
    escaped = False
    after_space = False
    for i, ch in enumerate(value):
        if escaped:
            escaped = after_space = False
            continue
        if quote:
            if ch == quote:
                quote = None
            elif ch == "\\" and quote == '"':
                escaped = True
        elif ch == "\\":
            escaped = True
        elif ch in "'\"":
            quote = ch
        elif ch == "#" and after_space:
            return value[:i]
        after_space = quote is None and ch.isspace()
    return value


class ParameterSet:
    """
    Immutable view over the flat key/value parameters of one run.

    Missing keys read as "". Fields listed in `json_fields` are also available
    in their JSON-normalized form through `json()`.
    """

    def __init__(self, values: Mapping[str, str] = None, json_fields: Iterable[str] = _globals.JSON_FIELDS):
        self._values = MappingProxyType(dict(values or {}))
        self._json_fields = tuple(json_fields)

    def get(self, key: str) -> str:
        return self._values.get(key, "")

    def __getitem__(self, key: str) -> str:
        return self.get(key)

    def __contains__(self, key: str) -> bool:
        return key in self._values

    def __len__(self) -> int:
        return len(self._values)

    @property
    def values(self) -> Mapping[str, str]:
        return self._values

    @property
    def json_fields(self) -> tuple:
        return self._json_fields

    def json(self, key: str) -> str:
        """Returns the value of `key` as valid JSON text (single quotes normalized)."""
        return to_json_string(self.get(key))

    def normalized(self) -> dict:
        """All values, with the JSON fields normalized."""
        out = dict(self._values)
        for key in self._json_fields:
            out[key] = self.json(key)
        return out

    def __repr__(self) -> str:
        return f"ParameterSet(keys={sorted(self._values)})"


class ParameterLoader:
    """
    Reads a flat shell parameter file (`KEY=value` / `export KEY=value` lines).

    The file is parsed, never executed. Values are unquoted with shell rules.
    """

    @staticmethod
    def parse(text: str) -> dict:
        """
        Parses assignment lines into a dict.

        Lines that are blank, comments, or not assignments are skipped, and a
        trailing `# comment` is dropped from the value. A line whose quoting
        cannot be tokenized is skipped with a warning.
        """
        values: dict = {}
        for lineno, raw in enumerate(text.splitlines(), 1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            match = _ASSIGNMENT.match(line)
            if not match:
                logger.debug("[ParameterLoader] Skipping non-assignment line %d", lineno)
                continue
            key, raw_value = match.groups()
            try:
                tokens = shlex.split(_strip_inline_comment(raw_value), posix=True)
            except ValueError as e:
                logger.warning("[ParameterLoader] Skipping line %d (%s): %s", lineno, key, e)
                continue
            values[key] = " ".join(tokens)
        return values

    @staticmethod
    def load(path: Path | str = None, json_fields: Iterable[str] = _globals.JSON_FIELDS) -> ParameterSet:
        """
        Loads the parameter file. A missing or unreadable file yields an empty
        ParameterSet, so downstream fields default to "".

        Args:
            path: Parameter file; defaults to ./parameters.sh.
            json_fields: Keys holding embedded JSON.

        Returns:
            ParameterSet
        """
        path = Path(path or _globals.PARAMETERS_FILE)
        if not path.is_file():
            logger.info("[ParameterLoader] No parameter file at %s; using empty defaults", path)
            return ParameterSet({}, json_fields)

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("[ParameterLoader] Could not read %s: %s", path, e)
            return ParameterSet({}, json_fields)

        values = ParameterLoader.parse(text)
        logger.info("[ParameterLoader] Loaded %d parameters from %s", len(values), path)
        return ParameterSet(values, json_fields)
