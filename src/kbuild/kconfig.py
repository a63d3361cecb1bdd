"""Parser for the shared Kconfig-style option file (``.config``).

The grammar is line oriented::

    # comment
    CONFIG_SMP=y
    CONFIG_LOG_LEVEL=3
    CONFIG_DEFAULT_SCHEDULER="cfs"

Values are classified by shape: ``y``/``n``/``m`` are tristates, a double
quoted run is a string (no escape processing) and a decimal literal is an
integer. Anything else is a parse error.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from kbuild.errors import ConfigNotFound, ConfigParseError, ConfigReadError
from kbuild.logging import get_logger

__all__ = ["Tristate", "ConfigValue", "ConfigEntry", "KConfig", "parse_config", "parse_config_text"]

logger = get_logger("kconfig")

_INT_RE = re.compile(r"[+-]?[0-9]+")
_INT_MIN = -(2**63)
_INT_MAX = 2**64 - 1


class Tristate(Enum):
    YES = "y"
    NO = "n"
    MODULE = "m"

    @property
    def enabled(self) -> bool:
        return self is not Tristate.NO


ConfigValue = Tristate | int | str


@dataclass(frozen=True, slots=True)
class ConfigEntry:
    key: str
    value: ConfigValue
    line: int

    @property
    def is_tristate(self) -> bool:
        return isinstance(self.value, Tristate)

    @property
    def enabled(self) -> bool:
        return isinstance(self.value, Tristate) and self.value.enabled


class KConfig(Mapping[str, ConfigEntry]):
    """Immutable, insertion-ordered view of a parsed option file."""

    def __init__(self, entries: Mapping[str, ConfigEntry], *, path: Path | None = None) -> None:
        self._entries = dict(entries)
        self.path = path

    def __getitem__(self, key: str) -> ConfigEntry:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"KConfig(path={self.path!s}, entries={len(self._entries)})"

    def value(self, key: str) -> ConfigValue | None:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def enabled(self) -> list[str]:
        """Keys whose value is ``y`` or ``m``, in file order."""
        return [key for key, entry in self._entries.items() if entry.enabled]

    def constants(self) -> list[ConfigEntry]:
        """Integer and string entries, in file order."""
        return [entry for entry in self._entries.values() if not entry.is_tristate]


def _classify(raw: str, *, line: int, text: str) -> ConfigValue:
    if raw in {"y", "n", "m"}:
        return Tristate(raw)
    if len(raw) >= 2 and raw.startswith('"') and raw.endswith('"'):
        return raw[1:-1]
    if _INT_RE.fullmatch(raw):
        value = int(raw)
        if not _INT_MIN <= value <= _INT_MAX:
            raise ConfigParseError(line=line, text=text, reason="integer literal out of range")
        return value

    raise ConfigParseError(
        line=line,
        text=text,
        reason="value must be y, n, m, a quoted string or a decimal integer",
    )


def parse_config_text(text: str) -> KConfig:
    entries: dict[str, ConfigEntry] = {}
    # Only \n and \r\n end a line.
    for line_no, raw_line in enumerate(text.split("\n"), start=1):
        raw_line = raw_line.removesuffix("\r")
        stripped = raw_line.strip()
        if not stripped or stripped.startswith("#"):
            continue

        if "=" not in stripped:
            raise ConfigParseError(line=line_no, text=raw_line, reason="expected KEY=VALUE")

        key, raw_value = stripped.split("=", 1)
        key = key.strip()
        if not key:
            raise ConfigParseError(line=line_no, text=raw_line, reason="empty option name")
        if any(ch.isspace() for ch in key):
            raise ConfigParseError(
                line=line_no, text=raw_line, reason="option name contains whitespace"
            )

        value = _classify(raw_value.strip(), line=line_no, text=raw_line)

        previous = entries.get(key)
        if previous is not None:
            raise ConfigParseError(
                line=line_no,
                text=raw_line,
                reason=f"duplicate option {key} (lines {previous.line} and {line_no})",
                first_line=previous.line,
            )

        entries[key] = ConfigEntry(key=key, value=value, line=line_no)

    return KConfig(entries)


def parse_config(path: str | Path) -> KConfig:
    config_path = Path(path).resolve()
    try:
        data = config_path.read_bytes()
    except FileNotFoundError as exc:
        raise ConfigNotFound(config_path) from exc
    except OSError as exc:
        raise ConfigReadError(path=config_path, reason=exc.strerror or str(exc)) from exc

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        start = data.rfind(b"\n", 0, exc.start) + 1
        end = data.find(b"\n", exc.start)
        raise ConfigParseError(
            line=data.count(b"\n", 0, exc.start) + 1,
            text=data[start : end if end != -1 else len(data)].decode("utf-8", "replace"),
            reason="invalid UTF-8",
            path=config_path,
        ) from exc

    try:
        parsed = parse_config_text(text)
    except ConfigParseError as exc:
        raise exc.with_path(config_path) from None

    logger.debug("Parsed %d option(s) from %s.", len(parsed), config_path)
    return KConfig(parsed, path=config_path)
