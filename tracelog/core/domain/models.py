# tracelog/core/domain/models.py
import logging
from enum import Enum, IntEnum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict

# --- Enums ---

class Level(IntEnum):
    """
    Log severity, ordered DEBUG < INFO < WARN < ERROR < DPANIC < PANIC < FATAL.
    Values line up with the stdlib logging numbers so sinks can filter natively.
    """
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARN = logging.WARNING
    ERROR = logging.ERROR
    DPANIC = 43
    PANIC = 46
    FATAL = logging.CRITICAL

    @property
    def label(self) -> str:
        """Lowercase name written to the 'level' key ('warn', 'dpanic', ...)."""
        return self.name.lower()

    @classmethod
    def parse(cls, value: Union["Level", int, str]) -> "Level":
        """Accepts a Level, its integer value or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int):
            return cls(value)
        name = str(value).strip().upper()
        name = _LEVEL_ALIASES.get(name, name)
        try:
            return cls[name]
        except KeyError:
            raise ValueError(f"Unknown log level: {value!r}") from None


_LEVEL_ALIASES = {"WARNING": "WARN", "CRITICAL": "FATAL"}

# Only the levels stdlib has no name for.
logging.addLevelName(Level.DPANIC, "DPANIC")
logging.addLevelName(Level.PANIC, "PANIC")


class FieldKind(str, Enum):
    """What a field value holds. ABSENT entries are never emitted."""
    ABSENT = "absent"
    STRING = "string"
    INTEGER = "integer"
    STRUCTURED = "structured"

# --- Value Objects ---

class Field(BaseModel):
    """
    A key/value pair attached to one log call.

    ``value=None`` means absent. Zero, the empty string and False are
    real values and are emitted.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: str
    value: Any = None

    @property
    def kind(self) -> FieldKind:
        if self.value is None:
            return FieldKind.ABSENT
        if isinstance(self.value, str):
            return FieldKind.STRING
        if isinstance(self.value, int) and not isinstance(self.value, bool):
            return FieldKind.INTEGER
        return FieldKind.STRUCTURED

    @property
    def is_absent(self) -> bool:
        return self.value is None


def field(key: str, value: Any) -> Field:
    return Field(key=key, value=value)


def field_format(key: str, fmt: str, *args: Any) -> Field:
    """Builds a string field from a printf-style format, e.g. ``field_format("sum", "%d + %d", 1, 2)``."""
    return Field(key=key, value=fmt % args if args else fmt)


def field_error(err: Optional[BaseException], key: str = "err") -> Field:
    """
    Builds an error field. A None error yields an absent field, so callers can
    pass a possibly-missing exception without emitting an empty entry.
    """
    if err is None:
        return Field(key=key)
    return Field(key=key, value=str(err))
