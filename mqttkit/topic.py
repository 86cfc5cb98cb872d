"""MQTT topic names and topic filters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import BinaryIO, Iterable, Iterator


class TopicError(ValueError):
    """Base class for topic parsing errors."""


class InvalidTopicError(TopicError):
    """The topic as a whole is not valid."""


class InvalidLevelError(TopicError):
    """A single topic level is not valid."""


class LevelKind(Enum):
    NORMAL = "normal"
    METADATA = "metadata"
    BLANK = "blank"
    SINGLE_WILDCARD = "+"
    MULTI_WILDCARD = "#"


def _has_wildcard(s: str) -> bool:
    return "+" in s or "#" in s


def _is_metadata(s: str) -> bool:
    return s.startswith("$")


@dataclass(frozen=True)
class Level:
    """One level of a topic, between slashes."""

    kind: LevelKind
    value: str | None = None

    @classmethod
    def parse(cls, s: str) -> Level:
        """Parse one level, raising InvalidLevelError on a misplaced wildcard."""
        if s == "+":
            return cls(LevelKind.SINGLE_WILDCARD)
        if s == "#":
            return cls(LevelKind.MULTI_WILDCARD)
        if s == "":
            return cls(LevelKind.BLANK)
        if _has_wildcard(s):
            raise InvalidLevelError(s)
        if _is_metadata(s):
            return cls(LevelKind.METADATA, s)
        return cls(LevelKind.NORMAL, s)

    @classmethod
    def normal(cls, s: str) -> Level:
        if _has_wildcard(s):
            raise ValueError(f"invalid normal level `{s}` contains +|#")
        if _is_metadata(s):
            raise ValueError(f"invalid normal level `{s}` starts with $")
        return cls(LevelKind.NORMAL, s)

    @classmethod
    def metadata(cls, s: str) -> Level:
        if _has_wildcard(s):
            raise ValueError(f"invalid metadata level `{s}` contains +|#")
        if not _is_metadata(s):
            raise ValueError(f"invalid metadata level `{s}` not starts with $")
        return cls(LevelKind.METADATA, s)

    def is_normal(self) -> bool:
        return self.kind is LevelKind.NORMAL

    def is_metadata(self) -> bool:
        return self.kind is LevelKind.METADATA

    def is_valid(self) -> bool:
        if self.kind is LevelKind.NORMAL:
            return not _is_metadata(self.value or "") and not _has_wildcard(self.value or "")
        if self.kind is LevelKind.METADATA:
            return _is_metadata(self.value or "") and not _has_wildcard(self.value or "")
        return True

    def __str__(self) -> str:
        if self.kind in (LevelKind.NORMAL, LevelKind.METADATA):
            return self.value or ""
        if self.kind is LevelKind.BLANK:
            return ""
        return self.kind.value


def match_level(value: str | Level, level: Level) -> bool:
    """Check whether ``value`` (a string or a Level) matches the pattern ``level``."""
    if isinstance(value, Level):
        if level.kind in (LevelKind.NORMAL, LevelKind.METADATA):
            return value.kind is level.kind and value.value == level.value
        if level.kind is LevelKind.BLANK:
            return True
        return not value.is_metadata()

    if level.kind is LevelKind.NORMAL:
        return not _is_metadata(value) and level.value == value
    if level.kind is LevelKind.METADATA:
        return _is_metadata(value) and level.value == value
    if level.kind is LevelKind.BLANK:
        return value == ""
    return not _is_metadata(value)


class Topic:
    """A topic name or filter made of levels."""

    def __init__(self, levels: Iterable[Level]) -> None:
        self.levels = list(levels)

    @classmethod
    def parse(cls, s: str) -> Topic:
        topic = cls(Level.parse(part) for part in s.split("/"))
        if not topic.is_valid():
            raise InvalidTopicError(s)
        return topic

    def is_valid(self) -> bool:
        if not all(level.is_valid() for level in self.levels):
            return False
        last = len(self.levels) - 1
        for pos, level in enumerate(self.levels):
            if level.kind is LevelKind.MULTI_WILDCARD and pos != last:
                return False
            if level.kind is LevelKind.METADATA and pos != 0:
                return False
        return True

    def _matches(self, others: Iterable[str | Level]) -> bool:
        lhs = iter(self.levels)
        for rhs in others:
            pattern = next(lhs, None)
            if pattern is None:
                return False
            if pattern.kind is LevelKind.SINGLE_WILDCARD:
                if not match_level(rhs, pattern):
                    break
            elif pattern.kind is LevelKind.MULTI_WILDCARD:
                return match_level(rhs, pattern)
            elif not match_level(rhs, pattern):
                return False
        rest = next(lhs, None)
        return rest is None or rest.kind is LevelKind.MULTI_WILDCARD

    def matches(self, topic: Topic) -> bool:
        """Check whether this filter matches another topic's levels."""
        return self._matches(topic.levels)

    def matches_str(self, topic: str) -> bool:
        """Check whether this filter matches a topic string."""
        return self._matches(topic.split("/"))

    def __str__(self) -> str:
        return "/".join(str(level) for level in self.levels)

    def __repr__(self) -> str:
        return f"Topic({self.levels!r})"

    def __iter__(self) -> Iterator[Level]:
        return iter(self.levels)

    def __len__(self) -> int:
        return len(self.levels)

    def __getitem__(self, index: int) -> Level:
        return self.levels[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Topic):
            return NotImplemented
        return self.levels == other.levels


def write_level(stream: BinaryIO, level: Level) -> int:
    """Write one level to a binary stream, returning the bytes written."""
    data = str(level).encode("utf-8")
    if not data:
        return 0
    return stream.write(data)


def write_topic(stream: BinaryIO, topic: Topic) -> int:
    """Write a topic to a binary stream, returning the bytes written."""
    written = 0
    for pos, level in enumerate(topic):
        if pos:
            written += stream.write(b"/")
        written += write_level(stream, level)
    return written