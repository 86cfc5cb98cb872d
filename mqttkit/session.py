"""Per-connection session state."""

from __future__ import annotations

from typing import Any


class Session:
    """An MQTT connection session holding user state and the outgoing sink.

    Unknown attributes are looked up on the user state.
    """

    __slots__ = ("_state", "_sink", "_max_receive", "_max_topic_alias")

    def __init__(
        self,
        state: Any,
        sink: Any,
        max_receive: int = 0,
        max_topic_alias: int = 0,
    ) -> None:
        self._state = state
        self._sink = sink
        self._max_receive = max_receive
        self._max_topic_alias = max_topic_alias

    @property
    def state(self) -> Any:
        return self._state

    @property
    def sink(self) -> Any:
        return self._sink

    def params(self) -> tuple[int, int]:
        """Return ``(max_receive, max_topic_alias)``."""
        return self._max_receive, self._max_topic_alias

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self._state, name)

    def __repr__(self) -> str:
        return f"Session(state={self._state!r})"