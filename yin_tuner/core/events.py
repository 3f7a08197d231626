"""Event system for yin_tuner components."""

from collections import defaultdict
from enum import Enum, auto
from typing import Any, Callable, DefaultDict, List

from ..logging_config import get_logger

logger = get_logger(__name__)


class TunerEventType(Enum):
    """Event types emitted by a tuner session."""

    READING = auto()
    ERROR = auto()


class EventEmitter:
    """Minimal publish/subscribe hub keyed by ``TunerEventType``."""

    def __init__(self):
        self._listeners: DefaultDict[TunerEventType, List[Callable]] = defaultdict(list)

    def on(self, event_type: TunerEventType, callback: Callable) -> None:
        """Register a callback; registering the same callback twice is a no-op."""
        listeners = self._listeners[event_type]
        if callback not in listeners:
            listeners.append(callback)
            logger.debug(f"Added listener for {event_type.name}")

    def off(self, event_type: TunerEventType, callback: Callable) -> None:
        """Remove a previously registered callback."""
        listeners = self._listeners[event_type]
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event_type: TunerEventType, payload: Any) -> None:
        """Call every listener for ``event_type`` with ``payload``.

        Listeners run in registration order on the emitting thread. A failing
        listener is logged and the remaining ones still run.
        """
        for callback in tuple(self._listeners[event_type]):
            try:
                callback(payload)
            except Exception as e:
                logger.error(f"{event_type.name} listener {callback!r} failed: {e}", exc_info=True)

    def listener_count(self, event_type: TunerEventType) -> int:
        return len(self._listeners[event_type])

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()


class TunerEvents:
    """Typed wrapper around EventEmitter for tuner sessions."""

    def __init__(self):
        self._emitter = EventEmitter()

    def on_reading(self, callback: Callable) -> None:
        """Register a callback taking one ``TunerReading`` per frame."""
        self._emitter.on(TunerEventType.READING, callback)

    def on_error(self, callback: Callable) -> None:
        """Register a callback taking the exception raised while processing a frame."""
        self._emitter.on(TunerEventType.ERROR, callback)

    def off_reading(self, callback: Callable) -> None:
        self._emitter.off(TunerEventType.READING, callback)

    def emit_reading(self, reading) -> None:
        self._emitter.emit(TunerEventType.READING, reading)

    def emit_error(self, error: Exception) -> None:
        self._emitter.emit(TunerEventType.ERROR, error)

    @property
    def emitter(self) -> EventEmitter:
        return self._emitter

    def clear(self) -> None:
        """Remove all event listeners."""
        self._emitter.clear()
