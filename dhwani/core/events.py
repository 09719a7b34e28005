"""Publish/subscribe plumbing between the tuner service and its renderers."""

from collections import defaultdict
from enum import Enum, auto
from typing import Any, Callable, DefaultDict, List

from ..logger import get_logger
from ..note_types import NoteEvent

logger = get_logger(__name__)

Listener = Callable[..., None]


class TunerEventType(Enum):
    NOTE_EVENT = auto()
    SILENCE = auto()


class EventEmitter:
    """Calls registered listeners in registration order.

    A listener that raises is logged and skipped; the remaining listeners
    still run and the exception never reaches the audio thread.
    """

    def __init__(self):
        self._listeners: DefaultDict[Any, List[Listener]] = defaultdict(list)

    def on(self, event_type: Any, callback: Listener) -> None:
        """Subscribe ``callback`` to ``event_type``; subscribing twice is a no-op."""
        listeners = self._listeners[event_type]
        if callback in listeners:
            return
        listeners.append(callback)
        logger.debug(f"Listener {getattr(callback, '__name__', callback)!s} added for {event_type}")

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        for callback in tuple(self._listeners.get(event_type, ())):
            try:
                callback(*args, **kwargs)
            except Exception as e:
                logger.error(f"Listener for {event_type} failed: {e}", exc_info=True)

    def clear(self) -> None:
        self._listeners.clear()
        logger.debug("All listeners removed")


class TunerEvents:
    """Typed front end over :class:`EventEmitter` for tuner output."""

    def __init__(self):
        self._emitter = EventEmitter()

    def on_note_event(self, callback: Callable[[NoteEvent], None]) -> None:
        """Called with every frame's :class:`~dhwani.note_types.NoteEvent`."""
        self._emitter.on(TunerEventType.NOTE_EVENT, callback)

    def on_silence(self, callback: Callable[[float], None]) -> None:
        """Called with the timestamp (seconds) of every frame without a usable pitch."""
        self._emitter.on(TunerEventType.SILENCE, callback)

    def emit_note_event(self, event: NoteEvent) -> None:
        self._emitter.emit(TunerEventType.NOTE_EVENT, event)

    def emit_silence(self, timestamp: float) -> None:
        self._emitter.emit(TunerEventType.SILENCE, timestamp)

    def clear(self) -> None:
        self._emitter.clear()
