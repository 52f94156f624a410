"""
Structured trace events for the extraction and mapping pipeline.

A Tracer is handed to each component instead of components writing
free-form output. Events are logged at DEBUG and kept in memory so callers
(and tests) can inspect what happened to a document.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class TraceEvent:
    """A single named pipeline event with its attributes."""

    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)


class Tracer:
    """Collects pipeline events and mirrors them to the logging system."""

    def __init__(self, component: str = "taxdoc", keep_events: bool = True):
        self.component = component
        self.keep_events = keep_events
        self.events: List[TraceEvent] = []

    def emit(self, name: str, **attributes: Any) -> TraceEvent:
        event = TraceEvent(name=name, attributes=attributes)
        if self.keep_events:
            self.events.append(event)
        logger.debug(f"[{self.component}] {name} {attributes}")
        return event

    def names(self) -> List[str]:
        """Event names in emission order."""
        return [event.name for event in self.events]

    def find(self, name: str) -> List[TraceEvent]:
        return [event for event in self.events if event.name == name]

    def clear(self) -> None:
        self.events.clear()


def ensure_tracer(tracer: Optional[Tracer], component: str) -> Tracer:
    """Return the given tracer or a fresh one for the component."""
    return tracer if tracer is not None else Tracer(component)
