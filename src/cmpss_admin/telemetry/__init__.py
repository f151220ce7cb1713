from .events import EventCategory, TelemetryEvent, build_event
from .logger import TelemetryLogger

__all__ = ["EventCategory", "TelemetryEvent", "TelemetryLogger", "build_event"]
