"""
Analytics Relay - buffered, debounced delivery of client telemetry events

Collects events from any thread, coalesces bursts over a cooldown window,
posts each batch to a collector with bounded retries, and mirrors
undelivered events to durable storage across restarts and suspends.
"""

from .config import Config, ConfigError
from .events import AnalyticEvent, EventBatch
from .service import EventService

__version__ = "0.1.0"

__all__ = [
    "AnalyticEvent",
    "Config",
    "ConfigError",
    "EventBatch",
    "EventService",
]
