"""Transports - how a batch reaches the collector."""

from .base import SubmitOutcome, Transport
from .console import ConsoleTransport
from .http import HttpTransport

__all__ = [
    "SubmitOutcome",
    "Transport",
    "ConsoleTransport",
    "HttpTransport",
]
