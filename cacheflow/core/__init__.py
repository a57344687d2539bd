"""
Core request engine.

The `RequestOrchestrator` runs the cache/live/download state machine for each
request and publishes its outcomes through an `OutcomeEmitter`, which feeds
both the outcome sequence and any attached listener.
"""

from .channel import OutcomeEmitter
from .orchestrator import ApiCall, RequestOrchestrator

__all__ = ["ApiCall", "OutcomeEmitter", "RequestOrchestrator"]
