# amaru_bridge package

from .app import BridgeApp, open_bridge
from .classifier import classify
from .collector import CollectorHandler, RecordCollector
from .config import BridgeSettings, EngineConfig
from .drain import DrainLoop
from .models import AppEvent
from .network import NetworkName, peers_for_network
from .orchestrator import LifecycleOrchestrator, LifecycleState, Outcome
from .publisher import EventChannel, EventPublisher

__all__ = [
    "AppEvent",
    "BridgeApp",
    "BridgeSettings",
    "CollectorHandler",
    "DrainLoop",
    "EngineConfig",
    "EventChannel",
    "EventPublisher",
    "LifecycleOrchestrator",
    "LifecycleState",
    "NetworkName",
    "Outcome",
    "RecordCollector",
    "classify",
    "open_bridge",
    "peers_for_network",
]
