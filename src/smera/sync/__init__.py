"""Offline sync: connectivity tracking, replay and write-or-enqueue mutations."""

from smera.sync.connectivity import ConnectivityMonitor, NetworkStatus
from smera.sync.mutations import MutationResult, TaskMutations
from smera.sync.replay import ReplayDriver, ReplayReport

__all__ = [
    "ConnectivityMonitor",
    "MutationResult",
    "NetworkStatus",
    "ReplayDriver",
    "ReplayReport",
    "TaskMutations",
]
