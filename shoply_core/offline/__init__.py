"""
Offline support: connectivity monitoring, reconnection backoff and the queue
of writes deferred while the store network is disabled.
"""
from .pending_queue import PendingOperation, PendingOperationJournal, WriteKind
from .connectivity import (
    ConnectivityMonitor,
    ConnectionState,
    ConnectionStatus,
    NetworkProbe,
    CONNECTION_ERROR_MESSAGE,
    OFFLINE_MESSAGE,
)

__all__ = [
    "PendingOperation",
    "PendingOperationJournal",
    "WriteKind",
    "ConnectivityMonitor",
    "ConnectionState",
    "ConnectionStatus",
    "NetworkProbe",
    "CONNECTION_ERROR_MESSAGE",
    "OFFLINE_MESSAGE",
]
