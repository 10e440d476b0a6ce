"""
=============================================================================
TRANSPORT
=============================================================================

    SocketServer   listening socket + accept loop (main thread)
         │
         ▼ Connection
    ThreadPool     workers, one connection each at a time
         │
         ▼
    Connection     request framing, keep-alive, close

=============================================================================
"""

from .socket_server import SocketServer
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool


__all__ = [
    "SocketServer",
    "Connection",
    "ConnectionState",
    "ThreadPool",
]
