"""Client package for net-testkit.

Contains the two clients built on common.io:
- handshake: stream_handshake
- query: query (connectionless daytime request)
- stream: StreamClient (interactive echo session)

Note: run_daytime, run_echo and ExitCode are not exported here. Import
directly from client.runner when needed.
"""

from client.handshake import stream_handshake
from client.query import QueryState, query
from client.stream import StreamClient, StreamState

__all__ = [
    "QueryState",
    "StreamClient",
    "StreamState",
    "query",
    "stream_handshake",
]
