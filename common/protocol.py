"""Protocol definitions for net-testkit.

Contains:
- Transport enum for the two socket kinds the clients use
- Well-known ports and default destination
- Deadline and buffer constants for bounded I/O
- Logging configuration
"""

import logging
import os
from enum import Enum

# TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")


class Transport(Enum):
    """Transport kind of a session."""

    DATAGRAM = "udp"
    STREAM = "tcp"


# Well-known service ports
DAYTIME_PORT = 13
ECHO_PORT = 7

MIN_PORT = 1
MAX_PORT = 65535

# Default destination (configurable via envvar)
DEFAULT_HOST = os.environ.get("NETCLIENT_DEFAULT_HOST", "172.16.40.1")

# Per-operation deadlines (configurable via envvar)
CONNECT_DEADLINE_S = float(os.environ.get("NETCLIENT_CONNECT_DEADLINE_S", "5.0"))
RECEIVE_DEADLINE_S = float(os.environ.get("NETCLIENT_RECEIVE_DEADLINE_S", "5.0"))
SEND_DEADLINE_S = RECEIVE_DEADLINE_S

# Bytes read by a single receive call
RECV_BUFFER_SIZE = 1024

# Daytime request is an empty datagram
DAYTIME_REQUEST = b""

# Messages that end an interactive echo session without touching the wire
QUIT_COMMANDS = frozenset({"quit", "exit"})

MESSAGE_ENCODING = "utf-8"
