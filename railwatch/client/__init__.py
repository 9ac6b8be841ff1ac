"""Remote resource client for the Railway GraphQL API.

Submodules:
    errors   -- Unreachable / Unauthorized / MalformedResponse taxonomy.
    queries  -- The GraphQL documents and their response paths.
    graphql  -- RailwayClient, the async httpx client.
"""

from railwatch.client.errors import ErrorKind, MalformedResponse, RemoteError, Unauthorized, Unreachable
from railwatch.client.graphql import RailwayClient

__all__ = [
    "ErrorKind",
    "MalformedResponse",
    "RailwayClient",
    "RemoteError",
    "Unauthorized",
    "Unreachable",
]
