"""Clients for talking to a FEMS edge."""

from .fems_ws import FemsSession, TransportError, close_session
from .rpc import ProtocolError, RpcRequest, RpcResponse, build_request, matches

__all__ = [
    "FemsSession",
    "ProtocolError",
    "RpcRequest",
    "RpcResponse",
    "TransportError",
    "build_request",
    "close_session",
    "matches",
]
