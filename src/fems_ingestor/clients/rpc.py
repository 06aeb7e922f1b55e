"""JSON-RPC envelopes exchanged with a FEMS edge."""

import uuid
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ValidationError

JSONRPC_VERSION = "2.0"

METHOD_AUTHENTICATE = "authenticateWithPassword"
METHOD_EDGE_RPC = "edgeRpc"
METHOD_SUBSCRIBE_CHANNELS = "subscribeChannels"

# The edge id travels as a string even though it looks numeric.
DEFAULT_EDGE_ID = "0"


class ProtocolError(Exception):
    """Raised when a message from the edge cannot be decoded."""

    def __init__(self, message: str, raw: Union[str, bytes, None] = None):
        super().__init__(message)
        self.raw = raw


class RpcRequest(BaseModel):
    """Outgoing request envelope."""
    jsonrpc: str = JSONRPC_VERSION
    id: str
    method: str
    params: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()


class RpcError(BaseModel):
    code: int
    message: str = ""


class RpcResponse(BaseModel):
    """Response envelope; ``id`` echoes the request it answers."""
    id: str = ""
    error: Optional[RpcError] = None


class DataUpdateEventPayload(BaseModel):
    params: Optional[Dict[str, Any]] = None


class DataUpdateEventParams(BaseModel):
    method: Optional[str] = None
    payload: Optional[DataUpdateEventPayload] = None


class DataUpdateEvent(BaseModel):
    """Push event carrying current channel values; JSON null reads as absent."""
    method: Optional[str] = None
    params: Optional[DataUpdateEventParams] = None

    def channel_values(self) -> Dict[str, Any]:
        """Return a copy of the channel -> value mapping, empty if absent."""
        if self.params is None:
            return {}
        payload = self.params.payload
        if payload is None or payload.params is None:
            return {}
        return dict(payload.params)


def build_request(method: str, params: Any = None) -> RpcRequest:
    """Create a request envelope with a fresh random id."""
    return RpcRequest(id=str(uuid.uuid4()), method=method, params=params)


def build_authenticate_request(password: str) -> RpcRequest:
    return build_request(METHOD_AUTHENTICATE, {"password": password})


def build_subscribe_request(channels: List[str], edge_id: str = DEFAULT_EDGE_ID) -> RpcRequest:
    """
    Build the channel subscription request.

    The subscribeChannels request is wrapped in an edgeRpc envelope; the
    response is correlated on the outer envelope's id.
    """
    inner = build_request(METHOD_SUBSCRIBE_CHANNELS, {"count": 0, "channels": list(channels)})
    return build_request(METHOD_EDGE_RPC, {"edgeId": edge_id, "payload": inner.to_dict()})


def matches(response: RpcResponse, expected_id: str) -> bool:
    """True only when the response answers the request with ``expected_id``."""
    return response.id == expected_id


def parse_response(raw: Union[str, bytes]) -> RpcResponse:
    """Decode a response envelope, raising ProtocolError on malformed input."""
    try:
        return RpcResponse.model_validate_json(raw)
    except ValidationError as e:
        raise ProtocolError(f"malformed response: {e}", raw) from e


def parse_data_update(raw: Union[str, bytes]) -> DataUpdateEvent:
    """Decode a push event, raising ProtocolError on malformed input."""
    try:
        return DataUpdateEvent.model_validate_json(raw)
    except ValidationError as e:
        raise ProtocolError(f"malformed push event: {e}", raw) from e
