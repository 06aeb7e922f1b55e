"""Login and channel subscription exchanges."""

import logging
from typing import List

from .clients.fems_ws import FemsSession, TransportError
from .clients.rpc import (
    ProtocolError,
    RpcRequest,
    build_authenticate_request,
    build_subscribe_request,
    matches,
    parse_response,
)

logger = logging.getLogger(__name__)


async def _exchange(session: FemsSession, request: RpcRequest, action: str) -> bool:
    """
    Send ``request`` and wait for exactly one response.

    Every failure is logged once and reported as False; nothing is retried
    here.
    """
    try:
        await session.send_json(request.to_dict())
    except TransportError as e:
        logger.error(f"failed to send {action} request: {e}")
        return False

    try:
        raw = await session.recv_message()
    except TransportError as e:
        logger.info(f"read {action} response: {e}")
        return False

    try:
        response = parse_response(raw)
    except ProtocolError as e:
        logger.error(f"could not parse {action} response: {e}; data was: {raw!r}")
        return False

    if not matches(response, request.id):
        logger.error(
            f"unexpected {action} response id. sent: {request.to_dict()} received: {response.model_dump()}"
        )
        return False

    if response.error is not None:
        logger.error(f"{action} failed: {response.error.code} - {response.error.message}")
        return False

    return True


async def authenticate(session: FemsSession, password: str) -> bool:
    """Log in with ``password``. Returns True only on a clean round trip."""
    logger.debug("sending login request")
    if not await _exchange(session, build_authenticate_request(password), "login"):
        return False

    logger.info("login succeeded")
    return True


async def subscribe(session: FemsSession, channels: List[str]) -> bool:
    """Register interest in ``channels`` on edge 0."""
    if not await _exchange(session, build_subscribe_request(channels), "channel subscribe"):
        return False

    logger.info(f"subscribed to {len(channels)} channels")
    return True
