"""Health check endpoint for the FEMS ingestor service."""

import logging
from datetime import datetime, timezone
from typing import Optional
from aiohttp import web, web_request
from aiohttp.web_response import Response

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class HealthCheckHandler:
    """Health check HTTP handler."""

    def __init__(self, service):
        self.service = service

    async def health(self, request: web_request.Request) -> Response:
        """Healthy only while the supervisor is streaming."""
        health_data = self.service.health_check()
        status = 200 if health_data["status"] == "healthy" else 503
        return web.json_response(health_data, status=status)

    async def ready(self, request: web_request.Request) -> Response:
        """Readiness probe: ready while the supervisor is running."""
        health_data = self.service.health_check()
        is_ready = health_data["running"]
        return web.json_response(
            {
                "ready": is_ready,
                "state": health_data["state"],
                "timestamp": _now()
            },
            status=200 if is_ready else 503
        )

    async def live(self, request: web_request.Request) -> Response:
        """Liveness probe."""
        return web.json_response({"alive": True, "timestamp": _now()}, status=200)


def create_app(service) -> web.Application:
    app = web.Application()
    handler = HealthCheckHandler(service)
    app.router.add_get('/health', handler.health)
    app.router.add_get('/ready', handler.ready)
    app.router.add_get('/live', handler.live)
    return app


class HealthCheckServer:
    """HTTP server for health check endpoints."""

    def __init__(self, service, host: str = "0.0.0.0", port: int = 8080):
        self.service = service
        self.host = host
        self.port = port
        self.runner: Optional[web.AppRunner] = None
        self.site: Optional[web.TCPSite] = None

    async def start(self):
        logger.info(f"Starting health check server on {self.host}:{self.port}")

        self.runner = web.AppRunner(create_app(self.service))
        await self.runner.setup()

        self.site = web.TCPSite(self.runner, self.host, self.port)
        await self.site.start()

        logger.info(f"Health check server started on http://{self.host}:{self.port}")

    async def stop(self):
        if self.runner:
            await self.runner.cleanup()
            self.runner = None
            self.site = None
            logger.info("Health check server stopped")
