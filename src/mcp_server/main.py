"""Komodo MCP Server entrypoint.

Wires configuration, the Komodo client, the tool registry and the MCP
protocol server together, then serves over stdio (default) or streamable
HTTP behind a FastAPI app.
"""

import asyncio
import os
import sys
import threading
from contextlib import asynccontextmanager
from typing import Any

import mcp.types as types
import uvicorn
from fastapi import FastAPI
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager

from shared.config import (
    AppConfig,
    ConfigError,
    TransportSettings,
    get_transport_settings,
    load_config,
)
from shared.errors import Redactor, describe_error
from shared.logging import get_logger, setup_logging
from shared.models import HealthResponse, ToolResponse
from mcp_server import __version__
from mcp_server.client import create_client, validate_connection
from mcp_server.registry import ToolRegistry
from mcp_server.router import ToolRouter
from domains import load_all_domains

logger = get_logger(__name__)

SERVER_NAME = "komodo-mcp"


class KomodoUnavailableError(Exception):
    """The Komodo instance could not be reached at startup."""


def to_call_tool_result(response: ToolResponse) -> types.CallToolResult:
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=block.text) for block in response.content],
        isError=response.is_error,
    )


def build_server(registry: ToolRegistry, router: ToolRouter) -> Server:
    """Create the MCP protocol server backed by the registry and router."""
    server: Server = Server(
        SERVER_NAME,
        version=__version__,
        instructions="Tools for inspecting and operating a Komodo DevOps instance.",
    )

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return registry.to_mcp_tools()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> types.CallToolResult:
        response = await router.call(name, arguments)
        return to_call_tool_result(response)

    return server


def create_http_app(server: Server, registry: ToolRegistry, config: AppConfig) -> FastAPI:
    """FastAPI app exposing ``/health`` and the streamable HTTP endpoint at ``/mcp``."""
    session_manager = StreamableHTTPSessionManager(app=server, stateless=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with session_manager.run():
            logger.info("HTTP transport ready", tool_count=len(registry))
            yield
        logger.info("HTTP transport stopped")

    app = FastAPI(
        title="Komodo MCP Server",
        description="MCP tools for a Komodo DevOps instance",
        version=__version__,
        lifespan=lifespan,
    )

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            version=__version__,
            access_tier=config.access_tier,
            tool_count=len(registry),
            categories=registry.list_categories(),
        )

    app.add_route("/mcp", StreamableHTTPEndpoint(session_manager), include_in_schema=False)
    return app


class StreamableHTTPEndpoint:
    """ASGI app forwarding /mcp requests to the session manager."""

    def __init__(self, session_manager: StreamableHTTPSessionManager) -> None:
        self.session_manager = session_manager

    async def __call__(self, scope, receive, send) -> None:
        await self.session_manager.handle_request(scope, receive, send)


async def serve_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


async def serve_http(app: FastAPI, settings: TransportSettings) -> None:
    uv_config = uvicorn.Config(
        app,
        host=settings.host,
        port=settings.port,
        log_level="info",
    )
    await uvicorn.Server(uv_config).serve()


async def run(config: AppConfig, settings: TransportSettings, redactor: Redactor) -> None:
    """
    Start the server.

    The client factory registers the credentials with ``redactor`` before
    the first request, so every later error message can be sanitized.

    Raises:
        KomodoUnavailableError: If the startup version check fails
    """
    async with create_client(config, redactor) as client:
        try:
            await validate_connection(client)
        except Exception as e:
            logger.error(
                "Failed to connect to Komodo",
                url=config.url,
                error=redactor.sanitize(describe_error(e)),
            )
            raise KomodoUnavailableError(config.url) from e

        registry = ToolRegistry(config)
        load_all_domains(registry, client, redactor)
        logger.info(
            "Access tier configured",
            access_tier=config.access_tier.value,
            categories=sorted(config.categories) if config.categories is not None else "all",
            tool_count=len(registry),
        )

        asyncio.get_running_loop().set_exception_handler(loop_exception_handler(redactor))
        server = build_server(registry, ToolRouter(registry, redactor))
        if settings.transport == "http":
            logger.info("Serving MCP over HTTP", host=settings.host, port=settings.port)
            await serve_http(create_http_app(server, registry, config), settings)
        else:
            logger.info("Serving MCP over stdio")
            await serve_stdio(server)


def loop_exception_handler(redactor: Redactor):
    """Event loop handler for errors no task awaited: log them sanitized, then exit with status 1."""

    def handle(loop: asyncio.AbstractEventLoop, context: dict[str, Any]) -> None:
        error = context.get("exception") or context.get("message")
        logger.critical(
            "Unhandled exception in event loop",
            error_type=type(error).__name__,
            error=redactor.sanitize(describe_error(error)),
        )
        os._exit(1)

    return handle


def install_crash_handlers(redactor: Redactor) -> None:
    """Log uncaught exceptions to stderr (sanitized); the process then exits with status 1."""

    def log_uncaught(exc_type, exc_value, exc_traceback) -> None:
        logger.critical(
            "Uncaught exception",
            error_type=exc_type.__name__,
            error=redactor.sanitize(describe_error(exc_value)),
        )

    def log_uncaught_thread(args: threading.ExceptHookArgs) -> None:
        log_uncaught(args.exc_type, args.exc_value, args.exc_traceback)
        os._exit(1)

    sys.excepthook = log_uncaught
    threading.excepthook = log_uncaught_thread


def main() -> None:
    """Run the Komodo MCP server."""
    setup_logging("INFO")

    try:
        config = load_config()
    except ConfigError as e:
        logger.error("Invalid configuration", error=str(e))
        sys.exit(1)

    if config.debug:
        setup_logging("DEBUG")

    redactor = Redactor()
    install_crash_handlers(redactor)

    try:
        asyncio.run(run(config, get_transport_settings(), redactor))
    except KomodoUnavailableError:
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Shutting down Komodo MCP server")
    except Exception as e:
        logger.critical(
            "Fatal error",
            error_type=type(e).__name__,
            error=redactor.sanitize(describe_error(e)),
        )
        sys.exit(1)


if __name__ == "__main__":
    main()
