"""CLI entry point for the Swagger MCP Adapter."""

from __future__ import annotations

import asyncio

import uvicorn

from .config import get_settings, load_config_file
from .logging import configure_logging
from .server import build_server


async def _run() -> None:
    settings = get_settings()
    configure_logging(settings.adapter_log_level)

    registry_config = load_config_file(settings.adapter_config_path)
    configure_logging(registry_config.log_level())

    mcp, app, _ = await build_server(settings, registry_config)
    transport = settings.adapter_transport.lower()

    if transport in {"http", "streamable-http", "streamablehttp", "sse"}:
        if not app:
            raise RuntimeError(f"HTTP app unavailable for transport={transport}")
        config = uvicorn.Config(
            app, host=registry_config.server.host, port=registry_config.server.port
        )
        server = uvicorn.Server(config)
        await server.serve()
        return
    await mcp.run_stdio_async()


def main() -> None:
    asyncio.run(_run())


if __name__ == "__main__":
    main()
