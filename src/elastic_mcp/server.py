from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from importlib.metadata import PackageNotFoundError, version as pkg_version

from .client import ElasticClient
from .config import Config
from .errors import ElasticMCPError
from .mcp import MCPServer
from .tools import build_all
from .util.logging import configure_logging

logger = logging.getLogger("elastic_mcp")


def build_server(client: ElasticClient) -> MCPServer:
    try:
        ver = pkg_version("elastic-mcp")
    except PackageNotFoundError:
        ver = "0.0.0"

    srv = MCPServer(server_name="elastic-mcp-server", server_version=ver)
    for spec in build_all(client):
        srv.register(spec)
    logger.info("registered %d tools", len(srv.tool_names))
    return srv


async def _serve(server: MCPServer, client: ElasticClient) -> None:
    # connectivity probe; a dead cluster is reported but not fatal
    if await client.ping():
        logger.info("connected to Elasticsearch at %s", client.base_url)
    else:
        logger.warning("could not verify Elasticsearch connection at %s", client.base_url)
    await server.serve()


def main() -> None:
    parser = argparse.ArgumentParser(description="Elasticsearch MCP stdio server")
    parser.add_argument("--stdio", action="store_true", help="Run over stdio (default)")
    parser.parse_args()

    try:
        cfg = Config.load()
    except ElasticMCPError as e:
        configure_logging("info")
        logger.error("configuration error: %s", e)
        sys.exit(1)

    configure_logging(cfg.log_level)
    logger.debug("config loaded", extra={"config": cfg.redacted()})

    try:
        client = ElasticClient(cfg)
    except ElasticMCPError as e:
        logger.error("%s", e)
        sys.exit(1)

    server = build_server(client)
    try:
        asyncio.run(_serve(server, client))
    except KeyboardInterrupt:
        logger.info("interrupted, shutting down")


if __name__ == "__main__":
    main()
