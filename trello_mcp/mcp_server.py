import asyncio
import json
import logging
from typing import Any

from mcp.server import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from mcp.types import Resource, ResourceTemplate, TextContent, Tool

from .cache import AttachmentCache
from .client import TrelloClient
from .logging_config import configure_logging
from .resources import ATTACHMENT_URI_TEMPLATE, AttachmentResourceReader
from .tool_executor import ToolExecutor
from .tool_schemas import TOOLS

logger = logging.getLogger(__name__)


class TrelloMCPServer:
    def __init__(self, api_key: str, token: str, cache: AttachmentCache | None = None):
        self.client = TrelloClient(api_key=api_key, token=token)
        self.cache = cache if cache is not None else AttachmentCache()
        self.executor = ToolExecutor(self.client)
        self.reader = AttachmentResourceReader(self.client, self.cache)
        self.server = Server("trello-mcp")
        self._setup_handlers()

    def _setup_handlers(self):
        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return [Tool(name=t["name"], description=t["description"], inputSchema=t["input_schema"]) for t in TOOLS]

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
            # ToolError propagates; the SDK turns it into an isError result
            result = await self.executor.execute(name, arguments)
            return [TextContent(type="text", text=json.dumps(result, indent=2))]

        @self.server.list_resources()
        async def list_resources() -> list[Resource]:
            # Attachments are discovered through get_attachments_on_card
            return []

        @self.server.list_resource_templates()
        async def list_resource_templates() -> list[ResourceTemplate]:
            return [
                ResourceTemplate(
                    uriTemplate=ATTACHMENT_URI_TEMPLATE,
                    name="Trello card attachment",
                    description=(
                        "Downloads a card's file attachment to a local temp file (kept for 10 minutes) "
                        "and returns its path and metadata as JSON."
                    ),
                    mimeType="application/json",
                )
            ]

        @self.server.read_resource()
        async def read_resource(uri) -> list[ReadResourceContents]:
            metadata = await self.reader.read(str(uri))
            return [ReadResourceContents(content=json.dumps(metadata, indent=2), mime_type="application/json")]

    async def aclose(self):
        """Delete cached attachment files and release the HTTP client."""
        self.cache.shutdown()
        await self.client.aclose()

    async def run(self):
        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(read_stream, write_stream, self.server.create_initialization_options())
        finally:
            await self.aclose()


def main():
    import argparse
    import os

    parser = argparse.ArgumentParser(description="Trello MCP Server")
    parser.add_argument("--api-key", help="Trello API key (or set TRELLO_API_KEY env var)")
    parser.add_argument("--token", help="Trello API token (or set TRELLO_TOKEN env var)")
    parser.add_argument("--log-file", help="Also write logs to this file (or set TRELLO_MCP_LOG_FILE env var)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    # Use CLI args, fall back to env vars
    api_key = args.api_key or os.environ.get("TRELLO_API_KEY")
    token = args.token or os.environ.get("TRELLO_TOKEN")
    log_file = args.log_file or os.environ.get("TRELLO_MCP_LOG_FILE")

    if not api_key:
        parser.error("--api-key is required (or set TRELLO_API_KEY)")
    if not token:
        parser.error("--token is required (or set TRELLO_TOKEN)")

    configure_logging(verbose=args.verbose, log_file=log_file)
    server = TrelloMCPServer(api_key, token)
    logger.info(f"Starting Trello MCP server with {len(TOOLS)} tools")
    asyncio.run(server.run())


if __name__ == "__main__":
    main()
