"""
Trello MCP - Trello REST API client and Model Context Protocol server.
"""

from .cache import AttachmentCache, CachedAttachment
from .client import TrelloClient
from .errors import ErrorCode, TrelloError, classify_error
from .logging_config import configure_logging
from .models import RateLimitInfo, TrelloResponse
from .resources import AttachmentResourceReader, UnsupportedResourceError
from .tool_executor import ToolError, ToolExecutor
from .tool_schemas import TOOLS

__all__ = [
    "TrelloClient",
    "TrelloError",
    "ErrorCode",
    "classify_error",
    "TrelloResponse",
    "RateLimitInfo",
    "AttachmentCache",
    "CachedAttachment",
    "AttachmentResourceReader",
    "UnsupportedResourceError",
    "TOOLS",
    "ToolExecutor",
    "ToolError",
    "configure_logging",
]
__version__ = "1.0.0"
