"""
Library documentation lookups through the Context7 MCP server.

This is a caller of MCPClient, not part of the protocol core. It owns the
soft-failure policy: connectivity failures (timeouts, a dead stream, a
closed or failed session) are logged and answered with an empty result so
that documentation enrichment never breaks the caller. Everything else,
including server-side tool errors, propagates.

Usage:
    service = LibraryDocsService(client)
    for resolution in await service.resolve_library_id("react"):
        docs = await service.fetch_documentation(resolution.library_id)
"""

from __future__ import annotations

import json
import logging
import re
from datetime import date
from typing import Any, Dict, List, Optional

from context7_mcp.client import MCPClient
from context7_mcp.errors import (
    MCPClientError,
    RequestTimeoutError,
    SessionClosedError,
    SessionFatalError,
    TransportError,
)
from context7_mcp.types import DocumentationResult, LibraryResolution

logger = logging.getLogger(__name__)

RESOLVE_TOOL = "resolve-library-id"
DOCS_TOOL = "get-library-docs"

_CONNECTIVITY_HINT = re.compile(
    r"network|timed? ?out|timeout|connection|unreachable|econnrefused|enotfound",
    re.IGNORECASE,
)

# Context7 answers resolve-library-id with a text listing: entries separated
# by dashed lines, one "- Field: value" line per attribute
_ENTRY_SEPARATOR = re.compile(r"^\s*-{3,}\s*$", re.MULTILINE)
_TEXT_FIELD = re.compile(
    r"^\s*-?\s*(Context7-compatible library ID|Description|Code Snippets|Trust Score)"
    r"\s*:\s*(.+?)\s*$",
    re.MULTILINE | re.IGNORECASE,
)
_TEXT_KEYS = {
    "context7-compatible library id": "library_id",
    "description": "description",
    "code snippets": "code_snippets_count",
    "trust score": "trust_score",
}


def is_connectivity_error(error: BaseException) -> bool:
    """
    Check if an error means the server could not be reached.

    Args:
        error: Exception raised by MCPClient

    Returns:
        True for timeouts, transport and session failures, or messages
        that mention network trouble
    """
    if isinstance(error, (RequestTimeoutError, TransportError, SessionClosedError, SessionFatalError)):
        return True
    return bool(_CONNECTIVITY_HINT.search(str(error)))


def _number(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_resolution(item: Dict[str, Any], library_name: str) -> LibraryResolution:
    description = item.get("description")
    return LibraryResolution(
        library_id=str(item.get("library_id") or item.get("libraryId") or library_name),
        trust_score=_number(item.get("trust_score", item.get("trustScore")), 0.5),
        code_snippets_count=int(_number(item.get("code_snippets_count", item.get("codeSnippets")))),
        description=description if isinstance(description, str) else None,
    )


def _parse_text_resolutions(text: str, library_name: str) -> List[LibraryResolution]:
    """Read candidates out of a Context7 text listing; entries without an ID are skipped."""
    resolutions = []
    for entry in _ENTRY_SEPARATOR.split(text):
        fields = {
            _TEXT_KEYS[match.group(1).lower()]: match.group(2)
            for match in _TEXT_FIELD.finditer(entry)
        }
        if not fields.get("library_id", "").startswith("/"):
            continue
        resolutions.append(_to_resolution(fields, library_name))
    return resolutions


def _extract_text(content: Any) -> str:
    """Flatten tool content into documentation text."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        texts = [
            block["text"]
            for block in content
            if isinstance(block, dict) and isinstance(block.get("text"), str)
        ]
        if texts:
            return "\n\n".join(texts)
    if isinstance(content, dict):
        for key in ("content", "documentation"):
            if isinstance(content.get(key), str):
                return content[key]
    if content is None:
        return ""
    return json.dumps(content, indent=2)


class LibraryDocsService:
    """Resolves library names and fetches their documentation."""

    def __init__(self, client: MCPClient):
        self.client = client

    async def resolve_library_id(self, library_name: str) -> List[LibraryResolution]:
        """
        Resolve a library name to candidate documentation library IDs.

        Returns:
            Candidates in server order, read from structured items or from
            Context7 text listings; empty on connectivity failure or when
            nothing in the result names a library ID
        """
        logger.info(f"Resolving library: {library_name}")
        try:
            result = await self.client.call_tool(RESOLVE_TOOL, {"library_name": library_name})
        except MCPClientError as e:
            if is_connectivity_error(e):
                logger.warning(f"Error resolving library {library_name}: {e}")
                return []
            raise

        if not isinstance(result, list):
            logger.debug(f"Unstructured resolution result for {library_name}")
            return []
        resolutions: List[LibraryResolution] = []
        for item in result:
            if not isinstance(item, dict):
                continue
            if item.get("type") == "text":
                if isinstance(item.get("text"), str):
                    resolutions.extend(_parse_text_resolutions(item["text"], library_name))
            else:
                resolutions.append(_to_resolution(item, library_name))
        return resolutions

    async def fetch_documentation(self, library_id: str) -> Optional[DocumentationResult]:
        """
        Fetch documentation content for a library ID.

        Returns:
            The documentation, or None on connectivity failure or empty content
        """
        logger.info(f"Fetching documentation for: {library_id}")
        try:
            result = await self.client.call_tool(DOCS_TOOL, {"library_id": library_id})
        except MCPClientError as e:
            if is_connectivity_error(e):
                logger.warning(f"Error fetching documentation for {library_id}: {e}")
                return None
            raise

        content = _extract_text(result)
        if not content:
            return None
        return DocumentationResult(
            content=content,
            last_updated=date.today().isoformat(),
        )
