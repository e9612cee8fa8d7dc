"""
Protocol machinery for context7-mcp.

This package handles:
- JSON-RPC wire models and frame validation (protocol, framing)
- Request correlation over a shared stream (correlator)
- Session lifecycle: handshake, discovery, teardown (session)
- Companion-process management over stdio (process)

Public names are re-exported from the top-level context7_mcp package.
"""
