"""
Minimal stdio MCP server used by the process tests.

Reads one JSON-RPC message per line from stdin and answers initialize,
tools/list and tools/call. An unlisted "crash" tool exits with code 3
without replying. Writes a line of noise to stdout and one to stderr on
startup so the client has to skip them.
"""

import json
import sys

TOOLS = [
    {"name": "echo", "description": "Echo the arguments", "inputSchema": {"type": "object"}},
    {"name": "fail", "description": "Always fails"},
]


def reply(message_id, result=None, error=None):
    message = {"jsonrpc": "2.0", "id": message_id}
    if error is not None:
        message["error"] = error
    else:
        message["result"] = result
    sys.stdout.write(json.dumps(message) + "\n")
    sys.stdout.flush()


def main():
    sys.stdout.write("fake server starting\n")
    sys.stdout.flush()
    sys.stderr.write("fake server log line\n")
    sys.stderr.flush()

    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue
        message = json.loads(line)
        if "id" not in message:
            continue

        method = message["method"]
        params = message.get("params") or {}
        if method == "initialize":
            reply(message["id"], {
                "protocolVersion": params.get("protocolVersion"),
                "capabilities": {"tools": {}},
                "serverInfo": {"name": "fake-stdio-server", "version": "0.0.1"},
            })
        elif method == "tools/list":
            reply(message["id"], {"tools": TOOLS})
        elif method == "tools/call" and params.get("name") == "crash":
            sys.exit(3)
        elif method == "tools/call" and params.get("name") == "echo":
            text = json.dumps(params.get("arguments"), sort_keys=True)
            reply(message["id"], {"content": [{"type": "text", "text": text}]})
        elif method == "tools/call":
            reply(message["id"], error={"code": -32000, "message": "tool failed"})
        else:
            reply(message["id"], error={"code": -32601, "message": "Method not found"})


if __name__ == "__main__":
    main()
