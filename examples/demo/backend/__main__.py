"""Serve the bundle directory on $PORT (default 8080)."""

import functools
import os
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path

BUNDLE = Path(__file__).resolve().parent.parent / ".bundle"


def main() -> None:
    port = int(os.environ.get("PORT", "8080"))
    handler = functools.partial(SimpleHTTPRequestHandler, directory=str(BUNDLE))
    with ThreadingHTTPServer(("127.0.0.1", port), handler) as server:
        print(f"serving {BUNDLE} on http://127.0.0.1:{port}")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            pass


main()
