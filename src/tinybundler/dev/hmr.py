"""Reload client — the script injected into pages built with auto-reload.

The script connects to the dev loop's WebSocket endpoint.  The server sends
nothing on connect, so any message carrying a revision different from the
last one seen means "rebuild finished, backend is back up": reload.
"""

from __future__ import annotations

RELOAD_PATH = "/ws"


def reload_client(port: int = 7999, path: str = RELOAD_PATH) -> str:
    """Return the ``<script>`` tag that listens for reload revisions."""
    return f"""\
<script data-tinybundler-reload>
(function() {{
  var last = null;
  var delay = 500;
  function connect() {{
    var ws = new WebSocket('ws://' + location.hostname + ':{port}{path}');
    ws.onopen = function() {{ delay = 500; }};
    ws.onmessage = function(e) {{
      if (e.data !== last) {{
        last = e.data;
        location.reload();
      }}
    }};
    ws.onclose = function() {{
      setTimeout(connect, delay);
      delay = Math.min(delay * 2, 5000);
    }};
  }}
  connect();
}})();
</script>"""


def inject_reload_client(markup: str, snippet: str) -> str:
    """Insert *snippet* before ``</head>``.

    Falls back to ``</body>``, then to appending, for fragments without a head.
    """
    if "</head>" in markup:
        return markup.replace("</head>", snippet + "</head>", 1)
    if "</body>" in markup:
        return markup.replace("</body>", snippet + "</body>", 1)
    return markup + snippet
