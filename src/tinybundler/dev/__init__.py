"""Dev layer — polling rebuild loop, backend supervision, browser reload.

Submodules are imported directly (``tinybundler.dev.loop``, ...) so that
importing the reload snippet does not pull in the WebSocket server.
"""
