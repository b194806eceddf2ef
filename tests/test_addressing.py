"""Tests for tinybundler.resources.addressing — hashes and artifact names."""

from __future__ import annotations

import re
from pathlib import Path

from tinybundler.resources.addressing import ContentAddress, address, content_hash

_HASH_RE = re.compile(r"^[0-9a-z]{8}$")


class TestContentHash:
    """content_hash — stable 8-character base-36 digests."""

    def test_width_and_alphabet(self) -> None:
        for data in (b"", b"a", b"hello world", bytes(range(256)) * 10):
            assert _HASH_RE.match(content_hash(data))

    def test_stable(self) -> None:
        assert content_hash(b"same bytes") == content_hash(b"same bytes")

    def test_different_bytes_differ(self) -> None:
        assert content_hash(b"one") != content_hash(b"two")

    def test_str_hashed_as_utf8(self) -> None:
        assert content_hash("héllo") == content_hash("héllo".encode())


class TestAddress:
    """address — output path and route from name and digest."""

    def test_png(self) -> None:
        addr = address("img/a.png", "1x2y3z4w", Path("/p/.bundle"), "assets")
        assert addr == ContentAddress(
            output_path=Path("/p/.bundle/assets/a.1x2y3z4w.png"),
            route="/assets/a.1x2y3z4w.png",
        )

    def test_multiple_dots_keep_last_suffix(self) -> None:
        addr = address("vendor.min.css", "00000000", Path("/out"), "static")
        assert addr.route == "/static/vendor.min.00000000.css"

    def test_route_independent_of_directory(self) -> None:
        a = address("x/a.png", "abcdefgh", Path("/o"), "assets")
        b = address("y/a.png", "abcdefgh", Path("/o"), "assets")
        assert a.route == b.route
