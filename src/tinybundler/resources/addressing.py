"""Content addressing — short hashes and cache-busted artifact names.

``a.png`` with bytes B becomes ``a.<hash(B)>.png`` under the assets directory.
The name depends only on the logical file name and the bytes, never on build
order, so unchanged inputs keep their routes across builds.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_HASH_WIDTH = 8
_MODULUS = 36**_HASH_WIDTH


def content_hash(data: bytes | str) -> str:
    """Return an 8-character base-36 digest of *data*.

    Strings are hashed as UTF-8.  The digest is the SHA-256 of the input
    reduced modulo 36**8 and zero-padded, so the width is always 8.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    value = int.from_bytes(hashlib.sha256(data).digest()[:8], "big") % _MODULUS
    chars: list[str] = []
    for _ in range(_HASH_WIDTH):
        value, rem = divmod(value, 36)
        chars.append(_ALPHABET[rem])
    return "".join(reversed(chars))


@dataclass(frozen=True, slots=True)
class ContentAddress:
    """Where a hashed artifact is written and how it is served.

    Attributes:
        output_path: Absolute filesystem path of the artifact.
        route: Public URL path (``/assets/a.1x2y3z4w.png``).

    """

    output_path: Path
    route: str


def address(
    logical_name: str | Path,
    digest: str,
    output_root: Path,
    assets_dir: str,
) -> ContentAddress:
    """Derive the artifact path and route for *logical_name* with *digest*.

    Only the final path component of *logical_name* is used::

        address("img/logo.png", "1x2y3z4w", Path("/p/.bundle"), "assets")
        # -> /p/.bundle/assets/logo.1x2y3z4w.png, /assets/logo.1x2y3z4w.png

    """
    name = Path(logical_name)
    out_name = f"{name.stem}.{digest}{name.suffix}"
    return ContentAddress(
        output_path=output_root / assets_dir / out_name,
        route=f"/{assets_dir}/{out_name}",
    )
