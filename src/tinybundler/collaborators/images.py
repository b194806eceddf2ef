"""Image resizing with Pillow."""

from __future__ import annotations

import asyncio
import io

from PIL import Image

from tinybundler._errors import CollaboratorError


class PillowResizer:
    """ImageResizer that downscales to a target width, keeping aspect ratio.

    Images already at or below the target width are returned unchanged
    (never enlarged).  The output keeps the input's format.
    """

    async def resize(self, data: bytes, width: int) -> bytes:
        return await asyncio.to_thread(self._resize, data, width)

    @staticmethod
    def _resize(data: bytes, width: int) -> bytes:
        if width <= 0:
            return data
        try:
            with Image.open(io.BytesIO(data)) as image:
                if image.width <= width:
                    return data
                fmt = image.format
                height = max(1, round(image.height * width / image.width))
                resized = image.resize((width, height), Image.Resampling.LANCZOS)
                buf = io.BytesIO()
                resized.save(buf, format=fmt)
                return buf.getvalue()
        except (OSError, ValueError) as exc:
            msg = f"cannot resize image: {exc}"
            raise CollaboratorError("image", msg) from exc
