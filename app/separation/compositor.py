from collections.abc import Sequence

import numpy as np
from PIL import Image

from app.logging.logger import Log
from app.separation.exceptions import CompositeError


class PlateCompositor:
    """Simulates overprinting by multiplying colorized plates over white paper."""

    def composite(self, layers: Sequence[Image.Image]) -> Image.Image | None:
        """Multiply *layers* in order onto a white canvas.

        Returns:
            Opaque RGB image at the first layer's size, or None if *layers* is empty.

        Raises:
            CompositeError: if the layers cannot be combined.
        """
        if not layers:
            return None

        size = layers[0].size
        try:
            canvas = np.full((size[1], size[0], 3), 255, dtype=np.uint32)
            for layer in layers:
                if layer.size != size:
                    Log.warning(f"Resizing plate layer from {layer.size} to {size} for composite")
                    layer = layer.resize(size, Image.Resampling.NEAREST)
                canvas = canvas * self._flatten(layer) // 255
            return Image.fromarray(canvas.astype(np.uint8))
        except (ValueError, MemoryError) as exc:
            raise CompositeError(f"Composite failed: {exc}") from exc

    @staticmethod
    def _flatten(layer: Image.Image) -> np.ndarray:
        """RGB samples of *layer*, with any alpha pre-blended over white."""
        rgba = np.asarray(layer.convert("RGBA"), dtype=np.uint32)
        rgb, alpha = rgba[..., :3], rgba[..., 3:4]
        return 255 - (255 - rgb) * alpha // 255
