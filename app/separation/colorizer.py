"""Turns grayscale separation rasters into colored preview images.

Samples follow the decoded display convention: 0 is full ink coverage and
255 is no ink. Process plates use the lightness mapping, where the sample
drives the channels the ink absorbs. Spot plates blend a hue derived from
the label toward white in proportion to coverage. Output is opaque RGB.
"""

import hashlib

import numpy as np
from PIL import Image

from app.separation.models import PlateIdentity, PlateKind

SPOT_BAND_LOW = 120
SPOT_BAND_HIGH = 240

# Channels (R, G, B) that carry the sample for each process ink; the rest stay 255.
_PROCESS_CHANNELS: dict[PlateKind, tuple[bool, bool, bool]] = {
    PlateKind.CYAN: (True, False, False),
    PlateKind.MAGENTA: (False, True, False),
    PlateKind.YELLOW: (False, False, True),
    PlateKind.BLACK: (True, True, True),
}


def spot_color(label: str) -> tuple[int, int, int]:
    """Deterministic RGB for a spot ink label, each channel in [120, 240]."""
    digest = hashlib.sha256(label.encode("utf-8")).digest()
    span = SPOT_BAND_HIGH - SPOT_BAND_LOW
    r, g, b = (SPOT_BAND_LOW + digest[i] * span // 255 for i in range(3))
    return r, g, b


class PlateColorizer:
    def colorize(self, identity: PlateIdentity, raster: Image.Image) -> Image.Image:
        gray = np.asarray(raster.convert("L"), dtype=np.uint8)
        if identity.kind is PlateKind.SPOT:
            rgb = self._colorize_spot(gray, spot_color(identity.label))
        else:
            rgb = self._colorize_process(gray, _PROCESS_CHANNELS[identity.kind])
        return Image.fromarray(rgb)

    @staticmethod
    def _colorize_process(gray: np.ndarray, channels: tuple[bool, bool, bool]) -> np.ndarray:
        rgb = np.full((*gray.shape, 3), 255, dtype=np.uint8)
        for index, carries_sample in enumerate(channels):
            if carries_sample:
                rgb[..., index] = gray
        return rgb

    @staticmethod
    def _colorize_spot(gray: np.ndarray, hue: tuple[int, int, int]) -> np.ndarray:
        coverage = 255 - gray.astype(np.uint32)
        rgb = np.empty((*gray.shape, 3), dtype=np.uint8)
        for index, channel in enumerate(hue):
            rgb[..., index] = 255 - (255 - channel) * coverage // 255
        return rgb
