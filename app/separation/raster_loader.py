import subprocess
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from app.logging.logger import Log
from app.separation.exceptions import ExternalToolError

_SIXTEEN_BIT_MODES = frozenset({"I;16", "I;16B", "I;16L", "I;16N", "I"})


class RasterLoader:
    """Decodes separation rasters into 8-bit grayscale images.

    Pillow is tried first. Files it cannot decode are converted to PNG with
    an external tool, trying each configured binary name in turn since the
    installed name differs across environments ("magick" vs "convert").
    """

    def __init__(
        self,
        *,
        converter_binaries: list[str] | None = None,
        timeout_seconds: int = 120,
    ) -> None:
        self._converter_binaries = converter_binaries or ["magick", "convert"]
        self._timeout_seconds = timeout_seconds

    def load(self, path: Path) -> Image.Image:
        try:
            with Image.open(path) as image:
                image.load()
                return to_gray8(image)
        except (UnidentifiedImageError, OSError) as exc:
            Log.warning(f"Pillow could not decode {path.name} ({exc}), trying converter")

        converted = self.convert(path, path.with_suffix(".png"))
        with Image.open(converted) as image:
            image.load()
            return to_gray8(image)

    def convert(self, source: Path, destination: Path) -> Path:
        """Convert *source* to an 8-bit grayscale PNG at *destination*."""
        failures: list[str] = []
        for binary in self._converter_binaries:
            args = [binary, str(source), "-colorspace", "Gray", "-depth", "8", str(destination)]
            try:
                completed = subprocess.run(
                    args,
                    capture_output=True,
                    text=True,
                    timeout=self._timeout_seconds,
                    check=False,
                )
            except FileNotFoundError:
                failures.append(f"{binary}: not found")
                continue
            except subprocess.TimeoutExpired:
                failures.append(f"{binary}: timed out after {self._timeout_seconds}s")
                continue
            if completed.returncode == 0 and destination.exists():
                return destination
            failures.append(f"{binary}: exit {completed.returncode} {completed.stderr.strip()}")

        raise ExternalToolError(
            f"Could not convert {source.name} to PNG: " + "; ".join(failures)
        )


def to_gray8(image: Image.Image) -> Image.Image:
    """Return *image* as mode "L", scaling 16-bit samples down to 8 bits."""
    if image.mode == "L":
        return image.copy()
    if image.mode in _SIXTEEN_BIT_MODES:
        samples = np.asarray(image, dtype=np.uint32)
        return Image.fromarray((samples >> 8).clip(0, 255).astype(np.uint8))
    return image.convert("L")
