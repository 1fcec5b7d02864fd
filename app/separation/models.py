from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from PIL import Image


class PlateKind(str, Enum):
    """Semantic identity of a separation plate."""

    CYAN = "process-C"
    MAGENTA = "process-M"
    YELLOW = "process-Y"
    BLACK = "process-K"
    SPOT = "spot"

    @property
    def is_process(self) -> bool:
        return self is not PlateKind.SPOT


PROCESS_ORDER: tuple[PlateKind, ...] = (
    PlateKind.CYAN,
    PlateKind.MAGENTA,
    PlateKind.YELLOW,
    PlateKind.BLACK,
)


@dataclass(frozen=True)
class RawPlateFile:
    """One raster file emitted by the separation device."""

    path: Path

    @property
    def name(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class PlateIdentity:
    kind: PlateKind
    label: str


@dataclass
class Plate:
    """A plate as it moves through one job's pipeline. Never persisted."""

    identity: PlateIdentity
    raw: RawPlateFile
    colorized: Image.Image | None = None
    url: str | None = None

    @property
    def label(self) -> str:
        return self.identity.label

    @property
    def kind(self) -> PlateKind:
        return self.identity.kind
