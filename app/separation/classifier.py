import re
from collections.abc import Iterable, Sequence

from app.logging.logger import Log
from app.separation.models import PROCESS_ORDER, Plate, PlateIdentity, PlateKind, RawPlateFile

_PROCESS_NAMES: tuple[tuple[str, PlateKind, str], ...] = (
    ("cyan", PlateKind.CYAN, "Cyan"),
    ("magenta", PlateKind.MAGENTA, "Magenta"),
    ("yellow", PlateKind.YELLOW, "Yellow"),
    ("black", PlateKind.BLACK, "Black"),
)

_PARENTHESIZED = re.compile(r"\(([^()]*)\)[^()]*$")
_GENERATED_PREFIX = re.compile(r"^sep(?:[-_.]|$)", re.IGNORECASE)
_WHITESPACE = re.compile(r"\s+")
_EDGE_PUNCTUATION = " .-_()[]{}"


class PlateClassifier:
    """Maps separation file names to plate identities.

    Spot naming is best effort: when the device cannot encode an ink name
    the label degrades to the generated file name.
    """

    def classify(self, raw: RawPlateFile) -> PlateIdentity:
        label = self.label_from_filename(raw.name)
        lowered = label.lower()
        for needle, kind, canonical in _PROCESS_NAMES:
            if needle in lowered:
                return PlateIdentity(kind=kind, label=canonical)
        return PlateIdentity(kind=PlateKind.SPOT, label=label or raw.path.stem)

    def classify_all(self, raws: Sequence[RawPlateFile]) -> list[PlateIdentity]:
        """Classify every file of one page, assigning each process kind at most once.

        An exact process name claims its kind before names that merely contain
        it, so `Yellow` wins over `PANTONE Yellow C`. Files that lose the
        contest are kept as spot plates under their own ink name.
        """
        labels = [self.label_from_filename(raw.name) for raw in raws]
        candidates = [self.classify(raw) for raw in raws]
        resolved: list[PlateIdentity | None] = [None] * len(raws)
        claimed: set[PlateKind] = set()
        for exact_pass in (True, False):
            for index, (label, candidate) in enumerate(zip(labels, candidates, strict=True)):
                if resolved[index] is not None or candidate.kind is PlateKind.SPOT:
                    continue
                if (label.lower() == candidate.label.lower()) is not exact_pass:
                    continue
                if candidate.kind not in claimed:
                    claimed.add(candidate.kind)
                    resolved[index] = candidate

        identities: list[PlateIdentity] = []
        for raw, label, candidate, identity in zip(raws, labels, candidates, resolved, strict=True):
            if identity is None:
                identity = PlateIdentity(kind=PlateKind.SPOT, label=label or raw.path.stem)
                if candidate.kind is not PlateKind.SPOT:
                    Log.warning(
                        f"{raw.name} names {candidate.label} but that plate is already "
                        f"assigned; keeping it as spot plate {identity.label!r}"
                    )
            identities.append(identity)
        return identities

    @staticmethod
    def label_from_filename(filename: str) -> str:
        stem = filename.rsplit(".", 1)[0] if "." in filename else filename
        match = _PARENTHESIZED.search(stem)
        raw_label = match.group(1) if match else _GENERATED_PREFIX.sub("", stem)
        label = _WHITESPACE.sub(" ", raw_label.replace("_", " "))
        return label.strip(_EDGE_PUNCTUATION)


def order_plates(plates: Iterable[Plate]) -> list[Plate]:
    """Put process plates first in C, M, Y, K order; spots keep their order."""
    rank = {kind: index for index, kind in enumerate(PROCESS_ORDER)}
    return sorted(plates, key=lambda plate: rank.get(plate.kind, len(rank)))
