"""Deterministic artifact keys.

A key depends only on the target, the page index and the plate labels of
the page, so re-processing a page overwrites its previous images.
"""

import re
from collections.abc import Sequence

_UNSAFE = re.compile(r"[^A-Za-z0-9._-]+")
COMPOSITE_NAME = "composite"


def safe_segment(value: str) -> str:
    """Make *value* usable as a single storage path segment."""
    cleaned = _UNSAFE.sub("_", value).strip("._")
    return cleaned or "plate"


def page_prefix(prefix: str, target: str, page_index: int) -> str:
    return f"{prefix.strip('/')}/{safe_segment(target)}/page-{page_index}"


def plate_key(prefix: str, target: str, page_index: int, label: str) -> str:
    return f"{page_prefix(prefix, target, page_index)}/{safe_segment(label)}.png"


def plate_keys(prefix: str, target: str, page_index: int, labels: Sequence[str]) -> list[str]:
    """Keys for every plate of a page, one per plate and never the composite's.

    Repeated names (compared case-insensitively) get a numeric suffix in
    production order: `Gold.png`, `Gold-2.png`. The composite name is
    reserved, so a spot ink called "composite" becomes `composite-2.png`.
    """
    taken = {COMPOSITE_NAME}
    keys: list[str] = []
    for label in labels:
        segment = safe_segment(label)
        candidate = segment
        counter = 1
        while candidate.lower() in taken:
            counter += 1
            candidate = f"{segment}-{counter}"
        taken.add(candidate.lower())
        keys.append(plate_key(prefix, target, page_index, candidate))
    return keys


def composite_key(prefix: str, target: str, page_index: int) -> str:
    return f"{page_prefix(prefix, target, page_index)}/{COMPOSITE_NAME}.png"
