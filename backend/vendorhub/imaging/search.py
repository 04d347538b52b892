"""
VendorHub Media Backend — Size-Bounded Quality Search
=======================================================

What:  Finds the highest lossy quality whose encoding fits a byte ceiling.
How:   Binary search over an integer quality window, driven by an
       `encode(quality) -> bytes` callback. The function knows nothing about
       images; tests drive it with synthetic size curves.

Algorithm:
    lo, hi = 35, 90
    repeat 7 rounds (or until the window is empty):
        mid = round_half_up((lo + hi) / 2)
        fits  → remember as best, lo = mid + 1
        else  → hi = mid - 1
    no fit at all → encode at lo (the floor) and return it, flagged oversized
    best < desired_bytes → up to 3 probes at +5 quality (cap 95), each kept
                           only while it still fits the ceiling

    Assumes encoded size grows monotonically with quality, which holds for
    JPEG and WebP closely enough in practice.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

MIN_QUALITY = 35
MAX_QUALITY = 90
SEARCH_ROUNDS = 7
NUDGE_STEP = 5
NUDGE_PROBES = 3
QUALITY_CAP = 95

EncodeFn = Callable[[int], bytes]


@dataclass(frozen=True)
class QualitySearchResult:
    """Chosen encoding plus the quality that produced it."""

    data: bytes
    quality: int
    ceiling_satisfied: bool

    @property
    def byte_size(self) -> int:
        return len(self.data)


def _midpoint(lo: int, hi: int) -> int:
    # Half-up rounding; Python's round() would round half to even.
    return (lo + hi + 1) // 2


def search_quality(
    encode: EncodeFn,
    max_bytes: int,
    desired_bytes: Optional[int] = None,
    *,
    min_quality: int = MIN_QUALITY,
    max_quality: int = MAX_QUALITY,
    rounds: int = SEARCH_ROUNDS,
    nudge_step: int = NUDGE_STEP,
    nudge_probes: int = NUDGE_PROBES,
    quality_cap: int = QUALITY_CAP,
) -> QualitySearchResult:
    """
    Binary-search the quality parameter for the best encoding under `max_bytes`.

    Args:
        encode:        Callback producing the encoded bytes at a given quality
        max_bytes:     Hard ceiling
        desired_bytes: Optional soft target; undershooting it triggers the
                       upward nudge probes

    Returns:
        QualitySearchResult. `ceiling_satisfied` is False only when even
        `min_quality` does not fit; the floor-quality encoding is returned.

    Each quality is encoded at most once per call.
    """
    if min_quality > max_quality:
        raise ValueError("min_quality must not exceed max_quality")

    cache: Dict[int, bytes] = {}

    def probe(quality: int) -> bytes:
        if quality not in cache:
            cache[quality] = encode(quality)
            logger.debug("Quality probe q=%d -> %d bytes", quality, len(cache[quality]))
        return cache[quality]

    lo, hi = min_quality, max_quality
    best: Optional[QualitySearchResult] = None

    for _ in range(rounds):
        if lo > hi:
            break
        mid = _midpoint(lo, hi)
        data = probe(mid)
        if len(data) <= max_bytes:
            best = QualitySearchResult(data=data, quality=mid, ceiling_satisfied=True)
            lo = mid + 1
        else:
            hi = mid - 1

    if best is None:
        data = probe(lo)
        logger.warning(
            "Byte ceiling %d unreachable; returning q=%d at %d bytes",
            max_bytes,
            lo,
            len(data),
        )
        return QualitySearchResult(data=data, quality=lo, ceiling_satisfied=False)

    if desired_bytes and best.byte_size < desired_bytes:
        cursor = best.quality
        for _ in range(nudge_probes):
            next_quality = min(cursor + nudge_step, quality_cap)
            if next_quality == cursor:
                break
            data = probe(next_quality)
            if len(data) > max_bytes:
                break
            best = QualitySearchResult(data=data, quality=next_quality, ceiling_satisfied=True)
            cursor = next_quality

    return best
