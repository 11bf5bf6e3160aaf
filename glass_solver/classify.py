# glass_solver/classify.py
# Request-profile classification (shape of the cut list relative to the plate).

from __future__ import annotations

import statistics
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from .config import DEFAULTS
from .metrics import lower_bound_plates
from .types import CutRequest, expand_requests


class ProfileType(str, Enum):
    UNIFORM = "UNIFORM"
    MANY_SMALL = "MANY_SMALL"
    FEW_LARGE = "FEW_LARGE"
    LARGE_DOMINANT = "LARGE_DOMINANT"
    MIXED = "MIXED"


@dataclass(frozen=True)
class RequestProfile:
    type: ProfileType
    piece_count: int
    unique_sizes: int
    total_area: float
    median_area: float
    size_variation: float          # coefficient of variation of piece areas
    theoretical_min_plates: int


def classify(requests: Sequence[CutRequest], plate_w: float, plate_h: float) -> RequestProfile:
    """
    First match wins:
      UNIFORM         areas vary by <= 10 % (coefficient of variation)
      MANY_SMALL      >= 20 pieces, median piece < 5 % of the plate
      FEW_LARGE       <= 5 pieces, median piece >= 25 % of the plate
      LARGE_DOMINANT  pieces >= 40 % of the plate hold >= 60 % of the area
      MIXED           anything else
    """
    pieces = expand_requests(requests)
    areas = [p.area for p in pieces]
    plate_area = plate_w * plate_h
    n = len(areas)
    total = sum(areas)
    if n == 0:
        return RequestProfile(ProfileType.MIXED, 0, 0, 0.0, 0.0, 0.0, 0)

    median = statistics.median(areas)
    mean = total / n
    variation = statistics.pstdev(areas) / mean if n > 1 else 0.0
    unique = len({(min(p.width, p.height), max(p.width, p.height)) for p in pieces})
    large_area = sum(a for a in areas if a >= DEFAULTS.large_piece_min_ratio * plate_area)

    if variation <= DEFAULTS.uniform_max_variation:
        kind = ProfileType.UNIFORM
    elif n >= DEFAULTS.many_small_min_count and median < DEFAULTS.many_small_max_median_ratio * plate_area:
        kind = ProfileType.MANY_SMALL
    elif n <= DEFAULTS.few_large_max_count and median >= DEFAULTS.few_large_min_median_ratio * plate_area:
        kind = ProfileType.FEW_LARGE
    elif large_area >= DEFAULTS.large_dominant_min_share * total:
        kind = ProfileType.LARGE_DOMINANT
    else:
        kind = ProfileType.MIXED

    return RequestProfile(
        type=kind,
        piece_count=n,
        unique_sizes=unique,
        total_area=total,
        median_area=median,
        size_variation=variation,
        theoretical_min_plates=lower_bound_plates(total, plate_w, plate_h),
    )
