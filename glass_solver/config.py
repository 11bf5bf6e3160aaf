# glass_solver/config.py
# Centralized defaults and configuration helpers.
# Keeps "magic numbers" (waste threshold, score weights, profile thresholds,
# time budgets) in one place.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

# (compactness, waste, cut) weights per optimization context
Weights = Tuple[float, float, float]


def _default_context_weights() -> Dict[str, Weights]:
    return {
        "PRODUCTION": (0.45, 0.15, 0.40),
        "EXPENSIVE_MATERIAL": (0.40, 0.50, 0.10),
        "QUICK_CUT": (0.25, 0.15, 0.60),
        "BALANCED": (1 / 3, 1 / 3, 1 / 3),
    }


@dataclass(frozen=True)
class Defaults:
    # Typical float glass plate used in the shop (cm)
    default_plate_w: float = 260.0
    default_plate_h: float = 180.0

    # Leftovers at least this big (cm²) are kept for future jobs
    reusable_waste_min_area: float = 2000.0

    # Float tolerance for fit / tiling checks (cm and cm²)
    eps: float = 1e-9
    area_tolerance: float = 1e-6

    # Strategy generation
    default_max_alternatives: int = 8
    strategy_time_budget_s: float = 5.0

    # CP-SAT refinement (plate merge)
    refine_time_limit_s: float = 2.0
    refine_max_pieces: int = 40
    refine_max_rounds: int = 3
    cp_sat_scale: int = 100          # integer units per cm
    cp_sat_workers: int = 2

    # Quality scoring
    compactness_plate_weight: float = 0.6
    compactness_util_weight: float = 0.4
    waste_low_weight: float = 0.5
    waste_reusable_weight: float = 0.3
    waste_largest_weight: float = 0.2
    cut_slack_per_piece: float = 2.0
    confidence_top_k: int = 5
    confidence_spread_factor: float = 2.0
    confidence_min_candidates: int = 3
    confidence_high: float = 80.0
    confidence_medium: float = 60.0

    # Request profile classification
    uniform_max_variation: float = 0.10
    many_small_min_count: int = 20
    many_small_max_median_ratio: float = 0.05
    few_large_max_count: int = 5
    few_large_min_median_ratio: float = 0.25
    large_piece_min_ratio: float = 0.40
    large_dominant_min_share: float = 0.60

    # Validation warnings (percent)
    low_utilization_warning: float = 60.0
    last_plate_warning: float = 30.0


DEFAULTS = Defaults()


@dataclass(frozen=True)
class OptimizerConfig:
    """
    Overridable subset of the defaults, passed through the optimizer.
    Scoring weights and the reusable-waste threshold have no documented
    derivation; keep them configurable.
    """
    reusable_waste_min_area: float = DEFAULTS.reusable_waste_min_area
    context_weights: Dict[str, Weights] = field(default_factory=_default_context_weights)
    strategy_time_budget_s: float = DEFAULTS.strategy_time_budget_s
    refine_time_limit_s: float = DEFAULTS.refine_time_limit_s
    refine_max_pieces: int = DEFAULTS.refine_max_pieces
    refine_max_rounds: int = DEFAULTS.refine_max_rounds
    low_utilization_warning: float = DEFAULTS.low_utilization_warning
    last_plate_warning: float = DEFAULTS.last_plate_warning

    # Sub-score weights
    compactness_plate_weight: float = DEFAULTS.compactness_plate_weight
    compactness_util_weight: float = DEFAULTS.compactness_util_weight
    waste_low_weight: float = DEFAULTS.waste_low_weight
    waste_reusable_weight: float = DEFAULTS.waste_reusable_weight
    waste_largest_weight: float = DEFAULTS.waste_largest_weight
    cut_slack_per_piece: float = DEFAULTS.cut_slack_per_piece

    # Plans with equal plate count and rounded utilization are duplicates;
    # True also requires equal cut count and reusable offcut count.
    dedup_by_layout: bool = False

    def __post_init__(self):
        if self.reusable_waste_min_area < 0:
            raise ValueError("reusable_waste_min_area must be >= 0")
        if self.cut_slack_per_piece <= 0:
            raise ValueError("cut_slack_per_piece must be > 0")
        # Overrides are merged onto the built-in contexts
        merged = _default_context_weights()
        merged.update(self.context_weights)
        object.__setattr__(self, "context_weights", merged)
        for name, w in self.context_weights.items():
            if len(w) != 3 or any(x < 0 for x in w) or sum(w) <= 0:
                raise ValueError(f"Invalid weights for context {name}: {w}")

    def weights_for(self, context: str) -> Weights:
        try:
            w = self.context_weights[context]
        except KeyError:
            raise ValueError(f"Unknown optimization context: {context!r}") from None
        total = float(sum(w))
        return (w[0] / total, w[1] / total, w[2] / total)


DEFAULT_CONFIG = OptimizerConfig()


def clamp(v: float, lo: float, hi: float) -> float:
    """Clamp a numeric value to [lo, hi]."""
    if v < lo:
        return lo
    if v > hi:
        return hi
    return v


def parse_plate_text(plate_text: str) -> Tuple[float, float]:
    """
    Parse '260x180' -> (260.0, 180.0)
    """
    s = plate_text.lower().replace(" ", "").replace("×", "x")
    if "x" not in s:
        raise ValueError("plate_text must be like '260x180'")
    a, b = s.split("x", 1)
    w, h = float(a), float(b)
    if w <= 0 or h <= 0:
        raise ValueError(f"Plate size must be positive, got {plate_text!r}")
    return w, h


def resolve_config(config: Optional[OptimizerConfig]) -> OptimizerConfig:
    return config if config is not None else DEFAULT_CONFIG
