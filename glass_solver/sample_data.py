# glass_solver/sample_data.py
# Utilities to generate sample / random cut lists for quick benchmarking and tuning.
# Handy for stress-testing plate count vs cut count trade-offs without real orders.

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Tuple

from .types import CutRequest


@dataclass(frozen=True)
class RandomCutsConfig:
    seed: int = 123
    n_unique: int = 12
    qty_range: Tuple[int, int] = (1, 4)

    # size ranges (cm)
    w_range: Tuple[int, int] = (20, 120)
    h_range: Tuple[int, int] = (20, 150)

    # probability a pane is NOT rotatable (patterned / coated glass)
    p_no_rotate: float = 0.2

    # probability of a door-height pane
    p_tall: float = 0.15
    tall_h_range: Tuple[int, int] = (150, 175)
    tall_w_range: Tuple[int, int] = (50, 90)

    # probability of a narrow strip (transom, sidelight)
    p_strip: float = 0.15
    strip_h_range: Tuple[int, int] = (10, 30)
    strip_w_range: Tuple[int, int] = (60, 200)


def generate_random_cuts(cfg: RandomCutsConfig = RandomCutsConfig()) -> List[CutRequest]:
    """
    Seeded list of CutRequest resembling window/door jobs: a few door panes,
    some strips, the rest ordinary window panes. Same seed -> same list.
    """
    rnd = random.Random(cfg.seed)
    out: List[CutRequest] = []

    for i in range(cfg.n_unique):
        r = rnd.random()
        if r < cfg.p_tall:
            w = rnd.randint(*cfg.tall_w_range)
            h = rnd.randint(*cfg.tall_h_range)
        elif r < cfg.p_tall + cfg.p_strip:
            w = rnd.randint(*cfg.strip_w_range)
            h = rnd.randint(*cfg.strip_h_range)
        else:
            w = rnd.randint(*cfg.w_range)
            h = rnd.randint(*cfg.h_range)

        out.append(
            CutRequest(
                id=f"G{i + 1:02d}",
                width=float(w),
                height=float(h),
                quantity=rnd.randint(*cfg.qty_range),
                can_rotate=rnd.random() > cfg.p_no_rotate,
            )
        )
    return out


def add_job_prefix(requests: List[CutRequest], prefix: str) -> List[CutRequest]:
    """Rename requests as "{prefix}_{id}" (useful when merging jobs)."""
    return [
        CutRequest(id=f"{prefix}_{r.id}", width=r.width, height=r.height,
                   quantity=r.quantity, can_rotate=r.can_rotate)
        for r in requests
    ]


def merge_jobs(*jobs: List[CutRequest]) -> List[CutRequest]:
    """Concatenate cut lists; ids must already be distinct (see add_job_prefix)."""
    out: List[CutRequest] = []
    for job in jobs:
        out.extend(job)
    return out
