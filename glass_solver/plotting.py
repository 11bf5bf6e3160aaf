# glass_solver/plotting.py
# Minimal matplotlib visualization: draw all plates of a plan in one figure.
# Plate coordinates use a top-left origin, so the y axis is inverted.

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

from .types import OptimizationResult, PlateOptimization


@dataclass(frozen=True)
class PlotStyle:
    show_labels: bool = True
    show_dims: bool = True
    show_waste: bool = True
    show_cuts: bool = True
    show_grid: bool = False
    font_size: int = 7
    padding_cm: float = 5.0   # empty margin around each plate in drawing units
    max_cols: int = 2         # layout of multiple plates in a single figure


def _hash_color(key: str) -> Tuple[float, float, float]:
    """Deterministic pastel-ish color from a string."""
    h = 2166136261
    for ch in key.encode("utf-8"):
        h ^= ch
        h *= 16777619
        h &= 0xFFFFFFFF
    # map to [0.45..0.9] range, glass-like light tones
    r = 0.45 + ((h >> 0) & 0xFF) / 255 * 0.45
    g = 0.45 + ((h >> 8) & 0xFF) / 255 * 0.45
    b = 0.45 + ((h >> 16) & 0xFF) / 255 * 0.45
    return (r, g, b)


def _plate_title(plate: PlateOptimization) -> str:
    bits = [
        f"Plate {plate.plate_number}",
        f"{plate.width:g}×{plate.height:g} cm",
        f"util {plate.utilization:.1f}%",
        f"pieces {len(plate.pieces)}",
    ]
    return " | ".join(bits)


def plot_result(
    result: OptimizationResult,
    style: Optional[PlotStyle] = None,
    figsize: Optional[Tuple[float, float]] = None,
) -> plt.Figure:
    """
    Draw all plates in one matplotlib figure: pieces colored per request,
    waste hatched (reusable waste darker), cut lines on top.
    """
    style = style or PlotStyle()

    n = len(result.plates)
    if n == 0:
        raise ValueError("Plan has no plates to plot")

    cols = min(style.max_cols, n)
    rows = (n + cols - 1) // cols

    if figsize is None:
        figsize = (6 * cols, 4.5 * rows)

    fig, axes = plt.subplots(rows, cols, figsize=figsize, squeeze=False)
    ax_list: List[plt.Axes] = list(axes.ravel())

    for ax in ax_list[n:]:
        ax.axis("off")

    for idx, plate in enumerate(result.plates):
        ax = ax_list[idx]
        W, H = plate.width, plate.height

        ax.add_patch(Rectangle((0, 0), W, H, fill=False, linewidth=1.2))

        if style.show_waste:
            for w in plate.waste_areas:
                ax.add_patch(
                    Rectangle(
                        (w.x, w.y), w.width, w.height,
                        facecolor="0.85" if w.reusable else "0.95",
                        edgecolor="0.6",
                        hatch="//" if w.reusable else "..",
                        linewidth=0.4,
                    )
                )

        for p in plate.pieces:
            color = _hash_color(p.request_id)
            ax.add_patch(Rectangle((p.x, p.y), p.width, p.height, facecolor=color, edgecolor="black", linewidth=0.8))

            if style.show_labels or style.show_dims:
                lines: List[str] = []
                if style.show_labels:
                    lines.append(p.id)
                if style.show_dims:
                    lines.append(f"{p.width:g}×{p.height:g}" + (" R" if p.rotated else ""))
                ax.text(
                    p.x + p.width / 2,
                    p.y + p.height / 2,
                    "\n".join(lines),
                    ha="center",
                    va="center",
                    fontsize=style.font_size,
                    color="black",
                )

        if style.show_cuts:
            for c in result.instructions:
                if c.plate_number != plate.plate_number:
                    continue
                if c.type == "vertical":
                    ax.plot([c.coord, c.coord], [c.start, c.end], color="tab:red", linewidth=0.9)
                else:
                    ax.plot([c.start, c.end], [c.coord, c.coord], color="tab:red", linewidth=0.9)

        ax.set_title(_plate_title(plate), fontsize=10)
        ax.set_aspect("equal", adjustable="box")

        pad = style.padding_cm
        ax.set_xlim(-pad, W + pad)
        ax.set_ylim(H + pad, -pad)   # top-left origin

        if style.show_grid:
            ax.grid(True, linewidth=0.3)
        else:
            ax.grid(False)
        ax.tick_params(labelbottom=False, labelleft=False, bottom=False, left=False)

    fig.tight_layout()
    return fig


def show_result(result: OptimizationResult, style: Optional[PlotStyle] = None) -> None:
    """Convenience wrapper: plot and show."""
    plot_result(result, style=style)
    plt.show()


def save_result_png(
    result: OptimizationResult,
    path: str,
    style: Optional[PlotStyle] = None,
    dpi: int = 150,
) -> None:
    fig = plot_result(result, style=style)
    fig.savefig(path, dpi=dpi, bbox_inches="tight")
    plt.close(fig)
