# glass_solver/cli.py
# Command-line runner:
# - reads a cut list from CSV or a job JSON (or generates a sample job)
# - runs the optimizer and prints the report
# - optional CSV/JSON exports, PNG drawing and project saving
#
# Run:
#   python -m glass_solver --cuts cuts.csv --plate 260x180 --out out/
#   python -m glass_solver --job job.json --context EXPENSIVE_MATERIAL --png plan.png
#   python -m glass_solver --cuts a.csv b.csv --strategy BY_AREA_DESC --strategy LANDSCAPE_BY_AREA_DESC
#
# Several cut lists are merged into one job; ids are prefixed with the file name.
#
# CSV cut format (header required):
#   id,width,height,quantity,can_rotate

from __future__ import annotations

import argparse
import dataclasses
from pathlib import Path
from typing import List, Optional

from .config import DEFAULTS, OptimizerConfig, parse_plate_text
from .errors import OptimizationError
from .io_csv import export_all, read_cuts_csv
from .io_json import JsonProjectRepository, ProjectRecord, enhanced_to_dict, load_job_json, save_json
from .logger import LOGGER, set_enabled, set_verbose
from .optimizer import optimize
from .orientation import DisplayOrientation, parse_orientation, transform_result
from .plotting import PlotStyle, save_result_png, show_result
from .report import format_report
from .sample_data import RandomCutsConfig, add_job_prefix, generate_random_cuts, merge_jobs
from .scoring import OptimizationContext
from .strategies import strategy_by_name


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Glass plate cutting optimizer (guillotine shelf packing)")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--cuts", type=str, nargs="+", help="Path(s) to cut list CSV")
    src.add_argument("--job", type=str, help="Path to job JSON (plate/cuts/settings)")
    src.add_argument("--sample", type=int, metavar="SEED", help="Generate a random sample job with this seed")

    p.add_argument("--plate", type=str, default="",
                   help=f"Plate WxH in cm (default {DEFAULTS.default_plate_w:g}x{DEFAULTS.default_plate_h:g}, "
                        "or the job JSON plate)")
    p.add_argument("--context", type=str, default="",
                   choices=[""] + [c.value for c in OptimizationContext], help="Business context for scoring")
    p.add_argument("--alternatives", type=int, default=0,
                   help=f"Max plans to keep (default {DEFAULTS.default_max_alternatives})")
    p.add_argument("--reusable_min_area", type=float, default=DEFAULTS.reusable_waste_min_area,
                   help="Offcuts at least this big (cm²) count as reusable")
    p.add_argument("--time", type=float, default=DEFAULTS.strategy_time_budget_s,
                   help="Time budget for strategy generation (seconds)")
    p.add_argument("--refine_time", type=float, default=DEFAULTS.refine_time_limit_s,
                   help="Time budget for CP-SAT plate merging (seconds)")
    p.add_argument("--strategy", action="append", default=[], metavar="NAME",
                   help="Only try this strategy (repeatable), e.g. BY_AREA_DESC or LANDSCAPE_BY_HEIGHT_DESC")
    p.add_argument("--dedup_by_layout", action="store_true",
                   help="Keep plans that differ only in cut count or reusable offcuts")
    p.add_argument("--no_refine", action="store_true", help="Skip CP-SAT refinement")
    p.add_argument("--no_validate", action="store_true", help="Skip plan validation")
    p.add_argument("--per_plate_steps", action="store_true", help="Restart cut step numbers on each plate")
    p.add_argument("--orientation", type=str, default="",
                   choices=[""] + [o.value for o in DisplayOrientation],
                   help="Corner the operator measures from (display only)")

    # Output
    p.add_argument("--out", type=str, default="", help="Output directory for CSV + JSON exports (optional)")
    p.add_argument("--prefix", type=str, default="plan", help="Export filename prefix")
    p.add_argument("--png", type=str, default="", help="Save plate drawing as PNG (optional)")
    p.add_argument("--show", action="store_true", help="Show matplotlib figure")
    p.add_argument("--project_dir", type=str, default="", help="Save the plan as a project in this folder")
    p.add_argument("--project_name", type=str, default="", help="Project name (default: input file name)")

    # Logging
    p.add_argument("--verbose", action="store_true", help="Debug output")
    p.add_argument("--quiet", action="store_true", help="Only print the report")
    return p


def main(argv: Optional[List[str]] = None) -> None:
    args = build_argparser().parse_args(argv)
    set_verbose(bool(args.verbose))
    set_enabled(not args.quiet)

    settings = {}
    name = "sample"
    plate_w, plate_h = DEFAULTS.default_plate_w, DEFAULTS.default_plate_h
    try:
        if args.job:
            job_path = Path(args.job)
            if not job_path.exists():
                raise SystemExit(f"Job JSON not found: {job_path}")
            job = load_job_json(job_path)
            requests, settings, name = job.requests, job.settings, job_path.stem
            plate_w, plate_h = job.plate_w, job.plate_h
        elif args.cuts:
            paths = [Path(c) for c in args.cuts]
            for cuts_path in paths:
                if not cuts_path.exists():
                    raise SystemExit(f"Cuts CSV not found: {cuts_path}")
            if len(paths) == 1:
                requests, name = read_cuts_csv(paths[0]), paths[0].stem
            else:
                requests = merge_jobs(*[add_job_prefix(read_cuts_csv(cp), cp.stem) for cp in paths])
                name = "+".join(cp.stem for cp in paths)
        else:
            requests = generate_random_cuts(RandomCutsConfig(seed=int(args.sample)))
        if args.plate:
            plate_w, plate_h = parse_plate_text(args.plate)

        context = args.context or settings.get("context", OptimizationContext.BALANCED.value)
        max_alt = args.alternatives or int(settings.get("max_alternatives", DEFAULTS.default_max_alternatives))
        orientation = parse_orientation(args.orientation or settings.get("display_orientation", "TOP_LEFT"))

        config = OptimizerConfig(
            reusable_waste_min_area=float(args.reusable_min_area),
            strategy_time_budget_s=float(args.time),
            refine_time_limit_s=float(args.refine_time),
            dedup_by_layout=bool(args.dedup_by_layout or settings.get("dedup_by_layout", False)),
        )
        strategies = [strategy_by_name(s.strip().upper()) for s in args.strategy] or None
        res = optimize(
            requests,
            plate_w,
            plate_h,
            context=context,
            max_alternatives=max_alt,
            enable_refinement=not args.no_refine,
            enable_validation=not args.no_validate,
            config=config,
            strategies=strategies,
            per_plate_steps=bool(args.per_plate_steps),
        )
    except (OptimizationError, ValueError) as e:
        # OptimizationError carries the offending request ids in its message
        LOGGER.error(str(e))
        raise SystemExit(2)

    shown = transform_result(res.primary, orientation)
    print(format_report(dataclasses.replace(res, primary=shown), title=f"Glass cutting plan: {name}"))

    if args.out.strip():
        out_dir = Path(args.out.strip())
        paths = export_all(shown, out_dir, prefix=args.prefix) if not shown.is_empty() else []
        json_path = out_dir / f"{args.prefix}_result.json"
        save_json(enhanced_to_dict(res), json_path)
        LOGGER.info(f"Exported {len(paths) + 1} file(s) to {out_dir}")

    if args.project_dir.strip() and not res.primary.is_empty():
        repo = JsonProjectRepository(args.project_dir.strip())
        pid = repo.save(
            ProjectRecord(
                project_name=args.project_name or name,
                plate_width=plate_w,
                plate_height=plate_h,
                cuts_requested=tuple(requests),
                optimization_result=res.primary,
                display_orientation=orientation,
            )
        )
        LOGGER.info(f"Saved project {pid}")

    if (args.png or args.show) and not shown.is_empty():
        style = PlotStyle()
        if args.png:
            save_result_png(shown, args.png, style=style)
            LOGGER.info(f"Saved drawing to {args.png}")
        if args.show:
            show_result(shown, style=style)

    if not res.validation.is_valid:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
