"""
Glass Solver package (guillotine glass plate cutting).

Current state:
- Greedy shelf/strip packer with rotation (guillotine-cuttable by construction)
- Several deterministic strategies (orderings x rotation policies), de-duplicated
- Waste analysis with reusable offcut classification
- Ordered guillotine cut instructions, checked by replaying them
- Context-weighted quality scores and confidence
- Optional CP-SAT refinement that merges the two emptiest plates
- Orchestrator: classify -> generate -> score -> refine -> validate -> suggest
- JSON/CSV I/O, project repository, matplotlib drawings, CLI
"""

from .types import (
    Rect,
    CutRequest,
    PieceInstance,
    expand_requests,
    PlacedPiece,
    WasteArea,
    PlateOptimization,
    ResultingPiece,
    CutInstruction,
    StrategyInfo,
    WasteQuality,
    OptimizationResult,
)

from .errors import (
    ErrorKind,
    ValidationIssue,
    OptimizationError,
    InvalidInputError,
    PieceExceedsPlateError,
    TilingInvariantError,
)

from .config import DEFAULTS, OptimizerConfig

from .packer import pack
from .metrics import analyze_plate, compute_waste_quality
from .instructions import plan_instructions, plate_instructions
from .strategies import Strategy, default_strategies, generate

from .scoring import OptimizationContext, QualityScore, score
from .classify import ProfileType, RequestProfile, classify
from .validate import ValidationReport, prevalidate, validate_result

from .optimizer import (
    EnhancedOptimizationResult,
    OptimizationMetadata,
    Suggestion,
    insights,
    optimize,
    select,
)

from .solver_shelf_cp_sat import refine

from .orientation import DisplayOrientation, transform_result

from .io_json import JsonProjectRepository, ProjectRecord, load_job_json, result_from_dict, result_to_dict

__all__ = [
    # types
    "Rect",
    "CutRequest",
    "PieceInstance",
    "expand_requests",
    "PlacedPiece",
    "WasteArea",
    "PlateOptimization",
    "ResultingPiece",
    "CutInstruction",
    "StrategyInfo",
    "WasteQuality",
    "OptimizationResult",
    # errors
    "ErrorKind",
    "ValidationIssue",
    "OptimizationError",
    "InvalidInputError",
    "PieceExceedsPlateError",
    "TilingInvariantError",
    # config
    "DEFAULTS",
    "OptimizerConfig",
    # core
    "pack",
    "analyze_plate",
    "compute_waste_quality",
    "plan_instructions",
    "plate_instructions",
    "Strategy",
    "default_strategies",
    "generate",
    "refine",
    # scoring / orchestration
    "OptimizationContext",
    "QualityScore",
    "score",
    "ProfileType",
    "RequestProfile",
    "classify",
    "ValidationReport",
    "prevalidate",
    "validate_result",
    "EnhancedOptimizationResult",
    "OptimizationMetadata",
    "Suggestion",
    "insights",
    "optimize",
    "select",
    # presentation / persistence
    "DisplayOrientation",
    "transform_result",
    "JsonProjectRepository",
    "ProjectRecord",
    "load_job_json",
    "result_from_dict",
    "result_to_dict",
]
