"""Color pipeline stages, optimization and translation."""

from wlcolor.pipeline.optimizer import (
    are_curvesets_inverse,
    join_curvesets,
    matrix_is_identity,
    merge_curvesets,
    merge_matrices,
    optimize_pipeline,
)
from wlcolor.pipeline.stages import (
    CLutStage,
    CurveSetStage,
    Lab2XYZStage,
    MatrixStage,
    Pipeline,
    Stage,
    XYZ2LabStage,
)
from wlcolor.pipeline.translate import (
    ColorCurve,
    ColorMapping,
    CurveIdentity,
    CurveLut3x1D,
    CurveParametric,
    MappingIdentity,
    MappingLut3D,
    MappingMatrix,
    ParametricKind,
    lut3d_fill_in,
    translate_pipeline,
)

__all__ = [
    "Stage",
    "MatrixStage",
    "CurveSetStage",
    "CLutStage",
    "Lab2XYZStage",
    "XYZ2LabStage",
    "Pipeline",
    "optimize_pipeline",
    "merge_matrices",
    "merge_curvesets",
    "join_curvesets",
    "are_curvesets_inverse",
    "matrix_is_identity",
    "translate_pipeline",
    "lut3d_fill_in",
    "ColorCurve",
    "ColorMapping",
    "CurveIdentity",
    "CurveLut3x1D",
    "CurveParametric",
    "MappingIdentity",
    "MappingMatrix",
    "MappingLut3D",
    "ParametricKind",
]
