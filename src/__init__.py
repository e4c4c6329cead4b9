"""Continuous-time trajectory curves with local support.

This package provides:
- A time-indexed coefficient store with stable keys
- Linear vector-space and geodesic SE(3) curve evaluators
- Composition curves (correction * base) for drift correction
- Keyed expressions with Jacobians for nonlinear optimizers

Times are integers in nanoseconds. SE(3) twists use the [omega, v]
convention with right perturbations, T Exp(d).
"""

from .config import CompositionStrategy, CurveConfig
from .errors import (
    CurveError,
    UnknownKeyError,
    UnknownTimeError,
    ArityMismatchError,
    UnsupportedBatchSizeError,
    OutOfRangeError,
    RangeMismatchError,
    UnsupportedDerivativeOrderError,
    InconsistentStoreError,
)
from .keys import KeyGenerator
from .coefficient import Coefficient, KeyCoefficientTime
from .coefficient_manager import CoefficientManager
from .se3_pose import SE3Pose
from .evaluator import Evaluator
from .vector_space_evaluator import VectorSpaceEvaluator
from .slerp_se3_evaluator import SlerpSE3Evaluator
from .expressions import (
    Expression,
    ConstantExpression,
    LeafExpression,
    ComposeExpression,
    InverseExpression,
    InterpolateExpression,
)
from .local_support_curve import (
    LocalSupportCurve,
    LinearInterpolationVectorSpaceCurve,
    SlerpSE3Curve,
)
from .composition_curve import (
    CompositionCurve,
    VectorSpaceCompositionCurve,
    SE3CompositionCurve,
)

__all__ = [
    # config
    'CompositionStrategy',
    'CurveConfig',
    # errors
    'CurveError',
    'UnknownKeyError',
    'UnknownTimeError',
    'ArityMismatchError',
    'UnsupportedBatchSizeError',
    'OutOfRangeError',
    'RangeMismatchError',
    'UnsupportedDerivativeOrderError',
    'InconsistentStoreError',
    # coefficients
    'KeyGenerator',
    'Coefficient',
    'KeyCoefficientTime',
    'CoefficientManager',
    'SE3Pose',
    # evaluators
    'Evaluator',
    'VectorSpaceEvaluator',
    'SlerpSE3Evaluator',
    # expressions
    'Expression',
    'ConstantExpression',
    'LeafExpression',
    'ComposeExpression',
    'InverseExpression',
    'InterpolateExpression',
    # curves
    'LocalSupportCurve',
    'LinearInterpolationVectorSpaceCurve',
    'SlerpSE3Curve',
    'CompositionCurve',
    'VectorSpaceCompositionCurve',
    'SE3CompositionCurve',
]
