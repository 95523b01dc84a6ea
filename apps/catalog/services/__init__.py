from .exceptions import (
    VariantMatrixError,
    EmptySelectionError,
    TooManyCombinationsError,
    LockedSelectionError,
    StaleIndexError,
    CandidateValidationError,
    NoNewCombinationsError,
    AmbiguousVariantWarning,
)
from .matrix_service import (
    VariantMatrixService,
    MatrixPreview,
    PickerResult,
    SCOPE_ORDER,
    SCOPE_CATALOG,
)

__all__ = [
    'VariantMatrixService',
    'MatrixPreview',
    'PickerResult',
    'SCOPE_ORDER',
    'SCOPE_CATALOG',
    'VariantMatrixError',
    'EmptySelectionError',
    'TooManyCombinationsError',
    'LockedSelectionError',
    'StaleIndexError',
    'CandidateValidationError',
    'NoNewCombinationsError',
    'AmbiguousVariantWarning',
]
