"""
Errors raised by the variant matrix engine and its persistence layer.
All of them are recoverable: API views turn them into 4xx responses.
"""


class VariantMatrixError(Exception):
    """Base class for variant matrix errors."""


class EmptySelectionError(VariantMatrixError):
    """An attribute was put in scope without any chosen value."""

    def __init__(self, attribute_id=None):
        self.attribute_id = attribute_id
        if attribute_id is None:
            message = 'At least one attribute must be selected'
        else:
            message = f'Attribute {attribute_id} has no selected values'
        super().__init__(message)


class TooManyCombinationsError(VariantMatrixError):
    def __init__(self, requested, limit):
        self.requested = requested
        self.limit = limit
        super().__init__(
            f'Selection would generate {requested} combinations (limit is {limit})'
        )


class LockedSelectionError(VariantMatrixError):
    """A selection drops an attribute or value already used by existing variants."""

    def __init__(self, attribute_id, value_id=None):
        self.attribute_id = attribute_id
        self.value_id = value_id
        if value_id is None:
            message = f'Attribute {attribute_id} is used by existing variants and cannot be removed'
        else:
            message = (
                f'Value {value_id} of attribute {attribute_id} is used by existing '
                f'variants and cannot be removed'
            )
        super().__init__(message)


class StaleIndexError(VariantMatrixError):
    """The product's variant set changed between preview and commit."""

    def __init__(self, expected, actual):
        self.expected = expected
        self.actual = actual
        super().__init__(
            'Existing variants changed since the combinations were generated; '
            'generate them again'
        )


class CandidateValidationError(VariantMatrixError):
    def __init__(self, sku, message):
        self.sku = sku
        super().__init__(f"{sku or '?'}: {message}")


class NoNewCombinationsError(VariantMatrixError):
    """Nothing left to create once duplicates are removed."""

    def __init__(self, message='All these combinations already exist'):
        super().__init__(message)


class AmbiguousVariantWarning(UserWarning):
    """
    More than one variant carries the same attribute-value set.
    Only used to label log records; never raised.
    """
