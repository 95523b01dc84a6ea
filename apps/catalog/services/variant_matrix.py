"""
Variant matrix engine.

Pure functions over in-memory collections, shared by the three flows that
deal with attribute combinations:

- new product wizard: generate every combination of the chosen values
- add variants to an existing product: generate, then drop combinations
  that already exist
- order entry picker: narrow option lists as values are picked and resolve
  a complete pick to one variant

Nothing here touches the database. Variants, assignments and attribute
values are duck-typed: any object with the right attributes works, so Django
model instances can be passed straight in.

    variant         .id
    assignment      .variant_id, .attribute_value_id
    attribute value .id, .attribute_id
"""

import hashlib
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from functools import reduce
from itertools import product
from operator import mul
from typing import (
    Any,
    Dict,
    FrozenSet,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Set,
)

from .exceptions import (
    AmbiguousVariantWarning,
    EmptySelectionError,
    LockedSelectionError,
    TooManyCombinationsError,
)

logger = logging.getLogger(__name__)

DEFAULT_SKU_PADDING = 3


# =============================================================================
# Variant Index
# =============================================================================

class VariantIndex:
    """
    Lookup structures over a product's existing variants.

    variant id -> set of attribute value ids, plus the reverse mapping
    (built lazily) and attribute value id -> attribute id.
    """

    def __init__(
        self,
        variant_values: Dict[int, FrozenSet[int]],
        value_attributes: Dict[int, int],
    ):
        self._variant_values = variant_values
        self._value_attributes = value_attributes
        self._value_variants: Optional[Dict[int, FrozenSet[int]]] = None

    def __len__(self):
        return len(self._variant_values)

    def __contains__(self, variant_id):
        return variant_id in self._variant_values

    @property
    def variant_ids(self) -> List[int]:
        return list(self._variant_values)

    def values_of(self, variant_id) -> FrozenSet[int]:
        """Attribute value ids assigned to a variant (empty if unknown)."""
        return self._variant_values.get(variant_id, frozenset())

    def variants_with(self, value_id) -> FrozenSet[int]:
        """Variant ids carrying the given attribute value."""
        if self._value_variants is None:
            reverse: Dict[int, Set[int]] = {}
            for variant_id, value_ids in self._variant_values.items():
                for value_id_ in value_ids:
                    reverse.setdefault(value_id_, set()).add(variant_id)
            self._value_variants = {k: frozenset(v) for k, v in reverse.items()}
        return self._value_variants.get(value_id, frozenset())

    def attribute_of(self, value_id) -> Optional[int]:
        return self._value_attributes.get(value_id)

    def combinations(self) -> Set[FrozenSet[int]]:
        """Every attribute-value set currently carried by a variant."""
        return set(self._variant_values.values())

    @property
    def version(self) -> str:
        """
        Fingerprint of the existing combinations.

        Two indexes with the same set of variants and assignments have the
        same version regardless of input order.
        """
        rows = sorted(
            (variant_id, tuple(sorted(value_ids)))
            for variant_id, value_ids in self._variant_values.items()
        )
        digest = hashlib.sha256(repr(rows).encode('utf-8'))
        return digest.hexdigest()


def build_index(
    variants: Iterable[Any],
    assignments: Iterable[Any],
    attribute_values: Iterable[Any],
) -> VariantIndex:
    """
    Build a VariantIndex.

    Assignment rows pointing to a variant or attribute value missing from the
    inputs are skipped.
    """
    value_attributes = {av.id: av.attribute_id for av in attribute_values}
    collected: Dict[int, Set[int]] = {v.id: set() for v in variants}

    for row in assignments:
        if row.variant_id not in collected:
            continue
        if row.attribute_value_id not in value_attributes:
            continue
        collected[row.variant_id].add(row.attribute_value_id)

    return VariantIndex(
        {variant_id: frozenset(values) for variant_id, values in collected.items()},
        value_attributes,
    )


# =============================================================================
# Combination Generator / Duplicate Reconciler
# =============================================================================

@dataclass
class Candidate:
    """A combination waiting for the operator to confirm price and stock."""

    attributes: Dict[int, int]  # attribute_id -> attribute_value_id, in enumeration order
    sku: str
    price: Decimal = Decimal('0')
    stock: int = 0

    @property
    def value_ids(self) -> FrozenSet[int]:
        return frozenset(self.attributes.values())


def format_sku(prefix: str, number: int, padding: int = DEFAULT_SKU_PADDING) -> str:
    return f'{prefix}-V{number:0{padding}d}'


def count_combinations(selection: Mapping[Any, Sequence[Any]]) -> int:
    if not selection:
        return 0
    return reduce(mul, (len(dict.fromkeys(values)) for values in selection.values()), 1)


def generate(
    selection: Mapping[int, Sequence[int]],
    sku_prefix: str,
    start_index: int = 1,
    base_price=Decimal('0'),
    padding: int = DEFAULT_SKU_PADDING,
    max_combinations: Optional[int] = None,
) -> List[Candidate]:
    """
    Cartesian product of the selected values.

    Attributes are walked in the mapping's order and values in list order;
    the first attribute varies slowest. SKUs are numbered from start_index
    without resetting between attributes.

    Raises:
        EmptySelectionError: no attribute selected, or one with no values
        TooManyCombinationsError: output would exceed max_combinations
    """
    if not selection:
        raise EmptySelectionError()

    axes = []
    for attribute_id, value_ids in selection.items():
        unique_values = list(dict.fromkeys(value_ids))
        if not unique_values:
            raise EmptySelectionError(attribute_id)
        axes.append((attribute_id, unique_values))

    total = count_combinations(selection)
    if max_combinations is not None and total > max_combinations:
        raise TooManyCombinationsError(total, max_combinations)

    attribute_ids = [attribute_id for attribute_id, _ in axes]
    candidates = []
    for offset, combo in enumerate(product(*(values for _, values in axes))):
        candidates.append(Candidate(
            attributes=dict(zip(attribute_ids, combo)),
            sku=format_sku(sku_prefix, start_index + offset, padding),
            price=base_price,
            stock=0,
        ))

    logger.debug('Generated %d combinations for prefix %s', len(candidates), sku_prefix)
    return candidates


def reconcile(candidates: Iterable[Candidate], index: VariantIndex) -> List[Candidate]:
    """
    Drop candidates whose value set exactly equals an existing variant's.

    Frozenset equality means same size and same members: an existing
    variant carrying a superset or a subset of the candidate's values is
    not a duplicate.
    """
    existing = index.combinations()
    return [c for c in candidates if c.value_ids not in existing]


def find_duplicate(value_ids: Iterable[int], index: VariantIndex, exclude=None) -> Optional[int]:
    """Id of an indexed variant (other than `exclude`) carrying exactly value_ids."""
    target = frozenset(value_ids)
    for variant_id in index.variant_ids:
        if variant_id != exclude and index.values_of(variant_id) == target:
            return variant_id
    return None


# =============================================================================
# Cascading Filter / Variant Resolver
# =============================================================================

def _surviving_variants(
    fixed_selection: Mapping[int, int],
    candidate_pool: Iterable[Any],
    index: VariantIndex,
    skip_attribute=None,
) -> List[Any]:
    survivors = list(candidate_pool)
    for attribute_id, value_id in fixed_selection.items():
        if attribute_id == skip_attribute:
            continue
        survivors = [v for v in survivors if value_id in index.values_of(v.id)]
    return survivors


def available_values(
    attribute_id: int,
    fixed_selection: Mapping[int, int],
    candidate_pool: Iterable[Any],
    index: VariantIndex,
) -> Set[int]:
    """
    Values of attribute_id still reachable under the other fixed choices.

    The attribute's own fixed value is ignored so the user can switch it.
    The pool is used as given: stock/active policy belongs to the caller.
    """
    survivors = _surviving_variants(
        fixed_selection, candidate_pool, index, skip_attribute=attribute_id
    )
    return {
        value_id
        for variant in survivors
        for value_id in index.values_of(variant.id)
        if index.attribute_of(value_id) == attribute_id
    }


def required_attributes(candidate_pool: Iterable[Any], index: VariantIndex) -> Set[int]:
    """Attributes used by at least one variant of the pool."""
    attribute_ids = set()
    for variant in candidate_pool:
        for value_id in index.values_of(variant.id):
            attribute_id = index.attribute_of(value_id)
            if attribute_id is not None:
                attribute_ids.add(attribute_id)
    return attribute_ids


def available_options(
    fixed_selection: Mapping[int, int],
    candidate_pool: Iterable[Any],
    index: VariantIndex,
) -> Dict[int, Set[int]]:
    """Run available_values for every attribute the pool uses."""
    pool = list(candidate_pool)
    return {
        attribute_id: available_values(attribute_id, fixed_selection, pool, index)
        for attribute_id in required_attributes(pool, index)
    }


def resolve_matches(
    selection: Mapping[int, int],
    required: Iterable[int],
    candidate_pool: Iterable[Any],
    index: VariantIndex,
) -> List[Any]:
    """
    Every pool variant whose value set equals the selection's.

    An incomplete or over-specified selection matches nothing.
    """
    if set(selection) != set(required):
        return []
    target = frozenset(selection.values())
    return [
        variant for variant in candidate_pool
        if len(index.values_of(variant.id)) == len(target)
        and target <= index.values_of(variant.id)
    ]


def resolve(
    selection: Mapping[int, int],
    required: Iterable[int],
    candidate_pool: Iterable[Any],
    index: VariantIndex,
) -> Optional[Any]:
    """
    The single variant for a complete selection, or None.

    If several variants match, the first in pool order wins and the
    duplication is logged for manual review.
    """
    matches = resolve_matches(selection, required, candidate_pool, index)
    if not matches:
        return None
    if len(matches) > 1:
        logger.warning(
            '%s: selection %s matches variants %s; using %s',
            AmbiguousVariantWarning.__name__,
            dict(selection),
            [v.id for v in matches],
            matches[0].id,
        )
    return matches[0]


# =============================================================================
# Selection locks
# =============================================================================

@dataclass
class SelectionLocks:
    """Attributes and values already in use, which a new selection must keep."""

    attribute_ids: List[int] = field(default_factory=list)
    values_by_attribute: Dict[int, List[int]] = field(default_factory=dict)

    def initial_selection(self) -> Dict[int, List[int]]:
        return {
            attribute_id: list(self.values_by_attribute[attribute_id])
            for attribute_id in self.attribute_ids
        }

    def check(self, selection: Mapping[int, Sequence[int]]):
        """Raise LockedSelectionError if a locked attribute or value is missing."""
        for attribute_id in self.attribute_ids:
            if attribute_id not in selection:
                raise LockedSelectionError(attribute_id)
            chosen = set(selection[attribute_id])
            for value_id in self.values_by_attribute[attribute_id]:
                if value_id not in chosen:
                    raise LockedSelectionError(attribute_id, value_id)


def selection_locks(index: VariantIndex) -> SelectionLocks:
    """
    Locks derived from existing variants, in first-seen order.

    Value ids inside a variant are visited in ascending order so the result
    does not depend on set iteration order.
    """
    locks = SelectionLocks()
    for variant_id in index.variant_ids:
        for value_id in sorted(index.values_of(variant_id)):
            attribute_id = index.attribute_of(value_id)
            if attribute_id is None:
                continue
            if attribute_id not in locks.values_by_attribute:
                locks.attribute_ids.append(attribute_id)
                locks.values_by_attribute[attribute_id] = []
            values = locks.values_by_attribute[attribute_id]
            if value_id not in values:
                values.append(value_id)
    return locks


# =============================================================================
# Integrity check
# =============================================================================

ISSUE_EMPTY = 'empty'
ISSUE_DUPLICATE_ATTRIBUTE = 'duplicate_attribute'
ISSUE_MISSING_ATTRIBUTE = 'missing_attribute'


@dataclass
class VariantIssue:
    variant_id: int
    code: str
    attribute_id: Optional[int] = None


def find_malformed_variants(
    variant_ids: Iterable[int],
    index: VariantIndex,
    required: Optional[Iterable[int]] = None,
) -> List[VariantIssue]:
    """
    Flag variants that break the one-value-per-attribute rule.

    When `required` is None, the attributes used anywhere among the given
    variants are required. Nothing is modified; callers decide what to do.
    """
    variant_ids = list(variant_ids)
    if required is None:
        required = {
            index.attribute_of(value_id)
            for variant_id in variant_ids
            for value_id in index.values_of(variant_id)
        }
        required.discard(None)
    required = sorted(required)

    issues = []
    for variant_id in variant_ids:
        value_ids = index.values_of(variant_id)
        if not value_ids:
            issues.append(VariantIssue(variant_id, ISSUE_EMPTY))
            continue

        per_attribute: Dict[int, int] = {}
        for value_id in value_ids:
            attribute_id = index.attribute_of(value_id)
            per_attribute[attribute_id] = per_attribute.get(attribute_id, 0) + 1

        for attribute_id in sorted(a for a, n in per_attribute.items() if n > 1):
            issues.append(VariantIssue(variant_id, ISSUE_DUPLICATE_ATTRIBUTE, attribute_id))
        for attribute_id in required:
            if attribute_id not in per_attribute:
                issues.append(VariantIssue(variant_id, ISSUE_MISSING_ATTRIBUTE, attribute_id))

    for issue in issues:
        logger.warning(
            'Malformed variant %s: %s (attribute %s)',
            issue.variant_id, issue.code, issue.attribute_id,
        )
    return issues
