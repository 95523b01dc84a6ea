"""
Database side of the variant matrix: loads a product's variants into a
VariantIndex, runs the pure engine and persists confirmed candidates.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from django.conf import settings
from django.db import IntegrityError, transaction

from apps.catalog.models import (
    Product,
    Attribute,
    AttributeValue,
    Variant,
    VariantAttribute,
)
from .exceptions import (
    CandidateValidationError,
    NoNewCombinationsError,
    StaleIndexError,
)
from .variant_matrix import (
    DEFAULT_SKU_PADDING,
    Candidate,
    SelectionLocks,
    VariantIndex,
    available_options,
    build_index,
    find_duplicate,
    find_malformed_variants,
    generate,
    reconcile,
    required_attributes,
    resolve_matches,
    selection_locks,
)

logger = logging.getLogger(__name__)

SCOPE_ORDER = 'order'
SCOPE_CATALOG = 'catalog'


@dataclass
class MatrixPreview:
    """Result of generating and reconciling combinations for a product."""
    candidates: List[Candidate]
    generated: int
    version: str
    duplicates: int = 0

    @property
    def nothing_to_create(self):
        return not self.candidates


@dataclass
class PickerResult:
    attributes: List[Dict[str, Any]] = field(default_factory=list)
    required: List[int] = field(default_factory=list)
    variant: Optional[Variant] = None
    ambiguous: bool = False

    @property
    def complete(self):
        return self.variant is not None


class VariantMatrixService:
    """
    Entry point used by the API and admin for everything variant-matrix related.
    """

    @staticmethod
    def load_index(product: Product, variants: Optional[Sequence[Variant]] = None) -> VariantIndex:
        """Build the index for a product from the database."""
        if variants is None:
            variants = list(product.variants.all())
        assignments = list(
            VariantAttribute.objects.filter(variant__product=product)
            .only('variant_id', 'attribute_value_id')
        )
        attribute_values = list(
            AttributeValue.objects.filter(
                id__in={row.attribute_value_id for row in assignments}
            ).only('id', 'attribute_id')
        )
        return build_index(variants, assignments, attribute_values)

    @staticmethod
    def get_locks(product: Product) -> SelectionLocks:
        return selection_locks(VariantMatrixService.load_index(product))

    # -------------------------------------------------------------------------
    # Creation path
    # -------------------------------------------------------------------------

    @staticmethod
    def preview_new_variants(
        product: Product,
        selection: Mapping[int, Sequence[int]],
        base_price: Optional[Decimal] = None,
    ) -> MatrixPreview:
        """
        Generate the combinations of `selection` that the product lacks.

        New products start at V001; existing ones continue after their
        current variant count. Locked attributes and values must be kept.

        Raises:
            EmptySelectionError, LockedSelectionError, TooManyCombinationsError
        """
        index = VariantMatrixService.load_index(product)
        selection_locks(index).check(selection)

        candidates = generate(
            selection,
            sku_prefix=product.base_sku,
            start_index=len(index) + 1,
            base_price=product.base_price if base_price is None else base_price,
            padding=getattr(settings, 'VARIANT_SKU_PADDING', DEFAULT_SKU_PADDING),
            max_combinations=getattr(settings, 'VARIANT_MATRIX_MAX_COMBINATIONS', None),
        )
        new_candidates = reconcile(candidates, index)

        logger.info(
            'Product %s: %d combinations generated, %d new',
            product.base_sku, len(candidates), len(new_candidates),
        )
        return MatrixPreview(
            candidates=new_candidates,
            generated=len(candidates),
            duplicates=len(candidates) - len(new_candidates),
            version=index.version,
        )

    @staticmethod
    def create_variants(
        product: Product,
        candidates: Sequence[Candidate],
        expected_version: str,
    ) -> List[Variant]:
        """
        Persist confirmed candidates as variants.

        Runs in one transaction with the product row locked. The existing
        variant set must still match `expected_version` (the version returned
        by the preview); otherwise nothing is written.

        Raises:
            NoNewCombinationsError: empty candidate list
            StaleIndexError: variants changed since the preview
            CandidateValidationError: bad price, stock, SKU or values
        """
        if not candidates:
            raise NoNewCombinationsError()

        try:
            with transaction.atomic():
                product = Product.objects.select_for_update().get(pk=product.pk)
                index = VariantMatrixService.load_index(product)

                if index.version != expected_version:
                    logger.warning(
                        'Product %s: stale variant index (expected %s, found %s)',
                        product.base_sku, expected_version, index.version,
                    )
                    raise StaleIndexError(expected_version, index.version)

                # Same version, so a duplicate came from the client itself
                existing = index.combinations()
                for candidate in candidates:
                    if candidate.value_ids in existing:
                        raise CandidateValidationError(candidate.sku, 'combination already exists')

                _validate_candidates(candidates)

                created = []
                for candidate in candidates:
                    created.append(_create_variant(product, candidate))
        except IntegrityError as e:
            raise CandidateValidationError(None, f'Could not save variants: {e}') from e

        logger.info('Product %s: created %d variants', product.base_sku, len(created))
        return created

    @staticmethod
    def validate_assignment(variant: Variant, value_ids: Sequence[int]):
        """
        Check values assigned to a single variant by hand (admin edits).

        At most one value per attribute, and the set must not already belong
        to another variant of the product. An empty set is left to the
        integrity report.

        Raises:
            CandidateValidationError
        """
        value_ids = set(value_ids)
        if not value_ids:
            return

        seen = set()
        for attribute_id in AttributeValue.objects.filter(
            id__in=value_ids
        ).values_list('attribute_id', flat=True):
            if attribute_id in seen:
                raise CandidateValidationError(
                    variant.sku, 'only one value per attribute is allowed'
                )
            seen.add(attribute_id)

        index = VariantMatrixService.load_index(variant.product)
        duplicate_id = find_duplicate(value_ids, index, exclude=variant.pk)
        if duplicate_id is not None:
            other = Variant.objects.get(pk=duplicate_id)
            raise CandidateValidationError(
                variant.sku, f'combination already exists ({other.sku})'
            )

    # -------------------------------------------------------------------------
    # Selection path
    # -------------------------------------------------------------------------

    @staticmethod
    def candidate_pool(product: Product, scope: str = SCOPE_ORDER) -> List[Variant]:
        """
        Variants a selection may resolve to.

        Order entry only sees active variants with stock; the catalog scope
        (used while editing combinations) sees every variant.
        """
        queryset = product.variants.all()
        if scope == SCOPE_ORDER:
            queryset = queryset.filter(is_active=True, stock__gt=0)
        return list(queryset.order_by('id'))

    @staticmethod
    def parse_selection(params: Mapping[str, str]) -> Tuple[Dict[int, int], Dict[str, str]]:
        """
        Turn {attribute_slug: value} pairs into {attribute_id: value_id}.

        Keys that are not attribute slugs are ignored. Returns the selection
        and a dict of slug -> value for values that don't exist.
        """
        attributes = {
            a.slug: a for a in Attribute.objects.filter(slug__in=list(params.keys()))
        }
        selection = {}
        unknown = {}
        for slug, raw_value in params.items():
            attribute = attributes.get(slug)
            if attribute is None:
                continue
            value = attribute.values.filter(value__iexact=str(raw_value).strip()).first()
            if value is None:
                unknown[slug] = raw_value
                continue
            selection[attribute.id] = value.id
        return selection, unknown

    @staticmethod
    def picker(
        product: Product,
        selection: Mapping[int, int],
        scope: str = SCOPE_ORDER,
    ) -> PickerResult:
        """
        Options still selectable for each attribute plus the resolved variant.

        Mirrors the order entry flow: the variant is only returned once every
        attribute used by the pool has a value.
        """
        pool = VariantMatrixService.candidate_pool(product, scope)
        index = VariantMatrixService.load_index(product, variants=pool)

        required = required_attributes(pool, index)
        reachable = available_options(selection, pool, index)

        attributes = Attribute.objects.filter(id__in=required).order_by('display_order', 'name')
        values = AttributeValue.objects.filter(
            id__in={value_id for ids in reachable.values() for value_id in ids}
        ).order_by('display_order', 'value')

        by_attribute: Dict[int, List[AttributeValue]] = {}
        for value in values:
            by_attribute.setdefault(value.attribute_id, []).append(value)

        result = PickerResult(required=sorted(required))
        for attribute in attributes:
            result.attributes.append({
                'id': attribute.id,
                'name': attribute.name,
                'slug': attribute.slug,
                'input_type': attribute.input_type,
                'options': [
                    {
                        'id': value.id,
                        'value': value.value,
                        'color_hex': value.color_hex,
                        'is_selected': selection.get(attribute.id) == value.id,
                    }
                    for value in by_attribute.get(attribute.id, [])
                ],
            })

        matches = resolve_matches(selection, required, pool, index)
        if matches:
            result.variant = matches[0]
            result.ambiguous = len(matches) > 1
            if result.ambiguous:
                logger.warning(
                    'Product %s: selection %s matches %d variants (%s); flag for review',
                    product.base_sku, dict(selection), len(matches),
                    ', '.join(v.sku for v in matches),
                )
        return result

    # -------------------------------------------------------------------------
    # Integrity
    # -------------------------------------------------------------------------

    @staticmethod
    def integrity_report(product: Product) -> List[Dict[str, Any]]:
        """Variants missing an attribute, repeating one, or carrying none."""
        variants = list(product.variants.order_by('id'))
        index = VariantMatrixService.load_index(product, variants=variants)
        issues = find_malformed_variants([v.id for v in variants], index)

        skus = {v.id: v.sku for v in variants}
        attribute_slugs = dict(
            Attribute.objects.filter(
                id__in={i.attribute_id for i in issues if i.attribute_id is not None}
            ).values_list('id', 'slug')
        )
        return [
            {
                'variant_id': issue.variant_id,
                'sku': skus[issue.variant_id],
                'code': issue.code,
                'attribute': attribute_slugs.get(issue.attribute_id),
            }
            for issue in issues
        ]


def _validate_candidates(candidates: Sequence[Candidate]):
    seen_skus = set()
    seen_combinations = set()
    for candidate in candidates:
        sku = (candidate.sku or '').strip()
        if not sku:
            raise CandidateValidationError(sku, 'SKU is required')
        if sku in seen_skus:
            raise CandidateValidationError(sku, 'SKU is repeated in this batch')
        seen_skus.add(sku)

        if candidate.price is None or Decimal(str(candidate.price)) <= 0:
            raise CandidateValidationError(sku, 'price must be greater than zero')
        if candidate.stock is None or int(candidate.stock) < 0:
            raise CandidateValidationError(sku, 'stock cannot be negative')

        if not candidate.attributes:
            raise CandidateValidationError(sku, 'at least one attribute value is required')
        if candidate.value_ids in seen_combinations:
            raise CandidateValidationError(sku, 'combination is repeated in this batch')
        seen_combinations.add(candidate.value_ids)

    taken = list(
        Variant.objects.filter(sku__in=seen_skus).values_list('sku', flat=True)
    )
    if taken:
        raise CandidateValidationError(taken[0], 'SKU already exists')

    value_attributes = dict(
        AttributeValue.objects.filter(
            id__in={v for c in candidates for v in c.value_ids}
        ).values_list('id', 'attribute_id')
    )
    for candidate in candidates:
        for attribute_id, value_id in candidate.attributes.items():
            if value_attributes.get(value_id) != attribute_id:
                raise CandidateValidationError(
                    candidate.sku,
                    f'value {value_id} does not belong to attribute {attribute_id}',
                )


def _create_variant(product: Product, candidate: Candidate) -> Variant:
    variant = Variant.objects.create(
        product=product,
        sku=candidate.sku.strip(),
        price=Decimal(str(candidate.price)),
        stock=int(candidate.stock),
        is_active=True,
    )
    VariantAttribute.objects.bulk_create([
        VariantAttribute(variant=variant, attribute_value_id=value_id)
        for value_id in candidate.attributes.values()
    ])
    variant.name = variant.generate_name()
    variant.save(update_fields=['name'])
    return variant
