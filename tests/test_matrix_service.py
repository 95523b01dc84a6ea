"""Tests for VariantMatrixService against the database."""

import logging
from decimal import Decimal

import pytest

from apps.catalog.models import Product, Variant, VariantAttribute
from apps.catalog.services import (
    VariantMatrixService,
    SCOPE_CATALOG,
    SCOPE_ORDER,
    CandidateValidationError,
    LockedSelectionError,
    NoNewCombinationsError,
    StaleIndexError,
    TooManyCombinationsError,
)
from apps.catalog.services.variant_matrix import Candidate

pytestmark = pytest.mark.django_db


@pytest.fixture
def values(talla, color):
    """AttributeValue instances keyed by their value."""
    result = {v.value: v for v in talla.values.all()}
    result.update({v.value: v for v in color.values.all()})
    return result


@pytest.fixture
def full_selection(talla, color, values):
    return {
        talla.id: [values['S'].id, values['M'].id, values['L'].id],
        color.id: [values['Rojo'].id, values['Azul'].id],
    }


class TestPreviewNewVariants:
    """Tests for generating candidates for a product."""

    def test_new_product_gets_full_matrix(self, product, full_selection):
        preview = VariantMatrixService.preview_new_variants(product, full_selection)

        assert preview.generated == 6
        assert preview.duplicates == 0
        assert len(preview.candidates) == 6
        assert preview.candidates[0].sku == 'CAM-001-V001'
        assert preview.candidates[-1].sku == 'CAM-001-V006'
        assert all(c.price == Decimal('9990.00') for c in preview.candidates)
        assert preview.version == VariantMatrixService.load_index(product).version

    def test_explicit_base_price(self, product, full_selection):
        preview = VariantMatrixService.preview_new_variants(
            product, full_selection, base_price=Decimal('12500.00')
        )
        assert preview.candidates[0].price == Decimal('12500.00')

    def test_existing_combinations_are_skipped(self, product, values, full_selection, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])

        preview = VariantMatrixService.preview_new_variants(product, full_selection)

        assert preview.generated == 6
        assert preview.duplicates == 1
        assert len(preview.candidates) == 5
        assert preview.candidates[0].sku == 'CAM-001-V003'
        combos = {c.value_ids for c in preview.candidates}
        assert frozenset({values['S'].id, values['Rojo'].id}) not in combos

    def test_nothing_to_create(self, product, talla, color, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])

        preview = VariantMatrixService.preview_new_variants(
            product, {talla.id: [values['S'].id], color.id: [values['Rojo'].id]}
        )

        assert preview.nothing_to_create
        assert preview.duplicates == 1

    def test_locked_value_cannot_be_dropped(self, product, talla, color, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])

        with pytest.raises(LockedSelectionError):
            VariantMatrixService.preview_new_variants(
                product, {talla.id: [values['M'].id], color.id: [values['Rojo'].id]}
            )

    def test_locked_attribute_cannot_be_dropped(self, product, talla, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])

        with pytest.raises(LockedSelectionError):
            VariantMatrixService.preview_new_variants(
                product, {talla.id: [values['S'].id, values['M'].id]}
            )

    def test_combination_limit(self, product, full_selection, settings):
        settings.VARIANT_MATRIX_MAX_COMBINATIONS = 4
        with pytest.raises(TooManyCombinationsError):
            VariantMatrixService.preview_new_variants(product, full_selection)

    def test_sku_padding_setting(self, product, talla, values, settings):
        settings.VARIANT_SKU_PADDING = 4
        preview = VariantMatrixService.preview_new_variants(
            product, {talla.id: [values['S'].id]}
        )
        assert preview.candidates[0].sku == 'CAM-001-V0001'

    def test_locks(self, product, talla, color, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])
        make_variant('CAM-001-V002', [values['M'], values['Rojo']])

        locks = VariantMatrixService.get_locks(product)

        assert locks.attribute_ids == [talla.id, color.id]
        assert locks.values_by_attribute[talla.id] == [values['S'].id, values['M'].id]
        assert locks.values_by_attribute[color.id] == [values['Rojo'].id]


class TestCreateVariants:
    """Tests for persisting confirmed candidates."""

    def _confirmed(self, preview, price='9990.00', stock=5):
        for candidate in preview.candidates:
            candidate.price = Decimal(price)
            candidate.stock = stock
        return preview.candidates

    def test_creates_variants_with_values(self, product, talla, color, values):
        preview = VariantMatrixService.preview_new_variants(
            product, {talla.id: [values['S'].id, values['M'].id], color.id: [values['Rojo'].id]}
        )

        created = VariantMatrixService.create_variants(
            product, self._confirmed(preview), expected_version=preview.version
        )

        assert [v.sku for v in created] == ['CAM-001-V001', 'CAM-001-V002']
        assert product.variants.count() == 2
        first = Variant.objects.get(sku='CAM-001-V001')
        assert set(first.attribute_values.values_list('id', flat=True)) == {
            values['S'].id, values['Rojo'].id,
        }
        assert first.name == 'Camiseta básica - S / Rojo'
        assert first.stock == 5
        assert first.is_active

    def test_created_variants_are_not_regenerated(self, product, full_selection):
        preview = VariantMatrixService.preview_new_variants(product, full_selection)
        VariantMatrixService.create_variants(
            product, self._confirmed(preview), expected_version=preview.version
        )

        again = VariantMatrixService.preview_new_variants(product, full_selection)

        assert again.nothing_to_create
        assert again.duplicates == 6

    def test_stale_preview_is_rejected(self, product, talla, color, values, make_variant):
        preview = VariantMatrixService.preview_new_variants(
            product, {talla.id: [values['S'].id, values['M'].id], color.id: [values['Rojo'].id]}
        )
        # Someone else creates M/Rojo in the meantime
        make_variant('OTHER-1', [values['M'], values['Rojo']])

        with pytest.raises(StaleIndexError):
            VariantMatrixService.create_variants(
                product, self._confirmed(preview), expected_version=preview.version
            )

        assert product.variants.count() == 1

    def test_stale_preview_is_logged(self, product, talla, values, make_variant, caplog):
        preview = VariantMatrixService.preview_new_variants(product, {talla.id: [values['S'].id]})
        make_variant('OTHER-1', [values['L']])

        with caplog.at_level(logging.WARNING, logger='apps.catalog.services.matrix_service'):
            with pytest.raises(StaleIndexError):
                VariantMatrixService.create_variants(
                    product, self._confirmed(preview), expected_version=preview.version
                )

        assert 'stale variant index' in caplog.text

    def test_existing_combination_with_current_version(
        self, product, talla, color, values, make_variant
    ):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])
        version = VariantMatrixService.load_index(product).version
        candidate = Candidate(
            attributes={talla.id: values['S'].id, color.id: values['Rojo'].id},
            sku='CAM-001-V002',
            price=Decimal('9990.00'),
            stock=1,
        )

        with pytest.raises(CandidateValidationError) as excinfo:
            VariantMatrixService.create_variants(product, [candidate], expected_version=version)

        assert excinfo.value.sku == 'CAM-001-V002'
        assert 'combination already exists' in str(excinfo.value)
        assert product.variants.count() == 1

    def test_empty_batch(self, product):
        version = VariantMatrixService.load_index(product).version
        with pytest.raises(NoNewCombinationsError):
            VariantMatrixService.create_variants(product, [], expected_version=version)

    def test_invalid_price_creates_nothing(self, product, talla, values):
        preview = VariantMatrixService.preview_new_variants(
            product, {talla.id: [values['S'].id, values['M'].id]}
        )
        candidates = self._confirmed(preview)
        candidates[1].price = Decimal('0')

        with pytest.raises(CandidateValidationError) as excinfo:
            VariantMatrixService.create_variants(
                product, candidates, expected_version=preview.version
            )

        assert excinfo.value.sku == 'CAM-001-V002'
        assert Variant.objects.count() == 0
        assert VariantAttribute.objects.count() == 0

    def test_negative_stock(self, product, talla, values):
        preview = VariantMatrixService.preview_new_variants(product, {talla.id: [values['S'].id]})
        candidates = self._confirmed(preview, stock=-1)

        with pytest.raises(CandidateValidationError):
            VariantMatrixService.create_variants(
                product, candidates, expected_version=preview.version
            )

    def test_sku_taken_by_another_product(self, product, talla, values, make_variant):
        other = Product.objects.create(name='Pantalón', base_sku='PAN-001')
        make_variant('CAM-001-V001', [values['L']], owner=other)

        preview = VariantMatrixService.preview_new_variants(product, {talla.id: [values['S'].id]})

        with pytest.raises(CandidateValidationError) as excinfo:
            VariantMatrixService.create_variants(
                product, self._confirmed(preview), expected_version=preview.version
            )
        assert 'already exists' in str(excinfo.value)
        assert product.variants.count() == 0

    def test_repeated_sku_in_batch(self, product, talla, values):
        preview = VariantMatrixService.preview_new_variants(
            product, {talla.id: [values['S'].id, values['M'].id]}
        )
        candidates = self._confirmed(preview)
        candidates[1].sku = candidates[0].sku

        with pytest.raises(CandidateValidationError):
            VariantMatrixService.create_variants(
                product, candidates, expected_version=preview.version
            )

    def test_value_from_wrong_attribute(self, product, color, values):
        version = VariantMatrixService.load_index(product).version
        candidate = Candidate(
            attributes={color.id: values['S'].id},
            sku='CAM-001-V001',
            price=Decimal('9990.00'),
            stock=1,
        )

        with pytest.raises(CandidateValidationError):
            VariantMatrixService.create_variants(product, [candidate], expected_version=version)


class TestValidateAssignment:
    """Tests for checking values assigned to one variant by hand."""

    def test_rejects_another_variants_combination(self, product, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])
        variant = Variant(product=product, sku='CAM-001-V002', price=Decimal('9990.00'))

        with pytest.raises(CandidateValidationError) as excinfo:
            VariantMatrixService.validate_assignment(
                variant, [values['S'].id, values['Rojo'].id]
            )
        assert 'CAM-001-V001' in str(excinfo.value)

    def test_rejects_two_values_of_one_attribute(self, product, values):
        variant = Variant(product=product, sku='CAM-001-V001', price=Decimal('9990.00'))

        with pytest.raises(CandidateValidationError):
            VariantMatrixService.validate_assignment(
                variant, [values['S'].id, values['M'].id, values['Rojo'].id]
            )

    def test_variant_keeps_its_own_combination(self, product, values, make_variant):
        variant = make_variant('CAM-001-V001', [values['S'], values['Rojo']])
        VariantMatrixService.validate_assignment(variant, [values['S'].id, values['Rojo'].id])

    def test_new_combination_is_accepted(self, product, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])
        variant = Variant(product=product, sku='CAM-001-V002', price=Decimal('9990.00'))
        VariantMatrixService.validate_assignment(variant, [values['M'].id, values['Rojo'].id])

    def test_same_combination_on_another_product_is_accepted(self, product, values, make_variant):
        other = Product.objects.create(name='Pantalón', base_sku='PAN-001')
        make_variant('PAN-001-V001', [values['S'], values['Rojo']], owner=other)
        variant = Variant(product=product, sku='CAM-001-V001', price=Decimal('9990.00'))
        VariantMatrixService.validate_assignment(variant, [values['S'].id, values['Rojo'].id])


class TestPicker:
    """Tests for the order entry picker."""

    @pytest.fixture
    def variants(self, values, make_variant):
        return {
            'S/Rojo': make_variant('CAM-001-V001', [values['S'], values['Rojo']], stock=5),
            'M/Rojo': make_variant('CAM-001-V002', [values['M'], values['Rojo']], stock=0),
            'M/Azul': make_variant('CAM-001-V003', [values['M'], values['Azul']], stock=3),
            'L/Azul': make_variant('CAM-001-V004', [values['L'], values['Azul']], stock=4, is_active=False),
        }

    def _options(self, result, attribute):
        for item in result.attributes:
            if item['id'] == attribute.id:
                return [option['value'] for option in item['options']]
        return None

    def test_order_pool_excludes_inactive_and_out_of_stock(self, product, variants):
        pool = VariantMatrixService.candidate_pool(product, SCOPE_ORDER)
        assert [v.sku for v in pool] == ['CAM-001-V001', 'CAM-001-V003']
        assert len(VariantMatrixService.candidate_pool(product, SCOPE_CATALOG)) == 4

    def test_options_without_selection(self, product, talla, color, variants):
        result = VariantMatrixService.picker(product, {})

        assert [item['slug'] for item in result.attributes] == ['talla', 'color']
        assert result.required == sorted([talla.id, color.id])
        assert self._options(result, talla) == ['S', 'M']
        assert self._options(result, color) == ['Rojo', 'Azul']
        assert not result.complete

    def test_options_narrow_with_selection(self, product, talla, color, values, variants):
        result = VariantMatrixService.picker(product, {talla.id: values['S'].id})

        assert self._options(result, color) == ['Rojo']
        assert self._options(result, talla) == ['S', 'M']
        selected = [o for o in result.attributes[0]['options'] if o['is_selected']]
        assert [o['value'] for o in selected] == ['S']

    def test_resolves_complete_selection(self, product, talla, color, values, variants):
        result = VariantMatrixService.picker(
            product, {talla.id: values['M'].id, color.id: values['Azul'].id}
        )
        assert result.complete
        assert result.variant == variants['M/Azul']
        assert not result.ambiguous

    def test_out_of_stock_variant_is_not_orderable(self, product, talla, color, values, variants):
        selection = {talla.id: values['M'].id, color.id: values['Rojo'].id}

        assert VariantMatrixService.picker(product, selection).variant is None
        assert (
            VariantMatrixService.picker(product, selection, scope=SCOPE_CATALOG).variant
            == variants['M/Rojo']
        )

    def test_ambiguous_selection(self, product, talla, color, values, make_variant, caplog):
        first = make_variant('CAM-001-V001', [values['S'], values['Rojo']])
        make_variant('CAM-001-V009', [values['S'], values['Rojo']])

        with caplog.at_level(logging.WARNING, logger='apps.catalog.services'):
            result = VariantMatrixService.picker(
                product, {talla.id: values['S'].id, color.id: values['Rojo'].id}
            )

        assert result.variant == first
        assert result.ambiguous
        assert 'CAM-001-V009' in caplog.text

    def test_parse_selection(self, talla, color, values):
        selection, unknown = VariantMatrixService.parse_selection(
            {'talla': 'm', 'color': ' ROJO ', 'page': '2'}
        )
        assert selection == {talla.id: values['M'].id, color.id: values['Rojo'].id}
        assert unknown == {}

    def test_parse_selection_unknown_value(self, talla):
        selection, unknown = VariantMatrixService.parse_selection({'talla': 'XL'})
        assert selection == {}
        assert unknown == {'talla': 'XL'}


class TestIntegrityReport:
    """Tests for the malformed variant report."""

    def test_reports_without_modifying(self, product, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])
        make_variant('CAM-001-V002', [values['S'], values['M'], values['Rojo']])
        make_variant('CAM-001-V003', [values['Azul']])

        issues = VariantMatrixService.integrity_report(product)

        assert [(i['sku'], i['code'], i['attribute']) for i in issues] == [
            ('CAM-001-V002', 'duplicate_attribute', 'talla'),
            ('CAM-001-V003', 'missing_attribute', 'talla'),
        ]
        assert VariantAttribute.objects.count() == 6

    def test_clean_product(self, product, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])
        assert VariantMatrixService.integrity_report(product) == []
