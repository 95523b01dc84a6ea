"""Tests for the admin import/export resources and actions."""

from decimal import Decimal

import pytest
import tablib

from apps.catalog.admin import AttributeValueResource, VariantResource
from apps.catalog.models import Variant

pytestmark = pytest.mark.django_db


@pytest.fixture
def values(talla, color):
    result = {v.value: v for v in talla.values.all()}
    result.update({v.value: v for v in color.values.all()})
    return result


class TestVariantResource:
    """Tests for variant import/export."""

    def test_export_row(self, product, values, make_variant):
        make_variant('CAM-001-V001', [values['Rojo'], values['S']], stock=7)

        dataset = VariantResource().export()
        row = dataset.dict[0]

        assert row['sku'] == 'CAM-001-V001'
        assert row['product'] == 'CAM-001'
        assert str(row['stock']) == '7'
        assert row['attributes'] == 'Talla: S / Color: Rojo'

    def test_import_updates_existing_variant(self, product, values, make_variant):
        make_variant('CAM-001-V001', [values['S']], stock=0)
        dataset = tablib.Dataset(
            ['CAM-001-V001', 'CAM-001', 'Camiseta básica - S', '10500.00', 25, 1],
            headers=['sku', 'product', 'name', 'price', 'stock', 'is_active'],
        )

        result = VariantResource().import_data(dataset, dry_run=False)

        assert not result.has_errors()
        variant = Variant.objects.get(sku='CAM-001-V001')
        assert variant.stock == 25
        assert variant.price == Decimal('10500.00')
        assert variant.attribute_values.count() == 1


class TestAttributeValueResource:
    """Tests for attribute value export."""

    def test_export_uses_attribute_slug(self, talla):
        dataset = AttributeValueResource().export()
        rows = [r for r in dataset.dict if r['attribute'] == 'talla']
        assert [r['value'] for r in rows] == ['S', 'M', 'L']


class TestProductAdminActions:
    """Tests for the integrity check admin action."""

    def _run_action(self, admin_client, product):
        return admin_client.post(
            '/admin/catalog/product/',
            {'action': 'check_variant_integrity', '_selected_action': [product.pk]},
            follow=True,
        )

    def test_reports_problems(self, admin_client, product, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])
        make_variant('CAM-001-V002', [values['Azul']])

        response = self._run_action(admin_client, product)

        assert response.status_code == 200
        assert '1 problema(s) en CAM-001-V002' in response.content.decode()

    def test_clean_product(self, admin_client, product, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])

        response = self._run_action(admin_client, product)

        assert 'sin problemas' in response.content.decode()


class TestVariantAdminValues:
    """Values assigned in the variant admin go through the matrix checks."""

    def _add_variant(self, admin_client, product, sku, value_ids):
        data = {
            'product': product.pk,
            'sku': sku,
            'name': '',
            'is_active': 'on',
            'price': '9990.00',
            'stock': '1',
            'variantattribute_set-TOTAL_FORMS': str(len(value_ids)),
            'variantattribute_set-INITIAL_FORMS': '0',
            'variantattribute_set-MIN_NUM_FORMS': '0',
            'variantattribute_set-MAX_NUM_FORMS': '1000',
        }
        for i, value_id in enumerate(value_ids):
            data[f'variantattribute_set-{i}-attribute_value'] = str(value_id)
        return admin_client.post('/admin/catalog/variant/add/', data)

    def test_existing_combination_is_rejected(self, admin_client, product, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])

        response = self._add_variant(
            admin_client, product, 'CAM-001-V002', [values['S'].id, values['Rojo'].id]
        )

        assert response.status_code == 200
        assert 'combination already exists (CAM-001-V001)' in response.content.decode()
        assert not Variant.objects.filter(sku='CAM-001-V002').exists()

    def test_two_values_of_one_attribute_are_rejected(self, admin_client, product, values):
        response = self._add_variant(
            admin_client, product, 'CAM-001-V001', [values['S'].id, values['M'].id]
        )

        assert response.status_code == 200
        assert not Variant.objects.exists()

    def test_new_combination_is_saved(self, admin_client, product, values, make_variant):
        make_variant('CAM-001-V001', [values['S'], values['Rojo']])

        response = self._add_variant(
            admin_client, product, 'CAM-001-V002', [values['M'].id, values['Rojo'].id]
        )

        assert response.status_code == 302
        variant = Variant.objects.get(sku='CAM-001-V002')
        assert set(variant.attribute_values.values_list('id', flat=True)) == {
            values['M'].id, values['Rojo'].id,
        }
