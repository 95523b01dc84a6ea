from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from apps.catalog.models import (
    Product,
    Attribute,
    AttributeValue,
    Variant,
    VariantAttribute,
)


@pytest.fixture
def api_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture
def talla(db):
    attribute = Attribute.objects.create(name='Talla', display_order=1)
    for i, value in enumerate(['S', 'M', 'L']):
        AttributeValue.objects.create(attribute=attribute, value=value, display_order=i)
    return attribute


@pytest.fixture
def color(db):
    attribute = Attribute.objects.create(name='Color', display_order=2)
    AttributeValue.objects.create(attribute=attribute, value='Rojo', color_hex='#FF0000', display_order=0)
    AttributeValue.objects.create(attribute=attribute, value='Azul', color_hex='#0000FF', display_order=1)
    return attribute


@pytest.fixture
def product(db):
    return Product.objects.create(
        name='Camiseta básica',
        base_sku='CAM-001',
        base_price=Decimal('9990.00'),
    )


@pytest.fixture
def make_variant(product):
    """Create a variant carrying the given AttributeValue instances."""

    def _make(sku, values, stock=5, is_active=True, price=Decimal('9990.00'), owner=None):
        variant = Variant.objects.create(
            product=owner or product,
            sku=sku,
            price=price,
            stock=stock,
            is_active=is_active,
        )
        for value in values:
            VariantAttribute.objects.create(variant=variant, attribute_value=value)
        return variant

    return _make
