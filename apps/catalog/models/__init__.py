"""
Catalog models for the store back-office.

Model Hierarchy:
- Product: Parent product (e.g., "Camiseta básica")
- Attribute: Axis of variation (Talla, Color)
- AttributeValue: Allowed values of each attribute (M, Rojo)
- Variant: Individual SKU with price and stock
- VariantAttribute: Assignment of attribute values to a variant
"""

from .product import Product
from .attribute import Attribute, AttributeValue
from .variant import Variant, VariantAttribute

__all__ = [
    'Product',
    'Attribute',
    'AttributeValue',
    'Variant',
    'VariantAttribute',
]
