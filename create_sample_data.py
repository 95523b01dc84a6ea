"""
Script to create sample data for trying the variant matrix and picker.
Run with: python manage.py shell < create_sample_data.py
"""
from decimal import Decimal

from apps.catalog.models import (
    Product,
    Variant,
    Attribute,
    AttributeValue,
)
from apps.catalog.services import VariantMatrixService

# Create Attributes
print("Creating attributes...")

talla, _ = Attribute.objects.get_or_create(
    slug='talla',
    defaults={'name': 'Talla', 'input_type': 'radio', 'display_order': 1}
)

color, _ = Attribute.objects.get_or_create(
    slug='color',
    defaults={'name': 'Color', 'input_type': 'select', 'display_order': 2}
)

material, _ = Attribute.objects.get_or_create(
    slug='material',
    defaults={'name': 'Material', 'input_type': 'select', 'display_order': 3}
)

# Create Attribute Values
print("Creating attribute values...")

for i, t in enumerate(['S', 'M', 'L', 'XL']):
    AttributeValue.objects.get_or_create(
        attribute=talla,
        value=t,
        defaults={'display_order': i}
    )

colors = ['Negro', 'Blanco', 'Azul', 'Rojo']
color_hexes = ['#000000', '#FFFFFF', '#0000FF', '#FF0000']
for i, (c, h) in enumerate(zip(colors, color_hexes)):
    AttributeValue.objects.get_or_create(
        attribute=color,
        value=c,
        defaults={'color_hex': h, 'display_order': i}
    )

for i, m in enumerate(['Algodón', 'Poliéster']):
    AttributeValue.objects.get_or_create(
        attribute=material,
        value=m,
        defaults={'display_order': i}
    )

# Create Products
print("Creating products...")

camiseta, _ = Product.objects.get_or_create(
    base_sku='CAM-001',
    defaults={
        'name': 'Camiseta básica',
        'description': 'Camiseta de algodón',
        'base_price': Decimal('7990.00'),
    }
)

sudadera, _ = Product.objects.get_or_create(
    base_sku='SUD-001',
    defaults={
        'name': 'Sudadera con capucha',
        'description': 'Sudadera unisex',
        'base_price': Decimal('19990.00'),
    }
)


def values_of(attribute, names):
    return list(
        attribute.values.filter(value__in=names).order_by('display_order')
        .values_list('id', flat=True)
    )


def create_matrix(product, selection, stock):
    preview = VariantMatrixService.preview_new_variants(product, selection)
    if preview.nothing_to_create:
        print(f"   {product.base_sku}: nothing new")
        return
    for candidate in preview.candidates:
        candidate.stock = stock
    created = VariantMatrixService.create_variants(
        product, preview.candidates, expected_version=preview.version
    )
    print(f"   {product.base_sku}: {len(created)} variants")


# Create variants through the matrix, like the wizard does
print("Creating variants...")

create_matrix(camiseta, {
    talla.id: values_of(talla, ['S', 'M', 'L']),
    color.id: values_of(color, ['Negro', 'Blanco', 'Azul']),
}, stock=10)

create_matrix(sudadera, {
    talla.id: values_of(talla, ['M', 'L', 'XL']),
    color.id: values_of(color, ['Negro', 'Rojo']),
    material.id: values_of(material, ['Algodón', 'Poliéster']),
}, stock=4)

# Leave a couple out of stock so the picker has something to hide
Variant.objects.filter(sku__in=['CAM-001-V002', 'SUD-001-V005']).update(stock=0)

print("\nSample data created successfully!")
print(f"   - {Product.objects.count()} products")
print(f"   - {Variant.objects.count()} variants")
print(f"   - {Attribute.objects.count()} attributes")
print(f"   - {AttributeValue.objects.count()} attribute values")
print("\nTry the picker at: http://localhost:8000/api/products/camiseta-basica/picker/?talla=M")
