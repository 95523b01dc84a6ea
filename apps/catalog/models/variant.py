from django.db import models
from django.core.validators import MinValueValidator
from decimal import Decimal
from simple_history.models import HistoricalRecords


class Variant(models.Model):
    """
    Sellable SKU of a product, described by one attribute value per attribute.
    """
    product = models.ForeignKey(
        'catalog.Product',
        on_delete=models.CASCADE,
        related_name='variants',
        verbose_name='Producto'
    )
    sku = models.CharField(
        max_length=100,
        unique=True,
        verbose_name='SKU'
    )
    name = models.CharField(
        max_length=255,
        blank=True,
        verbose_name='Nombre',
        help_text='Se genera a partir del producto y sus valores si queda vacío'
    )
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Precio'
    )
    stock = models.IntegerField(
        default=0,
        verbose_name='Existencias'
    )
    is_active = models.BooleanField(
        default=True,
        verbose_name='Activo'
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name='Creado'
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name='Actualizado'
    )

    attribute_values = models.ManyToManyField(
        'catalog.AttributeValue',
        through='VariantAttribute',
        related_name='variants',
        verbose_name='Valores de atributo'
    )

    # History tracking
    history = HistoricalRecords()

    class Meta:
        ordering = ['product', 'sku']
        verbose_name = 'Variante'
        verbose_name_plural = 'Variantes'

    def __str__(self):
        return self.name or self.sku

    def generate_name(self):
        """Product name followed by the variant's values, e.g. "Camiseta - M / Rojo"."""
        if not self.pk:
            return self.sku

        rows = self.variantattribute_set.select_related(
            'attribute_value__attribute'
        ).order_by(
            'attribute_value__attribute__display_order',
            'attribute_value__attribute__name',
        )
        values = [row.attribute_value.value for row in rows]
        if not values:
            return f"{self.product.name} - {self.sku}"
        return f"{self.product.name} - {' / '.join(values)}"

    def get_values_dict(self):
        """Return dict of {attribute_slug: value}"""
        return {
            row.attribute_value.attribute.slug: row.attribute_value.value
            for row in self.variantattribute_set.select_related(
                'attribute_value__attribute'
            )
        }

    @property
    def is_in_stock(self):
        return self.stock > 0


class VariantAttribute(models.Model):
    """
    Join row between a Variant and one of its AttributeValues.

    One value per attribute is expected but not enforced here; malformed
    variants are reported by the integrity check instead of being repaired.
    """
    variant = models.ForeignKey(
        Variant,
        on_delete=models.CASCADE,
        verbose_name='Variante'
    )
    attribute_value = models.ForeignKey(
        'catalog.AttributeValue',
        on_delete=models.PROTECT,
        verbose_name='Valor de atributo'
    )

    class Meta:
        unique_together = ['variant', 'attribute_value']
        verbose_name = 'Atributo de variante'
        verbose_name_plural = 'Atributos de variante'

    def __str__(self):
        return f"{self.variant.sku} - {self.attribute_value}"
