from decimal import Decimal

from django.db import models
from django.core.validators import MinValueValidator
from django.utils.text import slugify
from simple_history.models import HistoricalRecords


class Product(models.Model):
    """
    Parent product (e.g. "Camiseta básica").
    Sellable SKUs live in its variants; base_sku prefixes their generated SKUs.
    """
    name = models.CharField(
        max_length=255,
        verbose_name='Nombre'
    )
    slug = models.SlugField(
        max_length=255,
        unique=True,
        verbose_name='Slug'
    )
    base_sku = models.CharField(
        max_length=100,
        unique=True,
        verbose_name='SKU base',
        help_text='Prefijo de los SKU generados para las variantes ({base}-V001)'
    )
    description = models.TextField(
        blank=True,
        verbose_name='Descripción'
    )
    base_price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0.00'))],
        verbose_name='Precio base',
        help_text='Precio sugerido para las variantes nuevas'
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

    # History tracking
    history = HistoricalRecords()

    class Meta:
        ordering = ['name']
        verbose_name = 'Producto'
        verbose_name_plural = 'Productos'

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)

    @property
    def variant_count(self):
        return self.variants.count()

    @property
    def active_variant_count(self):
        return self.variants.filter(is_active=True).count()

    def get_attributes(self):
        """Get all attributes used by this product's variants."""
        from .attribute import Attribute
        return Attribute.objects.filter(
            values__variantattribute__variant__product=self
        ).distinct().order_by('display_order', 'name')
