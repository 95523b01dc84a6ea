from django.db import models
from django.core.validators import RegexValidator
from django.utils.text import slugify


class Attribute(models.Model):
    """
    Axis of variation shared by all products.
    Examples: Talla, Color, Material.
    """
    INPUT_TYPE_CHOICES = [
        ('select', 'Lista'),
        ('radio', 'Botones'),
        ('text', 'Texto'),
    ]

    name = models.CharField(
        max_length=100,
        verbose_name='Nombre'
    )
    slug = models.SlugField(
        max_length=100,
        unique=True,
        verbose_name='Slug'
    )
    input_type = models.CharField(
        max_length=20,
        choices=INPUT_TYPE_CHOICES,
        default='select',
        verbose_name='Tipo de control'
    )
    display_order = models.PositiveIntegerField(
        default=0,
        verbose_name='Orden de visualización'
    )

    class Meta:
        ordering = ['display_order', 'name']
        verbose_name = 'Atributo'
        verbose_name_plural = 'Atributos'

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)


class AttributeValue(models.Model):
    """
    One allowed value of an attribute (Talla = M, Color = Rojo).
    Variants are described by the set of values assigned to them.
    """
    hex_color_validator = RegexValidator(
        regex=r'^#[0-9A-Fa-f]{6}$',
        message='El color debe tener formato hexadecimal (#RRGGBB)'
    )

    attribute = models.ForeignKey(
        Attribute,
        on_delete=models.CASCADE,
        related_name='values',
        verbose_name='Atributo'
    )
    value = models.CharField(
        max_length=100,
        verbose_name='Valor'
    )
    color_hex = models.CharField(
        max_length=7,
        blank=True,
        validators=[hex_color_validator],
        verbose_name='Color hex',
        help_text='Para muestras de color (#RRGGBB)'
    )
    display_order = models.PositiveIntegerField(
        default=0,
        verbose_name='Orden de visualización'
    )

    class Meta:
        ordering = ['attribute__display_order', 'display_order', 'value']
        unique_together = ['attribute', 'value']
        verbose_name = 'Valor de atributo'
        verbose_name_plural = 'Valores de atributo'

    def __str__(self):
        return f"{self.attribute.name}: {self.value}"
