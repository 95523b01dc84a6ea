from django.contrib import admin, messages
from django.core.exceptions import ValidationError
from django.forms.models import BaseInlineFormSet
from django.utils.html import format_html
from import_export import resources, fields
from import_export.admin import ImportExportModelAdmin
from import_export.widgets import ForeignKeyWidget
from simple_history.admin import SimpleHistoryAdmin

from .models import (
    Product,
    Attribute,
    AttributeValue,
    Variant,
    VariantAttribute,
)
from .services import VariantMatrixService, CandidateValidationError


# =============================================================================
# Import/Export Resources
# =============================================================================

class VariantResource(resources.ModelResource):
    """Resource for importing/exporting variants."""

    product = fields.Field(
        column_name='product',
        attribute='product',
        widget=ForeignKeyWidget(Product, 'base_sku')
    )
    attributes = fields.Field(
        column_name='attributes',
        readonly=True
    )

    class Meta:
        model = Variant
        import_id_fields = ['sku']
        fields = (
            'sku', 'product', 'name', 'price', 'stock', 'is_active', 'attributes'
        )
        export_order = fields

    def dehydrate_attributes(self, variant):
        rows = variant.variantattribute_set.select_related(
            'attribute_value__attribute'
        ).order_by('attribute_value__attribute__display_order', 'attribute_value__attribute__name')
        return ' / '.join(
            f'{row.attribute_value.attribute.name}: {row.attribute_value.value}'
            for row in rows
        )


class AttributeValueResource(resources.ModelResource):
    """Resource for importing/exporting attribute values."""

    attribute = fields.Field(
        column_name='attribute',
        attribute='attribute',
        widget=ForeignKeyWidget(Attribute, 'slug')
    )

    class Meta:
        model = AttributeValue
        import_id_fields = ['attribute', 'value']
        fields = ('attribute', 'value', 'color_hex', 'display_order')


# =============================================================================
# Inlines
# =============================================================================

class AttributeValueInline(admin.TabularInline):
    model = AttributeValue
    extra = 1
    fields = ['value', 'color_hex', 'display_order']


class VariantAttributeFormSet(BaseInlineFormSet):
    """Rejects value sets that repeat an attribute or another variant's combination."""

    def clean(self):
        super().clean()
        if any(self.errors):
            return
        variant = self.instance
        if not variant.product_id:
            # Parent form is invalid; its own errors are shown
            return

        value_ids = [
            form.cleaned_data['attribute_value'].id
            for form in self.forms
            if form.cleaned_data
            and not form.cleaned_data.get('DELETE')
            and form.cleaned_data.get('attribute_value')
        ]
        try:
            VariantMatrixService.validate_assignment(variant, value_ids)
        except CandidateValidationError as e:
            raise ValidationError(str(e))


class VariantAttributeInline(admin.TabularInline):
    model = VariantAttribute
    formset = VariantAttributeFormSet
    extra = 1
    autocomplete_fields = ['attribute_value']


class VariantInline(admin.TabularInline):
    model = Variant
    extra = 0
    fields = ['sku', 'name', 'price', 'stock', 'is_active']
    readonly_fields = ['sku', 'name']
    show_change_link = True
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


# =============================================================================
# Model Admins
# =============================================================================

@admin.register(Product)
class ProductAdmin(SimpleHistoryAdmin):
    list_display = ['name', 'base_sku', 'variant_count', 'active_variant_count', 'is_active', 'created_at']
    list_filter = ['is_active', 'created_at']
    search_fields = ['name', 'slug', 'base_sku', 'description']
    prepopulated_fields = {'slug': ('name',)}
    readonly_fields = ['variant_count', 'active_variant_count', 'created_at', 'updated_at']
    inlines = [VariantInline]

    fieldsets = (
        (None, {
            'fields': ('name', 'slug', 'base_sku', 'description', 'base_price', 'is_active')
        }),
        ('Información', {
            'fields': ('variant_count', 'active_variant_count', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['check_variant_integrity']

    @admin.action(description='Revisar integridad de variantes')
    def check_variant_integrity(self, request, queryset):
        for product in queryset:
            issues = VariantMatrixService.integrity_report(product)
            if not issues:
                self.message_user(request, f'{product}: sin problemas.')
                continue
            skus = sorted({issue['sku'] for issue in issues})
            self.message_user(
                request,
                f'{product}: {len(issues)} problema(s) en {", ".join(skus)}.',
                level=messages.WARNING,
            )


@admin.register(Attribute)
class AttributeAdmin(admin.ModelAdmin):
    list_display = ['name', 'slug', 'input_type', 'value_count', 'display_order']
    list_editable = ['display_order']
    search_fields = ['name', 'slug']
    prepopulated_fields = {'slug': ('name',)}
    inlines = [AttributeValueInline]

    def value_count(self, obj):
        return obj.values.count()
    value_count.short_description = 'Valores'


@admin.register(AttributeValue)
class AttributeValueAdmin(ImportExportModelAdmin):
    resource_class = AttributeValueResource
    list_display = ['value', 'attribute', 'color_swatch', 'display_order']
    list_filter = ['attribute']
    list_editable = ['display_order']
    search_fields = ['value', 'attribute__name']
    autocomplete_fields = ['attribute']

    def color_swatch(self, obj):
        if obj.color_hex:
            return format_html(
                '<div style="width: 20px; height: 20px; background-color: {}; '
                'border: 1px solid #ccc; border-radius: 3px;"></div>',
                obj.color_hex
            )
        return '-'
    color_swatch.short_description = 'Color'


@admin.register(Variant)
class VariantAdmin(ImportExportModelAdmin, SimpleHistoryAdmin):
    resource_class = VariantResource
    list_display = ['sku', 'name', 'product', 'price', 'stock', 'stock_status', 'is_active']
    list_filter = ['product', 'is_active']
    list_editable = ['price', 'stock', 'is_active']
    search_fields = ['sku', 'name', 'product__name']
    autocomplete_fields = ['product']
    readonly_fields = ['created_at', 'updated_at', 'is_in_stock']
    inlines = [VariantAttributeInline]
    list_per_page = 50

    fieldsets = (
        (None, {
            'fields': ('product', 'sku', 'name', 'is_active')
        }),
        ('Precio y existencias', {
            'fields': ('price', 'stock', 'is_in_stock')
        }),
        ('Información', {
            'fields': ('created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    actions = ['activate_variants', 'deactivate_variants', 'mark_out_of_stock']

    def stock_status(self, obj):
        if obj.stock <= 0:
            return format_html('<span style="color: red;">{}</span>', 'Agotado')
        return format_html('<span style="color: green;">{}</span>', 'Disponible')
    stock_status.short_description = 'Estado'

    @admin.action(description='Activar variantes seleccionadas')
    def activate_variants(self, request, queryset):
        count = queryset.update(is_active=True)
        self.message_user(request, f'{count} variantes activadas.')

    @admin.action(description='Desactivar variantes seleccionadas')
    def deactivate_variants(self, request, queryset):
        count = queryset.update(is_active=False)
        self.message_user(request, f'{count} variantes desactivadas.')

    @admin.action(description='Marcar como agotadas')
    def mark_out_of_stock(self, request, queryset):
        count = queryset.update(stock=0)
        self.message_user(request, f'{count} variantes actualizadas.')


# =============================================================================
# Admin Site Configuration
# =============================================================================

admin.site.site_header = 'Tienda Admin'
admin.site.site_title = 'Tienda'
admin.site.index_title = 'Panel de Administración'
