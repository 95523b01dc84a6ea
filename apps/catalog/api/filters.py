from django_filters import rest_framework as filters
from apps.catalog.models import Variant


class VariantFilter(filters.FilterSet):
    """Filter for variants with support for attribute values."""

    product = filters.CharFilter(field_name='product__slug')
    product_id = filters.NumberFilter(field_name='product__id')

    # Price filters
    min_price = filters.NumberFilter(field_name='price', lookup_expr='gte')
    max_price = filters.NumberFilter(field_name='price', lookup_expr='lte')

    # Stock filters
    in_stock = filters.BooleanFilter(method='filter_in_stock')

    # Attribute filters
    attribute = filters.CharFilter(method='filter_by_attribute')

    class Meta:
        model = Variant
        fields = ['product', 'product_id', 'is_active', 'sku']

    def filter_in_stock(self, queryset, name, value):
        if value is True:
            return queryset.filter(stock__gt=0)
        elif value is False:
            return queryset.filter(stock__lte=0)
        return queryset

    def filter_by_attribute(self, queryset, name, value):
        """
        Filter by attribute in format: attribute_slug:value
        Example: ?attribute=talla:M
        """
        if ':' not in value:
            return queryset

        attr_slug, attr_value = value.split(':', 1)
        return queryset.filter(
            variantattribute__attribute_value__attribute__slug=attr_slug,
            variantattribute__attribute_value__value__iexact=attr_value
        ).distinct()
