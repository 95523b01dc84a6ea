from rest_framework import serializers
from apps.catalog.models import (
    Product,
    Attribute,
    AttributeValue,
    Variant,
    VariantAttribute,
)
from apps.catalog.services.variant_matrix import Candidate


# =============================================================================
# Attribute Serializers
# =============================================================================

class AttributeValueSerializer(serializers.ModelSerializer):
    attribute_name = serializers.CharField(
        source='attribute.name', read_only=True
    )
    attribute_slug = serializers.CharField(
        source='attribute.slug', read_only=True
    )

    class Meta:
        model = AttributeValue
        fields = [
            'id', 'attribute', 'attribute_name', 'attribute_slug',
            'value', 'color_hex', 'display_order'
        ]


class AttributeSerializer(serializers.ModelSerializer):
    values = AttributeValueSerializer(many=True, read_only=True)
    slug = serializers.SlugField(required=False)

    class Meta:
        model = Attribute
        fields = ['id', 'name', 'slug', 'input_type', 'display_order', 'values']


# =============================================================================
# Variant Serializers
# =============================================================================

class VariantAttributeSerializer(serializers.ModelSerializer):
    attribute = serializers.CharField(
        source='attribute_value.attribute.name', read_only=True
    )
    attribute_slug = serializers.CharField(
        source='attribute_value.attribute.slug', read_only=True
    )
    value = serializers.CharField(
        source='attribute_value.value', read_only=True
    )
    color_hex = serializers.CharField(
        source='attribute_value.color_hex', read_only=True
    )

    class Meta:
        model = VariantAttribute
        fields = ['id', 'attribute_value', 'attribute', 'attribute_slug', 'value', 'color_hex']


class VariantSerializer(serializers.ModelSerializer):
    """Base variant serializer."""
    class Meta:
        model = Variant
        fields = [
            'id', 'product', 'sku', 'name', 'price', 'stock',
            'is_active', 'created_at', 'updated_at'
        ]


class VariantListSerializer(serializers.ModelSerializer):
    """Lightweight serializer for variant lists."""
    product_name = serializers.CharField(source='product.name', read_only=True)
    attributes = serializers.SerializerMethodField()
    is_in_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Variant
        fields = [
            'id', 'sku', 'name', 'product', 'product_name',
            'price', 'stock', 'is_active', 'is_in_stock', 'attributes'
        ]

    def get_attributes(self, obj):
        return obj.get_values_dict()


class VariantDetailSerializer(serializers.ModelSerializer):
    """Full variant serializer with its attribute values."""
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_slug = serializers.CharField(source='product.slug', read_only=True)
    variant_attributes = VariantAttributeSerializer(
        source='variantattribute_set', many=True, read_only=True
    )
    is_in_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Variant
        fields = [
            'id', 'product', 'product_name', 'product_slug',
            'sku', 'name', 'price', 'stock', 'is_active', 'is_in_stock',
            'variant_attributes', 'created_at', 'updated_at'
        ]


# =============================================================================
# Product Serializers
# =============================================================================

class ProductSerializer(serializers.ModelSerializer):
    """Base product serializer."""
    slug = serializers.SlugField(required=False)

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'base_sku', 'description', 'base_price',
            'is_active', 'created_at', 'updated_at'
        ]


class ProductListSerializer(serializers.ModelSerializer):
    """Product list with counts."""
    variant_count = serializers.IntegerField(read_only=True)
    active_variant_count = serializers.IntegerField(read_only=True)
    min_price = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'base_sku', 'is_active',
            'variant_count', 'active_variant_count', 'min_price'
        ]

    def get_min_price(self, obj):
        variant = obj.variants.filter(is_active=True).order_by('price').first()
        return str(variant.price) if variant else None


class ProductDetailSerializer(serializers.ModelSerializer):
    """Full product detail with variants and attributes."""
    variants = VariantListSerializer(many=True, read_only=True)
    attributes = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            'id', 'name', 'slug', 'base_sku', 'description', 'base_price',
            'is_active', 'variants', 'attributes', 'created_at', 'updated_at'
        ]

    def get_attributes(self, obj):
        return AttributeSerializer(obj.get_attributes(), many=True).data


# =============================================================================
# Variant Matrix Serializers
# =============================================================================

class AttributeSelectionSerializer(serializers.Serializer):
    """One attribute toggled on in the wizard, with its chosen values in order."""
    attribute = serializers.PrimaryKeyRelatedField(queryset=Attribute.objects.all())
    values = serializers.PrimaryKeyRelatedField(
        queryset=AttributeValue.objects.all(), many=True, allow_empty=True
    )

    def validate(self, attrs):
        attribute = attrs['attribute']
        for value in attrs['values']:
            if value.attribute_id != attribute.id:
                raise serializers.ValidationError(
                    f"Value {value.id} does not belong to attribute '{attribute.slug}'"
                )
        return attrs


class MatrixPreviewRequestSerializer(serializers.Serializer):
    selection = AttributeSelectionSerializer(many=True)
    base_price = serializers.DecimalField(
        max_digits=10, decimal_places=2, required=False, allow_null=True
    )

    def validate_selection(self, value):
        seen = set()
        for item in value:
            if item['attribute'].id in seen:
                raise serializers.ValidationError(
                    f"Attribute '{item['attribute'].slug}' is listed twice"
                )
            seen.add(item['attribute'].id)
        return value

    def get_selection(self):
        """Insertion-ordered {attribute_id: [value_id, ...]}."""
        return {
            item['attribute'].id: [v.id for v in item['values']]
            for item in self.validated_data['selection']
        }


class CandidateSerializer(serializers.Serializer):
    """Candidate as shown to (and edited by) the operator."""
    sku = serializers.CharField(max_length=100)
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    stock = serializers.IntegerField()
    values = serializers.PrimaryKeyRelatedField(
        queryset=AttributeValue.objects.select_related('attribute'), many=True
    )

    def validate_values(self, values):
        attributes = {}
        for value in values:
            if value.attribute_id in attributes:
                raise serializers.ValidationError(
                    f"More than one value for attribute '{value.attribute.slug}'"
                )
            attributes[value.attribute_id] = value.id
        return values

    def to_representation(self, candidate):
        return {
            'sku': candidate.sku,
            'price': str(candidate.price),
            'stock': candidate.stock,
            'values': list(candidate.attributes.values()),
            'attributes': {str(k): v for k, v in candidate.attributes.items()},
        }

    def to_candidate(self, data):
        return Candidate(
            attributes={value.attribute_id: value.id for value in data['values']},
            sku=data['sku'],
            price=data['price'],
            stock=data['stock'],
        )


class MatrixCommitRequestSerializer(serializers.Serializer):
    version = serializers.CharField()
    candidates = CandidateSerializer(many=True, allow_empty=True)

    def get_candidates(self):
        field = self.fields['candidates'].child
        return [field.to_candidate(item) for item in self.validated_data['candidates']]


class StockUpdateSerializer(serializers.Serializer):
    id = serializers.PrimaryKeyRelatedField(queryset=Variant.objects.all())
    stock = serializers.IntegerField(min_value=0)


class BulkStockUpdateSerializer(serializers.Serializer):
    updates = StockUpdateSerializer(many=True, allow_empty=False)
