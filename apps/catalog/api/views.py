from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from django.db import transaction
from django.db.models import Prefetch

from apps.catalog.models import (
    Product,
    Attribute,
    AttributeValue,
    Variant,
)
from apps.catalog.services import (
    VariantMatrixService,
    SCOPE_ORDER,
    SCOPE_CATALOG,
    EmptySelectionError,
    TooManyCombinationsError,
    LockedSelectionError,
    StaleIndexError,
    CandidateValidationError,
    NoNewCombinationsError,
)
from .serializers import (
    ProductSerializer,
    ProductListSerializer,
    ProductDetailSerializer,
    AttributeSerializer,
    AttributeValueSerializer,
    VariantSerializer,
    VariantListSerializer,
    VariantDetailSerializer,
    CandidateSerializer,
    MatrixPreviewRequestSerializer,
    MatrixCommitRequestSerializer,
    BulkStockUpdateSerializer,
)
from .filters import VariantFilter


def _variant_summary(variant):
    return {
        'id': variant.id,
        'sku': variant.sku,
        'name': variant.name,
        'price': str(variant.price),
        'stock': variant.stock,
    }


class ProductViewSet(viewsets.ModelViewSet):
    """
    API endpoint for products.

    list: List all products
    retrieve: Get product detail with variants
    create: Create a new product
    update: Update a product
    delete: Delete a product

    Variant matrix actions (locks, preview, commit) drive both the new
    product wizard and the add-variants flow; picker drives order entry.
    """
    queryset = Product.objects.all()
    lookup_field = 'slug'
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name', 'base_sku', 'description']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']

    def get_serializer_class(self):
        if self.action == 'list':
            return ProductListSerializer
        elif self.action == 'retrieve':
            return ProductDetailSerializer
        return ProductSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        if self.action == 'retrieve':
            queryset = queryset.prefetch_related(
                Prefetch(
                    'variants',
                    queryset=Variant.objects.filter(is_active=True).prefetch_related(
                        'variantattribute_set__attribute_value__attribute'
                    )
                )
            )
        return queryset

    @action(detail=True, methods=['get'], url_path='matrix/locks')
    def matrix_locks(self, request, slug=None):
        """
        Attributes and values already used by the product's variants.
        The add-variants wizard starts from `initial_selection` and cannot drop them.
        """
        product = self.get_object()
        locks = VariantMatrixService.get_locks(product)
        return Response({
            'attributes': locks.attribute_ids,
            'values': {str(k): v for k, v in locks.values_by_attribute.items()},
            'initial_selection': [
                {'attribute': attribute_id, 'values': value_ids}
                for attribute_id, value_ids in locks.initial_selection().items()
            ],
        })

    @action(detail=True, methods=['post'], url_path='matrix/preview')
    def matrix_preview(self, request, slug=None):
        """
        Generate the combinations the product doesn't have yet.

        Expected payload:
        {
            "selection": [
                {"attribute": 1, "values": [3, 4, 5]},
                {"attribute": 2, "values": [7]}
            ],
            "base_price": 9990.00
        }
        """
        product = self.get_object()
        serializer = MatrixPreviewRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            preview = VariantMatrixService.preview_new_variants(
                product,
                serializer.get_selection(),
                base_price=serializer.validated_data.get('base_price'),
            )
        except (EmptySelectionError, LockedSelectionError, TooManyCombinationsError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        payload = {
            'status': 'ok',
            'version': preview.version,
            'generated': preview.generated,
            'duplicates': preview.duplicates,
            'candidates': CandidateSerializer(preview.candidates, many=True).data,
        }
        if preview.nothing_to_create:
            payload['status'] = 'no_new_combinations'
            payload['message'] = str(NoNewCombinationsError())
        return Response(payload)

    @action(detail=True, methods=['post'], url_path='matrix/commit')
    def matrix_commit(self, request, slug=None):
        """
        Create variants from reviewed candidates.

        Expected payload:
        {
            "version": "<version returned by preview>",
            "candidates": [
                {"sku": "CAM-001-V001", "price": 9990.00, "stock": 5, "values": [3, 7]}
            ]
        }
        """
        product = self.get_object()
        serializer = MatrixCommitRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            created = VariantMatrixService.create_variants(
                product,
                serializer.get_candidates(),
                expected_version=serializer.validated_data['version'],
            )
        except StaleIndexError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)
        except (NoNewCombinationsError, CandidateValidationError) as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(
            {
                'created': len(created),
                'variants': VariantListSerializer(created, many=True).data,
            },
            status=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['get'])
    def picker(self, request, slug=None):
        """
        Cascading variant picker.

        Query params:
        - Any attribute_slug=value pairs (e.g., ?talla=M&color=rojo)
        - scope: "order" (default, active variants with stock) or "catalog" (all variants)
        """
        product = self.get_object()
        scope = request.query_params.get('scope', SCOPE_ORDER)
        if scope not in (SCOPE_ORDER, SCOPE_CATALOG):
            return Response(
                {'error': f"scope must be '{SCOPE_ORDER}' or '{SCOPE_CATALOG}'"},
                status=status.HTTP_400_BAD_REQUEST
            )

        exclude_params = ['scope', 'format']
        params = {
            k: v for k, v in request.query_params.items()
            if k not in exclude_params
        }
        selection, unknown = VariantMatrixService.parse_selection(params)
        if unknown:
            return Response(
                {'error': 'Unknown attribute values', 'unknown': unknown},
                status=status.HTTP_400_BAD_REQUEST
            )

        result = VariantMatrixService.picker(product, selection, scope=scope)
        return Response({
            'product': {'id': product.id, 'name': product.name, 'slug': product.slug},
            'scope': scope,
            'attributes': result.attributes,
            'required_attributes': result.required,
            'complete': result.complete,
            'ambiguous': result.ambiguous,
            'variant': _variant_summary(result.variant) if result.variant else None,
        })

    @action(detail=True, methods=['get'])
    def integrity(self, request, slug=None):
        """Variants that don't carry exactly one value per attribute."""
        product = self.get_object()
        issues = VariantMatrixService.integrity_report(product)
        return Response({'ok': not issues, 'issues': issues})


class AttributeViewSet(viewsets.ModelViewSet):
    """
    API endpoint for attributes (Talla, Color, etc).
    """
    queryset = Attribute.objects.prefetch_related('values')
    serializer_class = AttributeSerializer
    lookup_field = 'slug'
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['name']
    ordering = ['display_order', 'name']


class AttributeValueViewSet(viewsets.ModelViewSet):
    """
    API endpoint for attribute values.
    """
    queryset = AttributeValue.objects.select_related('attribute')
    serializer_class = AttributeValueSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter]
    filterset_fields = ['attribute', 'attribute__slug']
    search_fields = ['value']


class VariantViewSet(viewsets.ModelViewSet):
    """
    API endpoint for variants.

    Supports filtering by product, attribute values, price range and stock.
    Variants with attribute values are created through the product matrix actions.
    """
    queryset = Variant.objects.select_related('product').prefetch_related(
        'variantattribute_set__attribute_value__attribute'
    )
    filterset_class = VariantFilter
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['sku', 'name', 'product__name']
    ordering_fields = ['sku', 'price', 'stock', 'created_at']
    ordering = ['sku']

    def get_serializer_class(self):
        if self.action == 'list':
            return VariantListSerializer
        elif self.action == 'retrieve':
            return VariantDetailSerializer
        return VariantSerializer

    @action(detail=False, methods=['post'])
    def bulk_update_stock(self, request):
        """
        Bulk update variant stock. All rows are validated before any is saved.

        Expected payload:
        {
            "updates": [
                {"id": 1, "stock": 100},
                {"id": 2, "stock": 50}
            ]
        }
        """
        serializer = BulkStockUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        updated_ids = []
        with transaction.atomic():
            for update in serializer.validated_data['updates']:
                variant = update['id']
                variant.stock = update['stock']
                # Per-instance save so simple_history records the change
                variant.save(update_fields=['stock', 'updated_at'])
                updated_ids.append(variant.id)

        return Response({'updated': len(updated_ids), 'ids': updated_ids})
