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

__all__ = [
    'ProductSerializer',
    'ProductListSerializer',
    'ProductDetailSerializer',
    'AttributeSerializer',
    'AttributeValueSerializer',
    'VariantSerializer',
    'VariantListSerializer',
    'VariantDetailSerializer',
    'CandidateSerializer',
    'MatrixPreviewRequestSerializer',
    'MatrixCommitRequestSerializer',
    'BulkStockUpdateSerializer',
]
