from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    ProductViewSet,
    AttributeViewSet,
    AttributeValueViewSet,
    VariantViewSet,
)

router = DefaultRouter()
router.register(r'products', ProductViewSet, basename='product')
router.register(r'attributes', AttributeViewSet, basename='attribute')
router.register(r'attribute-values', AttributeValueViewSet, basename='attribute-value')
router.register(r'variants', VariantViewSet, basename='variant')

urlpatterns = [
    path('', include(router.urls)),
]
