from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import CustomerViewSet, OrderViewSet, CouponViewSet

router = DefaultRouter()
router.register(r'customers', CustomerViewSet, basename='customer')
router.register(r'orders', OrderViewSet, basename='order')
router.register(r'coupons', CouponViewSet, basename='coupon')

urlpatterns = [
    path('', include(router.urls)),
]
