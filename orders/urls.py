from rest_framework.routers import SimpleRouter
from django.urls import path
from .views import (
    CartCheckoutView,
    CartItemDetailView,
    CartItemsView,
    CartView,
    PharmacyOrderViewSet,
    SellerOrderItemStatusView,
    SellerOrderItemsView,
)

router = SimpleRouter()
router.register(r'pharmacy/orders', PharmacyOrderViewSet, basename='pharmacy-order')

urlpatterns = [
    path('cart/', CartView.as_view(), name='cart'),
    path('cart/items/', CartItemsView.as_view(), name='cart-items'),
    path('cart/items/<int:index>/', CartItemDetailView.as_view(), name='cart-item-detail'),
    path('cart/checkout/', CartCheckoutView.as_view(), name='cart-checkout'),
    path('seller/orders/', SellerOrderItemsView.as_view(), name='seller-orders'),
    path('seller/order-items/<int:pk>/', SellerOrderItemStatusView.as_view(), name='seller-order-item-status'),
] + router.urls
