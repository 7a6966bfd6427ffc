"""Order URL configuration."""

from __future__ import annotations

from rest_framework.routers import DefaultRouter

from modules.orders.views import MasterOrderViewSet, PurchaseOrderViewSet

router = DefaultRouter(trailing_slash=True)
router.register("purchase-orders", PurchaseOrderViewSet, basename="purchase-order")
router.register("master-orders", MasterOrderViewSet, basename="master-order")

urlpatterns = router.urls
