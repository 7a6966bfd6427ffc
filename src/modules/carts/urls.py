"""Cart URL configuration."""

from __future__ import annotations

from django.urls import path

from modules.carts.views import CartViewSet

urlpatterns = [
    path("cart/", CartViewSet.as_view({"get": "retrieve"}), name="cart-detail"),
    path("cart/lines/", CartViewSet.as_view({"post": "add_line"}), name="cart-lines"),
    path(
        "cart/lines/<uuid:line_id>/",
        CartViewSet.as_view({"delete": "remove_line"}),
        name="cart-line-detail",
    ),
    path(
        "cart/validate/",
        CartViewSet.as_view({"post": "validate"}),
        name="cart-validate",
    ),
]
