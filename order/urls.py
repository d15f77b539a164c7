from django.urls import path

from .views import (
    ClientOrderHistoryView,
    OrderCreateView,
    OrderDetailView,
    OrderListView,
    UserOrderListView,
)

urlpatterns = [
    path("commandes/", OrderListView.as_view(), name="order-list"),
    path("commandes/create/", OrderCreateView.as_view(), name="order-create"),
    path("commandes/user/", UserOrderListView.as_view(), name="user-orders"),
    path("commandes/<uuid:pk>/", OrderDetailView.as_view(), name="order-detail"),
    path("clients/<uuid:pk>/orders/", ClientOrderHistoryView.as_view(), name="client-orders"),
]
