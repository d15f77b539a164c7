import math

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from rest_framework import permissions, status
from rest_framework.generics import ListAPIView
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response
from rest_framework.views import APIView

from account.permissions import IsAdministrator
from .models import Order
from .serializers import (
    ClientOrderHistorySerializer,
    OrderCreateSerializer,
    OrderSerializer,
    OrderStatusSerializer,
)
from .services import OrderService

User = get_user_model()


class OrderPagination(PageNumberPagination):
    page_size = 10
    page_size_query_param = "limit"
    max_page_size = 100

    def get_paginated_response(self, data):
        total = self.page.paginator.count
        limit = self.get_page_size(self.request)
        return Response(
            {
                "data": data,
                "pagination": {
                    "page": self.page.number,
                    "limit": limit,
                    "total": total,
                    "pages": math.ceil(total / limit) if limit else 0,
                },
            }
        )


class OrderCreateView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def post(self, request):
        serializer = OrderCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = OrderService.create_order(request.user, serializer.validated_data)
        return Response(
            {
                "message": "Order created",
                "id": str(order.id),
                "data": OrderSerializer(order).data,
            },
            status=status.HTTP_201_CREATED,
        )


class OrderListView(ListAPIView):
    permission_classes = [permissions.IsAuthenticated, IsAdministrator]
    serializer_class = OrderSerializer
    pagination_class = OrderPagination
    queryset = Order.objects.all().order_by("-created_at")


class UserOrderListView(ListAPIView):
    permission_classes = [permissions.IsAuthenticated]
    serializer_class = OrderSerializer

    def get_queryset(self):
        return Order.objects.filter(client=self.request.user).order_by("-created_at")


class OrderDetailView(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        order = get_object_or_404(Order, pk=pk)
        return Response(OrderSerializer(order).data)

    def patch(self, request, pk):
        serializer = OrderStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        order = OrderService.update_status(pk, serializer.validated_data["status"])
        return Response(
            {"message": "Order status updated", "data": OrderSerializer(order).data},
            status=status.HTTP_200_OK,
        )

    def delete(self, request, pk):
        OrderService.delete_order(pk)
        return Response({"message": "Order deleted"}, status=status.HTTP_200_OK)


class ClientOrderHistoryView(ListAPIView):
    permission_classes = [permissions.IsAuthenticated, IsAdministrator]
    serializer_class = ClientOrderHistorySerializer

    def get_queryset(self):
        client = get_object_or_404(User, pk=self.kwargs["pk"])
        return Order.objects.filter(client=client).order_by("-created_at")
