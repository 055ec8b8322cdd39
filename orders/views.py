import logging

from django.db.models import Prefetch, Q
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from inventory.exceptions import InvalidCategory
from inventory.models import Drug
from inventory.pagination import OrderItemPagination, OrderPagination
from inventory.permissions import IsInstitute, IsPharmacy, get_account

from .cart import Cart
from .exceptions import GatewayFailure, NoInstitute, OrderError, OutOfRange
from .gateway import LocalOrderGateway, submit_cart
from .models import Order, OrderItem
from .serializers import (
    CartItemCreateSerializer,
    CartItemUpdateSerializer,
    CartNotesSerializer,
    OrderCreateSerializer,
    OrderItemStatusSerializer,
    OrderSerializer,
    SellerOrderItemSerializer,
    first_error,
    serialize_cart,
)
from .services import create_pharmacy_order, order_created_body, update_item_status

# Configuration du logger
logger = logging.getLogger(__name__)

CART_SESSION_KEY = 'cart'


def error_response(message, http_status=status.HTTP_400_BAD_REQUEST, **extra):
    return Response({'status': False, 'message': message, **extra}, status=http_status)


def load_cart(request) -> Cart:
    return Cart.from_dict(request.session.get(CART_SESSION_KEY))


def save_cart(request, cart: Cart):
    request.session[CART_SESSION_KEY] = cart.to_dict()


class PharmacyOrderViewSet(mixins.CreateModelMixin,
                           mixins.RetrieveModelMixin,
                           viewsets.GenericViewSet):
    """
    Commandes d'une pharmacie vers son institut.

    POST /api/pharmacy/orders/            -> création
    GET  /api/pharmacy/orders/history/    -> historique paginé
    GET  /api/pharmacy/orders/<id>/       -> détail
    """
    serializer_class = OrderSerializer
    permission_classes = [IsAuthenticated, IsPharmacy]
    lookup_value_regex = r'\d+'

    def get_queryset(self):
        account = get_account(self.request)
        return (
            Order.objects.filter(pharmacy=account)
            .select_related('pharmacy', 'recipient')
            .prefetch_related(
                Prefetch('items', queryset=OrderItem.objects.select_related('drug', 'seller'))
            )
        )

    def create(self, request, *args, **kwargs):
        serializer = OrderCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(first_error(serializer.errors), errors=serializer.errors)

        account = get_account(request)
        try:
            order = create_pharmacy_order(account, **serializer.validated_data)
        except OrderError as e:
            logger.warning(f"Commande refusée pour la pharmacie {account.pk}: {e.message}")
            return error_response(e.message, e.http_status, code=e.code)

        return Response(order_created_body(order), status=status.HTTP_201_CREATED)

    def retrieve(self, request, *args, **kwargs):
        order = self.get_object()
        return Response({'status': True, 'order': self.get_serializer(order).data})

    @action(detail=False, methods=['get'])
    def history(self, request):
        """
        GET /api/pharmacy/orders/history/?page=1&limit=10&status=pending&search=PHARM
        """
        queryset = self.get_queryset()

        item_status = request.query_params.get('status')
        if item_status:
            queryset = queryset.filter(items__status=item_status)

        search = request.query_params.get('search', '').strip()
        if search:
            queryset = queryset.filter(
                Q(order_no__icontains=search)
                | Q(recipient__name__icontains=search)
                | Q(items__drug__name__icontains=search)
            )

        if item_status or search:
            queryset = queryset.distinct()

        paginator = OrderPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(self.get_serializer(page, many=True).data)


class CartView(APIView):
    """
    Panier de la session courante.

    GET   /api/cart/
    PATCH /api/cart/   {"notes": "..."}
    """
    permission_classes = [IsAuthenticated, IsPharmacy]

    def get(self, request, *args, **kwargs):
        return Response({'status': True, 'cart': serialize_cart(load_cart(request))})

    def patch(self, request, *args, **kwargs):
        serializer = CartNotesSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(first_error(serializer.errors))

        cart = load_cart(request)
        cart.notes = serializer.validated_data['notes']
        save_cart(request, cart)
        return Response({'status': True, 'cart': serialize_cart(cart)})


class CartItemsView(APIView):
    """POST /api/cart/items/ {"drug_id": 12}: ajoute une unité, fusionnée par médicament."""
    permission_classes = [IsAuthenticated, IsPharmacy]

    def post(self, request, *args, **kwargs):
        serializer = CartItemCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(first_error(serializer.errors))

        institute = get_account(request).institute
        if institute is None:
            return error_response(NoInstitute().message)

        drug = (
            Drug.objects.select_related('created_by')
            .filter(pk=serializer.validated_data['drug_id'], created_by=institute)
            .first()
        )
        if drug is None:
            return error_response('Drug not available at this institute', status.HTTP_404_NOT_FOUND)

        cart = load_cart(request)
        if not cart.add_item(drug, seller_name=institute.name):
            return Response({
                'status': True,
                'warning': f"{drug.name} is out of stock",
                'cart': serialize_cart(cart),
            })

        save_cart(request, cart)
        return Response({'status': True, 'cart': serialize_cart(cart)}, status=status.HTTP_201_CREATED)


class CartItemDetailView(APIView):
    """
    PATCH  /api/cart/items/<index>/ {"quantity": 3, "category": "OPD"}
    DELETE /api/cart/items/<index>/
    """
    permission_classes = [IsAuthenticated, IsPharmacy]

    def patch(self, request, index, *args, **kwargs):
        serializer = CartItemUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(first_error(serializer.errors))

        cart = load_cart(request)
        data = serializer.validated_data
        try:
            if 'quantity' in data and not cart.set_quantity(index, data['quantity']):
                return error_response('Quantity must be at least 1')
            if 'category' in data:
                cart.set_category(index, data['category'])
        except OutOfRange as e:
            return error_response(e.message, e.http_status)

        save_cart(request, cart)
        return Response({'status': True, 'cart': serialize_cart(cart)})

    def delete(self, request, index, *args, **kwargs):
        cart = load_cart(request)
        try:
            line = cart.remove_item(index)
        except OutOfRange as e:
            return error_response(e.message, e.http_status)

        save_cart(request, cart)
        logger.info(f"Ligne retirée du panier: médicament {line.drug_id}")
        return Response({'status': True, 'cart': serialize_cart(cart)})


class CartCheckoutView(APIView):
    """
    POST /api/cart/checkout/

    400 when the cart does not validate, 502 when the order was refused
    (the cart stays as it was), 201 with the order once the cart is cleared.
    """
    permission_classes = [IsAuthenticated, IsPharmacy]

    def post(self, request, *args, **kwargs):
        account = get_account(request)
        cart = load_cart(request)

        try:
            result = submit_cart(cart, account.institute, LocalOrderGateway(account))
        except InvalidCategory as e:
            return error_response(e.message, line_indexes=e.line_indexes)
        except GatewayFailure as e:
            return error_response(e.message, e.http_status, upstream_status=e.status_code)
        except OrderError as e:
            return error_response(e.message, e.http_status)

        save_cart(request, cart)
        return Response(result, status=status.HTTP_201_CREATED)


class SellerOrderItemsView(APIView):
    """GET /api/seller/orders/?status=pending: lignes vendues par l'institut appelant."""
    permission_classes = [IsAuthenticated, IsInstitute]

    def get(self, request, *args, **kwargs):
        account = get_account(request)
        queryset = (
            OrderItem.objects.filter(seller=account)
            .select_related('order', 'order__pharmacy', 'drug', 'seller')
            .order_by('-created_at', '-id')
        )
        item_status = request.query_params.get('status')
        if item_status:
            queryset = queryset.filter(status=item_status)

        paginator = OrderItemPagination()
        page = paginator.paginate_queryset(queryset, request, view=self)
        return paginator.get_paginated_response(SellerOrderItemSerializer(page, many=True).data)


class SellerOrderItemStatusView(APIView):
    """PATCH /api/seller/order-items/<id>/ {"status": "approved"}"""
    permission_classes = [IsAuthenticated, IsInstitute]

    def patch(self, request, pk, *args, **kwargs):
        serializer = OrderItemStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return error_response(first_error(serializer.errors))

        try:
            item = update_item_status(get_account(request), pk, serializer.validated_data['status'])
        except OrderError as e:
            return error_response(e.message, e.http_status)

        return Response({
            'status': True,
            'message': 'Order item status updated successfully',
            'item': SellerOrderItemSerializer(item).data,
        })
