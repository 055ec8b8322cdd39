from rest_framework import serializers

from inventory.models import DrugCategory
from .cart import Cart
from .models import Order, OrderItem


def first_error(errors) -> str:
    """Premier message d'erreur lisible d'un dict/list d'erreurs DRF."""
    if isinstance(errors, dict):
        for key, value in errors.items():
            message = first_error(value)
            if message:
                return message if key == 'non_field_errors' else f"{key}: {message}"
        return ''
    if isinstance(errors, (list, tuple)):
        for value in errors:
            message = first_error(value)
            if message:
                return message
        return ''
    return str(errors)


class OrderItemInputSerializer(serializers.Serializer):
    drug_id = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1)
    category = serializers.ChoiceField(
        choices=DrugCategory.choices,
        error_messages={'invalid_choice': 'Category must be one of IPD, OPD, OUTREACH'},
    )


class OrderCreateSerializer(serializers.Serializer):
    """Body of POST /pharmacy/orders/: drug ids, quantities and categories only."""
    recipient_id = serializers.IntegerField()
    items = OrderItemInputSerializer(many=True, allow_empty=False)
    notes = serializers.CharField(required=False, allow_blank=True, allow_null=True, default='')

    def validate_notes(self, value):
        return value or ''


class OrderItemSerializer(serializers.ModelSerializer):
    drug_name = serializers.SerializerMethodField()
    batch_no = serializers.SerializerMethodField()
    seller_name = serializers.CharField(source='seller.name', read_only=True)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = OrderItem
        fields = [
            'id', 'drug', 'drug_name', 'batch_no', 'quantity', 'unit_price',
            'total_price', 'category', 'status', 'seller', 'seller_name',
        ]

    def get_drug_name(self, obj):
        return obj.drug.name if obj.drug else None

    def get_batch_no(self, obj):
        return obj.drug.batch_no if obj.drug else None


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    recipient_name = serializers.CharField(source='recipient.name', read_only=True)
    pharmacy_name = serializers.CharField(source='pharmacy.name', read_only=True)
    item_count = serializers.SerializerMethodField()
    overall_status = serializers.ReadOnlyField()

    class Meta:
        model = Order
        fields = [
            'id', 'order_no', 'pharmacy', 'pharmacy_name', 'recipient', 'recipient_name',
            'notes', 'total_amount', 'item_count', 'overall_status', 'items',
            'created_at', 'updated_at',
        ]

    def get_item_count(self, obj):
        return len(obj.items.all())


class SellerOrderItemSerializer(OrderItemSerializer):
    order_no = serializers.CharField(source='order.order_no', read_only=True)
    pharmacy_name = serializers.CharField(source='order.pharmacy.name', read_only=True)

    class Meta(OrderItemSerializer.Meta):
        fields = OrderItemSerializer.Meta.fields + ['order', 'order_no', 'pharmacy_name', 'created_at']


class OrderItemStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(
        choices=OrderItem.STATUS_CHOICES,
        error_messages={'invalid_choice': 'Valid status is required (pending, approved, rejected, shipped)'},
    )


class CartLineSerializer(serializers.Serializer):
    drug_id = serializers.IntegerField()
    name = serializers.CharField()
    quantity = serializers.IntegerField()
    price = serializers.DecimalField(max_digits=10, decimal_places=2)
    line_total = serializers.DecimalField(max_digits=12, decimal_places=2)
    batch_no = serializers.CharField(allow_blank=True)
    exp_date = serializers.CharField(allow_null=True)
    seller_id = serializers.IntegerField(allow_null=True)
    seller_name = serializers.CharField(allow_blank=True)
    category = serializers.JSONField(allow_null=True)


def serialize_cart(cart: Cart):
    lines = []
    for index, line in enumerate(cart.lines):
        data = CartLineSerializer(line).data
        data['index'] = index
        lines.append(data)
    return {
        'lines': lines,
        'notes': cart.notes,
        'line_count': len(cart.lines),
        'total': str(cart.display_total()),
    }


class CartItemCreateSerializer(serializers.Serializer):
    drug_id = serializers.IntegerField(min_value=1)


class CartItemUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(required=False)
    category = serializers.JSONField(required=False, allow_null=True)

    def validate(self, attrs):
        if not attrs:
            raise serializers.ValidationError('Provide quantity and/or category')
        return attrs


class CartNotesSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True, trim_whitespace=False)
