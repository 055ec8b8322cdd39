import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models

from inventory.models import Account, Drug, DrugCategory


def generate_order_no():
    return f"PHARM-ORD-{uuid.uuid4().hex[:8].upper()}"


class Order(models.Model):
    order_no = models.CharField(max_length=32, unique=True, default=generate_order_no)
    pharmacy = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='orders')
    recipient = models.ForeignKey(Account, on_delete=models.PROTECT, related_name='received_orders')
    notes = models.TextField(blank=True, default='')
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal('0.00'))
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at', '-id']

    def __str__(self):
        return f"Order {self.order_no} from {self.pharmacy.name} to {self.recipient.name}"

    @property
    def overall_status(self):
        # Alphabetical minimum over item statuses, as the history listing always reported it
        statuses = [item.status for item in self.items.all()]
        return min(statuses) if statuses else None


class OrderItem(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_REJECTED = 'rejected'
    STATUS_SHIPPED = 'shipped'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_SHIPPED, 'Shipped'),
    ]

    order = models.ForeignKey(Order, related_name='items', on_delete=models.CASCADE)
    drug = models.ForeignKey(Drug, on_delete=models.SET_NULL, null=True, related_name='order_items')
    quantity = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    unit_price = models.DecimalField(max_digits=10, decimal_places=2)
    category = models.CharField(max_length=20, choices=DrugCategory.choices)
    seller = models.ForeignKey(Account, on_delete=models.CASCADE, related_name='sold_items')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        drug_name = self.drug.name if self.drug else 'deleted drug'
        return f"{self.quantity} x {drug_name} for Order {self.order.order_no}"

    @property
    def total_price(self):
        return self.unit_price * self.quantity
