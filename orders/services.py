# -*- coding: utf-8 -*-
"""
Services de commande: création d'une commande pharmacie -> institut et
cycle de vie des lignes côté vendeur.
"""
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Dict, Iterable

from django.db import transaction

from inventory.models import Account, Drug

from .exceptions import (
    DrugUnavailable,
    InsufficientStock,
    InvalidRecipient,
    InvalidStatusTransition,
    OrderItemNotFound,
)
from .models import Order, OrderItem

logger = logging.getLogger(__name__)

ITEM_STATUSES = [choice for choice, _ in OrderItem.STATUS_CHOICES]


def create_pharmacy_order(pharmacy: Account, recipient_id, items: Iterable[Dict], notes: str = '') -> Order:
    """
    Crée une commande en une seule transaction.

    Every unit price is read from the drug record now: prices shown in the
    pharmacy's cart are display snapshots and are ignored here. Any invalid
    line rolls the whole order back.

    Args:
        pharmacy: compte pharmacie qui commande
        recipient_id: id du compte institut fournisseur
        items: [{'drug_id': 1, 'quantity': 2, 'category': 'OPD'}, ...]
        notes: texte libre

    Raises:
        InvalidRecipient, DrugUnavailable, InsufficientStock
    """
    with transaction.atomic():
        recipient = Account.objects.filter(pk=recipient_id, role=Account.ROLE_INSTITUTE).first()
        if recipient is None:
            raise InvalidRecipient()

        order = Order.objects.create(pharmacy=pharmacy, recipient=recipient, notes=notes or '')
        total_amount = Decimal('0')
        requested = defaultdict(int)

        for item in items:
            drug = (
                Drug.objects.select_for_update()
                .filter(pk=item['drug_id'], created_by=recipient)
                .first()
            )
            if drug is None:
                raise DrugUnavailable(f"Drug with ID {item['drug_id']} not available at this institute")

            requested[drug.pk] += item['quantity']
            if drug.stock < requested[drug.pk]:
                raise InsufficientStock(
                    f"Insufficient stock for drug {drug.name} (Available: {drug.stock})"
                )

            OrderItem.objects.create(
                order=order,
                drug=drug,
                quantity=item['quantity'],
                unit_price=drug.price,
                category=item['category'],
                seller=recipient,
            )
            total_amount += drug.price * item['quantity']

        order.total_amount = total_amount
        order.save(update_fields=['total_amount', 'updated_at'])

    logger.info(
        f"Commande {order.order_no} créée: pharmacie {pharmacy.pk} -> institut {recipient.pk}, "
        f"{len(requested)} médicament(s), total {total_amount}"
    )
    return order


def order_created_body(order: Order) -> Dict:
    return {
        'status': True,
        'message': 'Order created successfully',
        'order': {
            'id': order.pk,
            'order_no': order.order_no,
            'total_amount': str(order.total_amount),
        },
    }


def update_item_status(seller: Account, item_id, new_status: str) -> OrderItem:
    """
    Change le statut d'une ligne vendue par `seller`.

    Stock is taken when a pending line is approved and given back when an
    approved line is rejected or sent back to pending. Rejected and shipped
    lines are final; only approved lines can ship.
    """
    if new_status not in ITEM_STATUSES:
        raise InvalidStatusTransition(
            'Valid status is required (pending, approved, rejected, shipped)'
        )

    with transaction.atomic():
        item = (
            OrderItem.objects.select_for_update()
            .filter(pk=item_id, seller=seller)
            .first()
        )
        if item is None:
            raise OrderItemNotFound()

        current = item.status
        if current == new_status:
            return item
        if current == OrderItem.STATUS_REJECTED:
            raise InvalidStatusTransition('Cannot change status of rejected item')
        if current == OrderItem.STATUS_SHIPPED:
            raise InvalidStatusTransition('Cannot change status of shipped item')
        if new_status == OrderItem.STATUS_SHIPPED and current != OrderItem.STATUS_APPROVED:
            raise InvalidStatusTransition('Can only ship approved items')

        if item.drug_id is not None:
            drug = Drug.objects.select_for_update().get(pk=item.drug_id)
            if current == OrderItem.STATUS_PENDING and new_status == OrderItem.STATUS_APPROVED:
                if drug.stock < item.quantity:
                    raise InsufficientStock(
                        f"Insufficient stock for drug {drug.name} (Available: {drug.stock})"
                    )
                drug.stock -= item.quantity
                drug.save(update_fields=['stock', 'updated_at'])
            elif current == OrderItem.STATUS_APPROVED and new_status in (
                OrderItem.STATUS_REJECTED, OrderItem.STATUS_PENDING
            ):
                drug.stock += item.quantity
                drug.save(update_fields=['stock', 'updated_at'])

        item.status = new_status
        item.save(update_fields=['status', 'updated_at'])

    logger.info(f"Ligne {item.pk} ({item.order.order_no}): {current} -> {new_status}")
    return item
