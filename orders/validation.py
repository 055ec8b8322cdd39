"""
Contrôle du panier avant envoi de la commande.

The payload built here is the only thing sent for order creation. It carries
drug ids, quantities and categories, never the price or batch snapshots kept
in the cart for display: the order endpoint prices every line from the drug
record at submission time.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List

from inventory.exceptions import InvalidCategory
from inventory.models import DrugCategory

from .cart import Cart
from .exceptions import EmptyCart, NoInstitute

VALID_CATEGORIES = frozenset(DrugCategory.values)


@dataclass(frozen=True)
class OrderPayloadItem:
    drug_id: int
    quantity: int
    category: str


@dataclass(frozen=True)
class OrderPayload:
    recipient_id: int
    items: List[OrderPayloadItem] = field(default_factory=list)
    notes: str = ''

    def as_json(self) -> Dict[str, Any]:
        return {
            'recipient_id': self.recipient_id,
            'items': [
                {'drug_id': item.drug_id, 'quantity': item.quantity, 'category': item.category}
                for item in self.items
            ],
            'notes': self.notes,
        }


def build_order_payload(cart: Cart, institute) -> OrderPayload:
    """
    Raises EmptyCart, NoInstitute or InvalidCategory, in that order of precedence.

    `institute` is the Account the pharmacy indents from (`account.institute`).
    """
    if len(cart.lines) == 0:
        raise EmptyCart()

    if institute is None or not getattr(institute, 'is_institute', False):
        raise NoInstitute()

    invalid = [
        i for i, line in enumerate(cart.lines)
        if not isinstance(line.category, str) or line.category not in VALID_CATEGORIES
    ]
    if invalid:
        raise InvalidCategory(
            message='Please select a valid category for all items',
            line_indexes=invalid,
        )

    return OrderPayload(
        recipient_id=institute.pk,
        items=[
            OrderPayloadItem(drug_id=line.drug_id, quantity=line.quantity, category=line.category)
            for line in cart.lines
        ],
        notes=cart.notes,
    )
