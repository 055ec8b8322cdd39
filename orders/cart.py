"""
Panier d'une session pharmacie.

A `Cart` is a plain value owned by whoever handles the session (the cart
views keep it in the Django session); nothing here is module-global. Lines
are merged by drug id and keep the price, batch and expiry seen when the
drug was first added.
"""
import copy
import logging
from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Optional

from .exceptions import OutOfRange

logger = logging.getLogger(__name__)


def _get(drug, key, default=None):
    if isinstance(drug, dict):
        return drug.get(key, default)
    return getattr(drug, key, default)


@dataclass
class CartLine:
    drug_id: int
    name: str
    quantity: int
    price: Decimal
    batch_no: str = ''
    exp_date: Optional[str] = None
    seller_id: Optional[int] = None
    seller_name: str = ''
    category: Optional[str] = None

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['price'] = str(self.price)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'CartLine':
        values = dict(data)
        values['price'] = Decimal(str(values['price']))
        return cls(**values)


@dataclass
class Cart:
    lines: List[CartLine] = field(default_factory=list)
    notes: str = ''

    def __len__(self):
        return len(self.lines)

    def _check_index(self, index: int):
        if not isinstance(index, int) or index < 0 or index >= len(self.lines):
            raise OutOfRange(index, len(self.lines))

    def find_line(self, drug_id) -> Optional[CartLine]:
        for line in self.lines:
            if line.drug_id == drug_id:
                return line
        return None

    def add_item(self, drug, seller_name: str = '') -> bool:
        """
        Ajoute une unité du médicament au panier.

        Accepts a Drug instance or the dict returned by the drug listing.
        Returns False, without touching the cart, when the drug is out of stock.
        """
        drug_id = _get(drug, 'id')
        stock = _get(drug, 'stock', 0) or 0
        if stock <= 0:
            logger.warning(f"Drug {drug_id} ({_get(drug, 'name')}) is out of stock, not added to cart")
            return False

        line = self.find_line(drug_id)
        if line is not None:
            line.quantity += 1
            return True

        exp_date = _get(drug, 'exp_date')
        created_by = _get(drug, 'created_by')
        self.lines.append(CartLine(
            drug_id=drug_id,
            name=_get(drug, 'name', ''),
            quantity=1,
            price=Decimal(str(_get(drug, 'price', 0))),
            batch_no=_get(drug, 'batch_no', '') or '',
            exp_date=str(exp_date) if exp_date is not None else None,
            seller_id=getattr(created_by, 'pk', created_by),
            seller_name=seller_name or getattr(created_by, 'name', '') or _get(drug, 'creator_name', '') or '',
            category=None,
        ))
        return True

    def remove_item(self, index: int) -> CartLine:
        self._check_index(index)
        return self.lines.pop(index)

    def set_quantity(self, index: int, quantity: int) -> bool:
        self._check_index(index)
        if quantity < 1:
            return False
        self.lines[index].quantity = quantity
        return True

    def set_category(self, index: int, category: Optional[str]):
        # Checked at submission time only
        self._check_index(index)
        self.lines[index].category = category

    def total(self) -> Decimal:
        return sum((line.line_total for line in self.lines), Decimal('0'))

    def display_total(self) -> Decimal:
        return self.total().quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    def clear(self):
        self.lines = []
        self.notes = ''

    def snapshot(self) -> 'Cart':
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'lines': [line.to_dict() for line in self.lines],
            'notes': self.notes,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Cart':
        if not data:
            return cls()
        return cls(
            lines=[CartLine.from_dict(line) for line in data.get('lines', [])],
            notes=data.get('notes', ''),
        )
