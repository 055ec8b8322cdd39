"""
Import en masse de médicaments depuis un CSV.

Each data row is validated on its own by `validate_row`, a pure function
returning either a `ParsedRow` or a `RowError`. Valid rows are then written
one by one, each inside its own savepoint: a bad row, or a row the database
refuses, is reported and the next row is processed anyway.

Expected columns:
    Drug Type, Name, Batch No, Description, Stock,
    Manufacturing Date, Expiration Date, Price, Category
"""
import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Union

from django.core.exceptions import ValidationError
from django.db import DatabaseError, IntegrityError, transaction

from .exceptions import (
    InvalidCategory,
    InvalidDateRange,
    InvalidNumericField,
    InventoryError,
    MissingRequiredField,
    StoreConflict,
)
from .models import Drug, DrugCategory

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    'Drug Type',
    'Name',
    'Batch No',
    'Description',
    'Stock',
    'Manufacturing Date',
    'Expiration Date',
    'Price',
    'Category',
]

# (column, label used in the error message), checked in this order
REQUIRED_COLUMNS = [
    ('Drug Type', 'drug type'),
    ('Name', 'name'),
    ('Batch No', 'batch number'),
]

DATE_FORMATS = ('%Y-%m-%d', '%d-%m-%Y')

MAX_PRICE = Decimal('99999999.99')

# PositiveIntegerField upper bound
MAX_STOCK = 2147483647


@dataclass(frozen=True)
class ParsedRow:
    row: int
    drug_type: str
    name: str
    batch_no: str
    description: str
    stock: int
    mfg_date: date
    exp_date: date
    price: Decimal
    category: Optional[str]
    data: Dict[str, str]

    def as_drug_fields(self) -> Dict:
        return {
            'drug_type': self.drug_type,
            'name': self.name,
            'batch_no': self.batch_no,
            'description': self.description,
            'stock': self.stock,
            'mfg_date': self.mfg_date,
            'exp_date': self.exp_date,
            'price': self.price,
            'category': self.category,
        }


@dataclass(frozen=True)
class RowError:
    row: int
    error: str
    code: str
    data: Dict[str, str]

    def as_dict(self) -> Dict:
        return {'row': self.row, 'error': self.error, 'data': self.data}


@dataclass
class ImportOutcome:
    success_count: int = 0
    errors: List[RowError] = field(default_factory=list)
    created_ids: List[int] = field(default_factory=list)

    @property
    def message(self) -> str:
        return (
            f"CSV import completed with {self.success_count} successful records "
            f"and {len(self.errors)} errors"
        )

    def as_dict(self) -> Dict:
        return {
            'successCount': self.success_count,
            'errors': [error.as_dict() for error in self.errors],
        }


def read_csv_rows(fileobj, encoding: str = 'utf-8-sig') -> List[Dict[str, str]]:
    """
    Lit un fichier CSV (upload Django ou fichier texte) en liste de dicts.

    Raises:
        ValueError: si le contenu n'est pas décodable
    """
    content = fileobj.read()
    if isinstance(content, bytes):
        try:
            content = content.decode(encoding)
        except UnicodeDecodeError as e:
            raise ValueError(f"File is not valid {encoding} text") from e

    reader = csv.DictReader(io.StringIO(content))
    rows = []
    for record in reader:
        # Extra trailing cells end up under the None key
        rows.append({key.strip(): value for key, value in record.items() if key is not None})
    return rows


def normalize_row(raw) -> Dict[str, str]:
    """Maps a positional or keyed row onto the CSV column names, values stripped."""
    if isinstance(raw, (list, tuple)):
        raw = dict(zip(CSV_COLUMNS, raw))

    normalized = {}
    for key, value in raw.items():
        if value is None:
            value = ''
        normalized[str(key).strip()] = str(value).strip()
    return normalized


def parse_date(value: str) -> Optional[date]:
    if not value:
        return None
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def _parse_decimal(field_name: str, value: str) -> Decimal:
    try:
        number = Decimal(value)
    except (InvalidOperation, ValueError):
        raise InvalidNumericField(field_name, value)
    if not number.is_finite() or number < 0:
        raise InvalidNumericField(field_name, value)
    return number


def parse_stock(value: str) -> int:
    if value == '':
        return 0
    number = _parse_decimal('Stock', value)
    if number != number.to_integral_value():
        raise InvalidNumericField('Stock', value, 'Stock must be a whole number')
    if number > MAX_STOCK:
        raise InvalidNumericField('Stock', value, f'Stock must not exceed {MAX_STOCK}')
    return int(number)


def parse_price(value: str) -> Decimal:
    if value == '':
        raise InvalidNumericField('Price', value, 'Price is required')
    number = _parse_decimal('Price', value)
    # Bounded first: quantize() fails past the context precision
    if number > MAX_PRICE:
        raise InvalidNumericField('Price', value, f'Price must not exceed {MAX_PRICE}')
    return number.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


def parse_category(value: str) -> Optional[str]:
    if not value:
        return None
    category = value.upper()
    if category not in DrugCategory.values:
        raise InvalidCategory(value, f"Invalid category '{value}'. Expected one of: IPD, OPD, OUTREACH")
    return category


def _parse_row(row_number: int, data: Dict[str, str]) -> ParsedRow:
    for column, label in REQUIRED_COLUMNS:
        if not data.get(column):
            raise MissingRequiredField(label)

    mfg_date = parse_date(data.get('Manufacturing Date', ''))
    exp_date = parse_date(data.get('Expiration Date', ''))
    if mfg_date is None or exp_date is None:
        raise InvalidDateRange('Invalid date format. Supported formats: YYYY-MM-DD, DD-MM-YYYY.')
    if mfg_date >= exp_date:
        raise InvalidDateRange()

    stock = parse_stock(data.get('Stock', ''))
    price = parse_price(data.get('Price', ''))
    category = parse_category(data.get('Category', ''))

    return ParsedRow(
        row=row_number,
        drug_type=data['Drug Type'],
        name=data['Name'],
        batch_no=data['Batch No'],
        description=data.get('Description', ''),
        stock=stock,
        mfg_date=mfg_date,
        exp_date=exp_date,
        price=price,
        category=category,
        data=data,
    )


def validate_row(row_number: int, raw) -> Union[ParsedRow, RowError]:
    """
    Valide une ligne brute sans toucher à la base.

    Checks run in a fixed order and stop at the first failure: required
    fields, date range, numeric fields, category.
    """
    data = normalize_row(raw)
    try:
        return _parse_row(row_number, data)
    except InventoryError as e:
        return RowError(row=row_number, error=e.message, code=e.code, data=data)


class DrugImporter:
    """
    Réconcilie un lot de lignes CSV avec le stock d'un compte.
    """

    def __init__(self, owner):
        self.owner = owner

    def create_drug(self, parsed: ParsedRow) -> Drug:
        """Persists one validated row in its own savepoint."""
        try:
            with transaction.atomic():
                return Drug.objects.create(created_by=self.owner, **parsed.as_drug_fields())
        except IntegrityError as e:
            if Drug.objects.filter(created_by=self.owner, batch_no=parsed.batch_no).exists():
                raise StoreConflict(
                    f"Batch number '{parsed.batch_no}' already exists for this account"
                ) from e
            raise StoreConflict(f"Could not store drug: {e}") from e
        except (DatabaseError, OverflowError, ValidationError) as e:
            raise StoreConflict(f"Could not store drug: {e}") from e

    def reconcile(self, rows: Iterable) -> ImportOutcome:
        outcome = ImportOutcome()

        for row_number, raw in enumerate(rows, start=1):
            result = validate_row(row_number, raw)
            if isinstance(result, RowError):
                logger.info(f"Import row {row_number} rejected ({result.code}): {result.error}")
                outcome.errors.append(result)
                continue

            try:
                drug = self.create_drug(result)
            except StoreConflict as e:
                logger.warning(f"Import row {row_number} not stored: {e.message}")
                outcome.errors.append(
                    RowError(row=row_number, error=e.message, code=e.code, data=result.data)
                )
                continue

            outcome.success_count += 1
            outcome.created_ids.append(drug.pk)

        logger.info(
            f"Import for account {self.owner.pk}: {outcome.success_count} created, "
            f"{len(outcome.errors)} errors"
        )
        return outcome
