"""Exceptions for the drug inventory and its bulk import."""


class InventoryError(Exception):
    """Base exception for inventory errors."""
    code = 'inventory_error'

    def __init__(self, message=None):
        super().__init__(message or self.default_message())

    def default_message(self):
        return self.__class__.__doc__.strip()

    @property
    def message(self):
        return str(self)


class MissingRequiredField(InventoryError):
    """A required field is missing."""
    code = 'missing_required_field'

    def __init__(self, field, message=None):
        self.field = field
        super().__init__(message or f'Missing required field: {field}')


class InvalidDateRange(InventoryError):
    """Manufacturing date must be before expiration date."""
    code = 'invalid_date_range'


class InvalidNumericField(InventoryError):
    """A numeric field is not a non-negative number."""
    code = 'invalid_numeric_field'

    def __init__(self, field, value=None, message=None):
        self.field = field
        self.value = value
        super().__init__(message or f'{field} must be a non-negative number (got {value!r})')


class InvalidCategory(InventoryError):
    """Category must be one of IPD, OPD, OUTREACH."""
    code = 'invalid_category'

    def __init__(self, value=None, message=None, line_indexes=None):
        self.value = value
        self.line_indexes = list(line_indexes or [])
        super().__init__(message)


class StoreConflict(InventoryError):
    """The record could not be stored."""
    code = 'store_conflict'
