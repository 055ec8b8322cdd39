"""Exceptions for the cart and order submission."""


class OrderError(Exception):
    """Base exception for cart and order errors."""
    code = 'order_error'
    http_status = 400

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__doc__.strip())

    @property
    def message(self):
        return str(self)


class EmptyCart(OrderError):
    """Please add items to your cart."""
    code = 'empty_cart'


class NoInstitute(OrderError):
    """No institute associated with your pharmacy."""
    code = 'no_institute'


class OutOfRange(OrderError, IndexError):
    """No cart line at this position."""
    code = 'out_of_range'
    http_status = 404

    def __init__(self, index, size):
        self.index = index
        self.size = size
        super().__init__(f"No cart line at index {index} (cart has {size} line(s))")


class GatewayFailure(OrderError):
    """Error placing order."""
    code = 'gateway_failure'
    http_status = 502

    def __init__(self, message=None, status_code=None):
        self.status_code = status_code
        super().__init__(message)


class InvalidRecipient(OrderError):
    """Recipient must be a valid institute."""
    code = 'invalid_recipient'


class DrugUnavailable(OrderError):
    """Drug not available at this institute."""
    code = 'drug_unavailable'
    http_status = 404


class InsufficientStock(OrderError):
    """Not enough stock."""
    code = 'insufficient_stock'


class OrderItemNotFound(OrderError):
    """Order item not found or unauthorized."""
    code = 'order_item_not_found'
    http_status = 404


class InvalidStatusTransition(OrderError):
    """This status change is not allowed."""
    code = 'invalid_status_transition'
