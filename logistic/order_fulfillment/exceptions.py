"""
Custom exceptions for the allocation and backorder engine.

Every exception carries a stable ``code`` that API responses expose as the
error code, plus a ``details`` dict describing the unmet precondition.
"""

from typing import Dict, Any


class BusinessException(Exception):
    """Base exception for business logic errors."""

    def __init__(self, message: str, code: str = "BUSINESS_ERROR", details: Dict[str, Any] = None):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.code,
            'message': self.message,
            'details': self.details,
        }


class InvalidTransitionException(BusinessException):
    """Raised when an operation is attempted in a status that does not permit it."""

    def __init__(self, current_status: str, attempted_status: str = None, entity_type: str = "order",
                 message: str = None):
        if message is None:
            message = f"Invalid transition for {entity_type}: cannot move from {current_status} to {attempted_status}"
        super().__init__(message, "ILLEGAL_TRANSITION", {
            "current_status": current_status,
            "attempted_status": attempted_status,
            "entity_type": entity_type
        })


class InsufficientStockException(BusinessException):
    """Raised when a requested quantity exceeds what can be committed."""

    def __init__(self, sku: str, requested_qty: int, available_qty: int = 0, product_id=None):
        message = f"Insufficient stock for SKU {sku}: requested {requested_qty}, available {available_qty}"
        super().__init__(message, "INSUFFICIENT_STOCK", {
            "product_id": product_id,
            "sku": sku,
            "requested_quantity": requested_qty,
            "available_quantity": available_qty
        })


class NotFoundException(BusinessException):
    """Raised when a referenced order, product, issue or courier does not exist."""

    def __init__(self, entity_type: str, entity_id, message: str = None):
        super().__init__(message or f"{entity_type} {entity_id} not found", "NOT_FOUND", {
            "entity_type": entity_type,
            "entity_id": str(entity_id),
        })


class InvalidReasonException(BusinessException):
    """Raised when a cancellation reason is missing or too short."""

    def __init__(self, min_length: int):
        super().__init__(
            f"Cancellation reason must be at least {min_length} characters",
            "INVALID_REASON",
            {"min_length": min_length}
        )


class InvalidNoteException(BusinessException):
    """Raised when an issue or resolution note is missing or too short."""

    def __init__(self, field: str, min_length: int):
        super().__init__(
            f"{field} must be at least {min_length} characters",
            "INVALID_NOTE",
            {"field": field, "min_length": min_length}
        )


class IssueAlreadyOpenException(BusinessException):
    """Raised when a shortage report is filed while another one is unresolved."""

    def __init__(self, order_number: str, issue_id):
        super().__init__(
            f"Order {order_number} already has an unresolved issue",
            "ISSUE_ALREADY_OPEN",
            {"issue_id": str(issue_id)}
        )


class RejectedException(BusinessException):
    """Raised when a precondition other than status or input validity is unmet."""


class ValidationException(BusinessException):
    """Raised when data validation fails."""

    def __init__(self, message: str, field_errors: Dict[str, Any] = None):
        super().__init__(message, "VALIDATION_ERROR", field_errors or {})
