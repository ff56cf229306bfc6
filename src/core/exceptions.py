"""
Domain exceptions for the inventory ledger.

Structural and validation problems, missing references and invariant
violations raise one of these. Stock shortages are never raised: they come
back as structured results from the services.
"""

from typing import Any


class LedgerError(Exception):
    """Base exception for all ledger errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict:
        """Convert to dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


# Validation Exceptions
class ValidationError(LedgerError):
    """Input validation failed."""

    def __init__(self, field: str, message: str, value: Any = None):
        super().__init__(
            f"Validation error for '{field}': {message}",
            code="VALIDATION_ERROR",
            details={
                "field": field,
                "message": message,
                "value": str(value)[:100] if value is not None else None,
            },
        )


class InvalidQuantityError(ValidationError):
    """A ledger quantity was not strictly positive."""

    def __init__(self, operation: str, quantity: float):
        super().__init__(
            field="quantity",
            message=f"{operation} requires a positive quantity",
            value=quantity,
        )
        self.code = "INVALID_QUANTITY"
        self.details["operation"] = operation


class InvalidTransactionQuantityError(ValidationError):
    """A transaction line carries an invalid quantity."""

    def __init__(self, line_index: int, quantity: float):
        super().__init__(
            field=f"items[{line_index}].quantity",
            message="Transaction line quantity must be greater than zero",
            value=quantity,
        )
        self.code = "INVALID_TRANSACTION_QUANTITY"


class InvalidUnitCostError(ValidationError):
    """Unit cost is missing where required, present where forbidden, or negative."""

    def __init__(self, line_index: int, reason: str, value: Any = None):
        super().__init__(
            field=f"items[{line_index}].unit_cost",
            message=reason,
            value=value,
        )
        self.code = "INVALID_UNIT_COST"


class MissingDestinationLocationError(ValidationError):
    """Transaction type needs a destination location."""

    def __init__(self, transaction_type: str):
        super().__init__(
            field="destination_location_id",
            message=f"{transaction_type} transactions require a destination location",
        )
        self.code = "MISSING_DESTINATION_LOCATION"


class MissingSourceLocationError(ValidationError):
    """Transaction type needs a source location."""

    def __init__(self, transaction_type: str):
        super().__init__(
            field="source_location_id",
            message=f"{transaction_type} transactions require a source location",
        )
        self.code = "MISSING_SOURCE_LOCATION"


class SameLocationTransferError(ValidationError):
    """Transfer source and destination are identical."""

    def __init__(self, location_id: str):
        super().__init__(
            field="destination_location_id",
            message="Transfer destination must differ from the source",
            value=location_id,
        )
        self.code = "SAME_LOCATION_TRANSFER"


class UnknownTransactionTypeError(ValidationError):
    """Transaction type is not one of the supported kinds."""

    def __init__(self, transaction_type: str):
        super().__init__(
            field="transaction_type",
            message=f"Unknown transaction type '{transaction_type}'",
            value=transaction_type,
        )
        self.code = "UNKNOWN_TRANSACTION_TYPE"


class EmptyTransactionError(ValidationError):
    """Transaction has no lines."""

    def __init__(self):
        super().__init__(field="items", message="Transaction must contain at least one line")
        self.code = "EMPTY_TRANSACTION"


class InvalidExpirationDateError(ValidationError):
    """Batch expiration date missing or not after the received date."""

    def __init__(self, message: str, value: Any = None):
        super().__init__(field="expiration_date", message=message, value=value)
        self.code = "INVALID_EXPIRATION_DATE"


class MissingBatchError(ValidationError):
    """A batch id is required for this line."""

    def __init__(self, line_index: int, item_id: str):
        super().__init__(
            field=f"items[{line_index}].batch_id",
            message=f"A batch id is required for batch-tracked item {item_id}",
        )
        self.code = "MISSING_BATCH"


class BatchLocationMismatchError(ValidationError):
    """Referenced batch does not belong to the line's item and location."""

    def __init__(self, batch_id: str, item_id: str, location_id: str):
        super().__init__(
            field="batch_id",
            message=f"Batch {batch_id} is not held for item {item_id} at {location_id}",
            value=batch_id,
        )
        self.code = "BATCH_LOCATION_MISMATCH"
        self.details.update({"item_id": item_id, "location_id": location_id})


class DuplicateSkuError(ValidationError):
    """An item with the same SKU already exists."""

    def __init__(self, sku: str, existing_id: str):
        super().__init__(field="sku", message=f"SKU '{sku}' already exists", value=sku)
        self.code = "DUPLICATE_SKU"
        self.details["existing_id"] = existing_id


class DuplicateBatchNumberError(ValidationError):
    """Batch number already used for this item."""

    def __init__(self, item_id: str, batch_number: str):
        super().__init__(
            field="batch_number",
            message=f"Batch number '{batch_number}' already exists for item {item_id}",
            value=batch_number,
        )
        self.code = "DUPLICATE_BATCH_NUMBER"
        self.details["item_id"] = item_id


# Not-found Exceptions
class NotFoundError(LedgerError):
    """Base exception for missing references."""

    def __init__(self, entity: str, entity_id: str):
        super().__init__(
            f"{entity} not found: {entity_id}",
            code=f"{entity.upper().replace(' ', '_')}_NOT_FOUND",
            details={"entity": entity, "id": entity_id},
        )


class ItemNotFoundError(NotFoundError):
    """Inventory item not found."""

    def __init__(self, item_id: str):
        super().__init__("Item", item_id)


class BatchNotFoundError(NotFoundError):
    """Batch not found."""

    def __init__(self, batch_id: str):
        super().__init__("Batch", batch_id)


class StockLevelNotFoundError(NotFoundError):
    """No stock level recorded for the item at the location."""

    def __init__(self, item_id: str, location_id: str):
        super().__init__("Stock level", f"{item_id}@{location_id}")
        self.details.update({"item_id": item_id, "location_id": location_id})


class VendorNotFoundError(NotFoundError):
    """Vendor not found."""

    def __init__(self, vendor_id: str):
        super().__init__("Vendor", vendor_id)


class LocationNotFoundError(NotFoundError):
    """Location not found or no longer active."""

    def __init__(self, location_id: str):
        super().__init__("Location", location_id)


class ReservationNotFoundError(NotFoundError):
    """Reservation not found."""

    def __init__(self, reservation_id: str):
        super().__init__("Reservation", reservation_id)


class CountSheetNotFoundError(NotFoundError):
    """Count sheet not found."""

    def __init__(self, sheet_id: str):
        super().__init__("Count sheet", sheet_id)


# Invariant Exceptions
class InvariantViolationError(LedgerError):
    """A mutation would break a ledger invariant."""

    pass


class NegativeStockError(InvariantViolationError):
    """Decrease would take current quantity below zero."""

    def __init__(self, item_id: str, location_id: str, requested: float, current: float):
        super().__init__(
            f"Cannot remove {requested} from {item_id}@{location_id}: only {current} on hand",
            code="NEGATIVE_STOCK",
            details={
                "item_id": item_id,
                "location_id": location_id,
                "requested": requested,
                "current": current,
            },
        )


class ReservationStateError(InvariantViolationError):
    """Reservation is not in a state that allows the operation."""

    def __init__(self, reservation_id: str, status: str, operation: str):
        super().__init__(
            f"Cannot {operation} reservation {reservation_id} in status '{status}'",
            code="RESERVATION_STATE",
            details={"reservation_id": reservation_id, "status": status, "operation": operation},
        )


class CountSheetStateError(InvariantViolationError):
    """Count sheet is not in a state that allows the operation."""

    def __init__(self, sheet_id: str, status: str, operation: str):
        super().__init__(
            f"Cannot {operation} count sheet {sheet_id} in status '{status}'",
            code="COUNT_SHEET_STATE",
            details={"sheet_id": sheet_id, "status": status, "operation": operation},
        )


class LockNotHeldError(InvariantViolationError):
    """A ledger handle touched a key it does not hold."""

    def __init__(self, item_id: str, location_id: str):
        super().__init__(
            f"Ledger key {item_id}@{location_id} is not held by this handle",
            code="LOCK_NOT_HELD",
            details={"item_id": item_id, "location_id": location_id},
        )


# Storage Exceptions
class StorageError(LedgerError):
    """Base exception for storage operations."""

    pass


class DatabaseError(StorageError):
    """Database operation failed."""

    def __init__(self, operation: str, error: str):
        super().__init__(
            f"Database error during {operation}: {error}",
            code="DATABASE_ERROR",
            details={"operation": operation, "error": error},
        )

