# Overview: Typed error taxonomy shared by the inventory engine, catalog services and routes.

"""
Every business failure raised by the services is an InventoryError subclass.

Each class carries:
- code: stable machine-readable name, returned to API callers
- details: structured data describing the offending product/document

Callers catch by type, never by message text. Storage failures that are not
translated here (anything other than a document number collision) propagate
as SQLAlchemy errors.
"""


class InventoryError(Exception):
    """Base class for business-rule failures."""

    code = "INVENTORY_ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}


class ValidationError(InventoryError, ValueError):
    """400-level input problem."""

    code = "VALIDATION_ERROR"


class ConflictError(InventoryError, ValueError):
    """409-level business rule conflict (e.g., duplicate product code)."""

    code = "CONFLICT"


class DuplicateDocumentNumber(InventoryError):
    """A document with the same business number is already committed."""

    code = "DUPLICATE_DOCUMENT_NUMBER"

    def __init__(self, doc_type: str, number: str):
        super().__init__(
            f"{doc_type} number {number!r} already exists",
            details={"document_type": doc_type, "number": number},
        )
        self.doc_type = doc_type
        self.number = number


class InsufficientStock(InventoryError):
    """A sale or issue would drive a product's stock negative."""

    code = "INSUFFICIENT_STOCK"

    def __init__(self, *, product_id: int, product_code: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for product {product_code}. "
            f"Requested: {requested}, available: {available}",
            details={
                "product_id": product_id,
                "product_code": product_code,
                "requested": requested,
                "available": available,
            },
        )
        self.product_id = product_id
        self.product_code = product_code
        self.requested = requested
        self.available = available


class ReturnExceedsOriginal(InventoryError):
    """A return asks for more units than remain returnable on the invoice."""

    code = "RETURN_EXCEEDS_ORIGINAL"

    def __init__(
        self,
        *,
        product_id: int,
        product_code: str | None,
        sold: int,
        already_returned: int,
        requested: int,
    ):
        label = product_code or f"ID {product_id}"
        if sold == 0:
            message = f"Product {label} was not sold on the original invoice"
        else:
            message = (
                f"Return quantity for product {label} exceeds original invoice quantity. "
                f"Sold: {sold}, already returned: {already_returned}, requested: {requested}"
            )
        super().__init__(
            message,
            details={
                "product_id": product_id,
                "product_code": product_code,
                "sold": sold,
                "already_returned": already_returned,
                "requested": requested,
            },
        )
        self.product_id = product_id
        self.sold = sold
        self.already_returned = already_returned
        self.requested = requested


class NotFoundError(InventoryError):
    """Referenced row does not exist."""

    code = "NOT_FOUND"


class InvoiceNotFound(NotFoundError):
    code = "INVOICE_NOT_FOUND"


class ProductNotFound(NotFoundError):
    code = "PRODUCT_NOT_FOUND"


class CustomerNotFound(NotFoundError):
    code = "CUSTOMER_NOT_FOUND"


class DocumentNotFound(NotFoundError):
    code = "DOCUMENT_NOT_FOUND"
