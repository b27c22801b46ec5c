"""
Pydantic schemas for request validation.
"""

from api.schemas.receipt import RECEIPT_FIELDS, ReceiptForm

__all__ = [
    "RECEIPT_FIELDS",
    "ReceiptForm",
]
