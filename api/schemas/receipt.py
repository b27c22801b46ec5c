"""
Receipt form schema.

Receipts are stored as an opaque set of string form fields. This model
documents the fields the bundled templates render while letting any
other submitted field pass through unchanged.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


# Rendered by the form and view templates, in display order
RECEIPT_FIELDS: tuple[tuple[str, str], ...] = (
    ("merchant", "Merchant"),
    ("amount", "Amount"),
    ("purchased_on", "Date"),
    ("category", "Category"),
    ("description", "Description"),
)

# Names owned by the storage layer, never taken from a form
RESERVED_FIELDS = frozenset({"id", "image_url", "image", "created_at", "updated_at"})


class ReceiptForm(BaseModel):
    """Fields submitted from the add/edit receipt form."""

    model_config = ConfigDict(extra="allow")

    merchant: Optional[str] = Field(
        default=None,
        description="Where the purchase was made",
        examples=["Corner Grocery"],
    )
    amount: Optional[str] = Field(
        default=None,
        description="Total as written on the receipt",
        examples=["12.40"],
    )
    purchased_on: Optional[str] = Field(
        default=None,
        description="Purchase date",
        examples=["2016-03-14"],
    )
    category: Optional[str] = Field(
        default=None,
        examples=["groceries"],
    )
    description: Optional[str] = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def drop_reserved_and_non_text(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return {
            name: value
            for name, value in data.items()
            if isinstance(value, str)
            and name not in RESERVED_FIELDS
            # MongoDB treats these as operators/paths
            and "." not in name
            and not name.startswith("$")
        }

    def to_fields(self) -> dict[str, str]:
        """Flatten to the dict stored on the receipt."""
        return {
            name: value
            for name, value in self.model_dump().items()
            if value is not None
        }
