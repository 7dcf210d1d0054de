from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from stock_core.errors import ValidationError


class ExpiryStatus(str, Enum):
    """Precomputed shelf-life classification supplied by the spreadsheet."""

    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"

    @classmethod
    def parse(cls, value: object) -> "ExpiryStatus":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise ValidationError(f"Invalid expiry status: {value!r}")
        token = value.strip().lower()
        try:
            return cls(token)
        except ValueError:
            raise ValidationError(f"Invalid expiry status: {value!r}") from None


STATUS_ORDER = (ExpiryStatus.RED, ExpiryStatus.YELLOW, ExpiryStatus.GREEN)


@dataclass(frozen=True)
class ProductInput:
    name: str
    brand: str
    quantity: int
    expiry_label: str
    expiry_status: ExpiryStatus
    damaged: bool = False


@dataclass(frozen=True)
class ProductRecord:
    id: str
    name: str
    brand: str
    quantity: int
    expiry_label: str
    expiry_status: ExpiryStatus
    damaged: bool = False
    uploaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(cls, product: ProductInput, *, uploaded_at: Optional[datetime] = None) -> "ProductRecord":
        return cls(
            id=uuid.uuid4().hex,
            name=product.name,
            brand=product.brand,
            quantity=product.quantity,
            expiry_label=product.expiry_label,
            expiry_status=product.expiry_status,
            damaged=product.damaged,
            uploaded_at=uploaded_at or datetime.now(timezone.utc),
        )

    def to_dict(self) -> Dict[str, Any]:
        """camelCase payload, the shape the dashboard client consumes."""
        return {
            "id": self.id,
            "name": self.name,
            "brand": self.brand,
            "quantity": self.quantity,
            "expiryLabel": self.expiry_label,
            "expiryStatus": self.expiry_status.value,
            "damaged": self.damaged,
            "uploadedAt": self.uploaded_at.isoformat(),
        }


# Accepted spellings for each ProductInput field in a raw mapping.
_FIELD_KEYS = {
    "name": ("name",),
    "brand": ("brand",),
    "quantity": ("quantity",),
    "expiry_label": ("expiry_label", "expiryLabel"),
    "expiry_status": ("expiry_status", "expiryStatus"),
    "damaged": ("damaged",),
}


def _lookup(raw: Mapping[str, Any], field_name: str) -> Any:
    for key in _FIELD_KEYS[field_name]:
        if key in raw:
            return raw[key]
    return None


def _require_text(value: object, field_name: str, *, allow_empty: bool = False) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string")
    text = value.strip()
    if not text and not allow_empty:
        raise ValidationError(f"{field_name} must not be empty")
    return text


def coerce_product_input(raw: Union[ProductInput, Mapping[str, Any]]) -> ProductInput:
    """Strictly validate one already-normalized product.

    Unlike the spreadsheet normalizer nothing is guessed here: a wrong type
    or a missing field raises ``ValidationError``.
    """
    if isinstance(raw, ProductInput):
        values: Mapping[str, Any] = {
            "name": raw.name,
            "brand": raw.brand,
            "quantity": raw.quantity,
            "expiry_label": raw.expiry_label,
            "expiry_status": raw.expiry_status,
            "damaged": raw.damaged,
        }
    elif isinstance(raw, Mapping):
        values = {name: _lookup(raw, name) for name in _FIELD_KEYS}
    else:
        raise ValidationError(f"Product must be a mapping, got {type(raw).__name__}")

    quantity = values["quantity"]
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity must be an integer")
    if quantity < 0:
        raise ValidationError("quantity must be >= 0")

    damaged = values["damaged"]
    if damaged is None:
        damaged = False
    elif not isinstance(damaged, bool):
        raise ValidationError("damaged must be a boolean")

    if values["expiry_status"] is None:
        raise ValidationError("expiry_status is required")

    return ProductInput(
        name=_require_text(values["name"], "name"),
        brand=_require_text(values["brand"], "brand"),
        quantity=quantity,
        expiry_label=_require_text(values["expiry_label"], "expiry_label", allow_empty=True),
        expiry_status=ExpiryStatus.parse(values["expiry_status"]),
        damaged=damaged,
    )
