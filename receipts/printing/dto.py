"""
Data Transfer Objects for receipt printing

A Receipt arrives fully computed (totals, snapshots and line items) from the
receipts API layer; the printing code only reads it.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Optional


CUSTOMER_TYPE_INDIVIDUAL = 'individual'
CUSTOMER_TYPE_BUSINESS = 'business'


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first key present in data (API and neutral spellings)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _decimal(value: Any) -> Decimal:
    if value is None or value == '':
        return Decimal('0')
    return Decimal(str(value))


@dataclass(frozen=True)
class SellerSnapshot:
    """Seller identity as it was when the receipt was created."""

    name: Optional[str] = None
    business_address: Optional[str] = None
    tax_id: Optional[str] = None
    contact_email: Optional[str] = None
    phone: Optional[str] = None
    logo_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'SellerSnapshot':
        data = data or {}
        return cls(
            name=_pick(data, 'name'),
            business_address=_pick(data, 'business_address', 'address'),
            tax_id=_pick(data, 'tax_id', 'ABN_or_ACN'),
            contact_email=_pick(data, 'contact_email', 'email'),
            phone=_pick(data, 'phone'),
            logo_url=_pick(data, 'logo_url'),
        )


@dataclass(frozen=True)
class CustomerSnapshot:
    """Customer identity as it was when the receipt was created."""

    customer_type: str = CUSTOMER_TYPE_INDIVIDUAL
    id: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    business_name: Optional[str] = None
    tax_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None

    @property
    def is_business(self) -> bool:
        return self.customer_type == CUSTOMER_TYPE_BUSINESS

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'CustomerSnapshot':
        data = data or {}
        return cls(
            customer_type=_pick(data, 'customer_type', default=CUSTOMER_TYPE_INDIVIDUAL),
            id=_pick(data, 'id'),
            first_name=_pick(data, 'first_name'),
            last_name=_pick(data, 'last_name'),
            business_name=_pick(data, 'business_name'),
            tax_id=_pick(data, 'tax_id', 'abn'),
            email=_pick(data, 'email'),
            phone=_pick(data, 'phone'),
            address=_pick(data, 'address'),
        )


@dataclass(frozen=True)
class LineItem:
    """One line of a receipt. Only product_name and quantity are expected to be set."""

    product_name: Optional[str] = None
    quantity: int = 1
    unit_price: Optional[Decimal] = None
    line_total: Optional[Decimal] = None
    tax_applicable: bool = False
    description: Optional[str] = None
    product_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> 'LineItem':
        unit_price = _pick(data, 'unit_price')
        line_total = _pick(data, 'line_total')
        return cls(
            product_name=_pick(data, 'product_name', 'name'),
            quantity=int(_pick(data, 'quantity', default=1)),
            unit_price=_decimal(unit_price) if unit_price is not None else None,
            line_total=_decimal(line_total) if line_total is not None else None,
            tax_applicable=bool(_pick(data, 'tax_applicable', 'GST_applicable', default=False)),
            description=_pick(data, 'description'),
            product_id=_pick(data, 'product_id'),
        )


@dataclass(frozen=True)
class Receipt:
    """
    A fully computed receipt.

    total_incl_tax is expected to equal subtotal_excl_tax + tax_amount; the
    printing code never recomputes it.
    """

    receipt_id: str
    date_of_purchase: str
    line_items: tuple = ()
    subtotal_excl_tax: Decimal = Decimal('0')
    tax_amount: Decimal = Decimal('0')
    total_incl_tax: Decimal = Decimal('0')
    is_tax_invoice: bool = False
    seller: SellerSnapshot = field(default_factory=SellerSnapshot)
    customer: CustomerSnapshot = field(default_factory=CustomerSnapshot)
    customer_id: Optional[str] = None

    @property
    def includes_tax(self) -> bool:
        return self.tax_amount > 0

    @classmethod
    def from_dict(cls, data: dict) -> 'Receipt':
        """
        Build a Receipt from the receipt JSON stored by the API layer.

        Args:
            data: Receipt document (either the API's GST_* keys or *_tax keys)

        Returns:
            Receipt instance

        Raises:
            KeyError: If the receipt identifier is missing
        """
        receipt_id = _pick(data, 'receipt_id', 'id')
        if receipt_id is None:
            raise KeyError('receipt_id')

        return cls(
            receipt_id=str(receipt_id),
            customer_id=_pick(data, 'customer_id'),
            date_of_purchase=_pick(data, 'date_of_purchase', default=''),
            line_items=tuple(LineItem.from_dict(item) for item in _pick(data, 'line_items', default=[])),
            subtotal_excl_tax=_decimal(_pick(data, 'subtotal_excl_tax', 'subtotal_excl_GST')),
            tax_amount=_decimal(_pick(data, 'tax_amount', 'GST_amount')),
            total_incl_tax=_decimal(_pick(data, 'total_incl_tax', 'total_inc_GST')),
            is_tax_invoice=bool(_pick(data, 'is_tax_invoice', default=False)),
            seller=SellerSnapshot.from_dict(_pick(data, 'seller', 'seller_profile_snapshot')),
            customer=CustomerSnapshot.from_dict(_pick(data, 'customer', 'customer_snapshot')),
        )


@dataclass
class GenerationResult:
    """
    Result of a generate() call.

    message is only set on failure, file_path only on success.
    """

    success: bool
    message: Optional[str] = None
    file_path: Optional[str] = None

    @classmethod
    def ok(cls, file_path) -> 'GenerationResult':
        return cls(success=True, file_path=str(file_path))

    @classmethod
    def failure(cls, message: str) -> 'GenerationResult':
        return cls(success=False, message=message or 'Unknown error during PDF generation')
