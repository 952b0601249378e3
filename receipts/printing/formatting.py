"""
Receipt formatting helpers

Display rules shared by the canvas template and the HTML renderer:
currency and date formatting, placeholders for missing fields, party
blocks and tax labels. Nothing here ever renders None as text.
"""

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from . import styles
from .dto import CustomerSnapshot, LineItem, Receipt, SellerSnapshot
from .interfaces import IContextBuilder


logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')
DATE_FORMAT = '%d/%m/%Y'


def display(value: Any, placeholder: str = styles.PLACEHOLDER) -> str:
    """Return value as display text, or the placeholder if it is missing or blank."""
    if value is None:
        return placeholder
    text = str(value).strip()
    return text or placeholder


def format_currency(amount: Any) -> str:
    """Format an amount as e.g. '$12.50' ('-$3.00' for negatives, 'N/A' if missing)."""
    if amount is None or amount == '':
        return styles.PLACEHOLDER
    try:
        value = Decimal(str(amount)).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return styles.PLACEHOLDER
    symbol = getattr(settings, 'BAKERY_CURRENCY_SYMBOL', '$')
    if value < 0:
        return f"-{symbol}{-value:,.2f}"
    return f"{symbol}{value:,.2f}"


def format_date(value: Optional[str], log_prefix: str = '') -> str:
    """
    Format an ISO-8601 date or datetime string as dd/mm/YYYY.

    Aware datetimes are shown in the configured time zone. Strings that do
    not parse are returned unchanged (with a warning).
    """
    if not value:
        return styles.PLACEHOLDER
    try:
        parsed = parse_datetime(value)
        if parsed is not None:
            if timezone.is_aware(parsed):
                parsed = timezone.localtime(parsed)
            return parsed.strftime(DATE_FORMAT)
        parsed_date = parse_date(value)
        if parsed_date is not None:
            return parsed_date.strftime(DATE_FORMAT)
    except ValueError:
        pass
    logger.warning(f"{log_prefix}:format_date Could not parse date '{value}', using it as-is")
    return value


def document_title(is_tax_invoice: bool) -> str:
    return 'TAX INVOICE' if is_tax_invoice else 'INVOICE'


def tax_name() -> str:
    return getattr(settings, 'BAKERY_TAX_NAME', 'GST')


def tax_column_label() -> str:
    return f"{tax_name()}?"


def subtotal_label() -> str:
    return f"Subtotal (ex {tax_name()}):"


def tax_rate_percent(receipt: Receipt) -> Optional[Decimal]:
    """
    Tax rate to show next to the tax amount.

    BAKERY_TAX_RATE_PERCENT wins when set. Otherwise the rate is derived from
    the tax amount over the tax-applicable line totals (falling back to the
    whole subtotal), rounded to one decimal place.
    """
    configured = getattr(settings, 'BAKERY_TAX_RATE_PERCENT', None)
    if configured is not None:
        return Decimal(str(configured))

    tax = Decimal(str(receipt.tax_amount or 0))
    if tax <= 0:
        return None

    taxable = sum(
        (Decimal(str(item.line_total)) for item in receipt.line_items
         if item.tax_applicable and item.line_total is not None),
        Decimal('0'),
    )
    base = taxable if taxable > 0 else Decimal(str(receipt.subtotal_excl_tax or 0))
    if base <= 0:
        return None
    return (tax / base * 100).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)


def tax_label(receipt: Receipt) -> str:
    """e.g. 'GST Amount (10%):', or 'GST Amount:' when no rate is known."""
    rate = tax_rate_percent(receipt)
    if rate is None:
        return f"{tax_name()} Amount:"
    return f"{tax_name()} Amount ({rate.normalize():f}%):"


def customer_display_name(customer: CustomerSnapshot) -> str:
    """First and last name joined, empty string when neither is set."""
    parts = [customer.first_name, customer.last_name]
    return ' '.join(str(p).strip() for p in parts if p and str(p).strip())


def seller_lines(seller: SellerSnapshot) -> list[str]:
    """Lines of the 'From:' block; the first line is the seller name."""
    tax_id_label = getattr(settings, 'BAKERY_SELLER_TAX_ID_LABEL', 'ABN/ACN')
    lines = [
        display(seller.name),
        display(seller.business_address),
        f"{tax_id_label}: {display(seller.tax_id)}",
        f"Email: {display(seller.contact_email)}",
    ]
    if seller.phone:
        lines.append(f"Phone: {seller.phone}")
    return lines


def customer_lines(customer: CustomerSnapshot) -> list[str]:
    """
    Lines of the 'To:' block; the first line is the customer's name.

    Business customers show the business name, their tax id when present
    and a contact line only when a contact name exists.
    """
    name = customer_display_name(customer)
    if customer.is_business:
        tax_id_label = getattr(settings, 'BAKERY_CUSTOMER_TAX_ID_LABEL', 'ABN')
        lines = [display(customer.business_name)]
        if customer.tax_id:
            lines.append(f"{tax_id_label}: {customer.tax_id}")
        if name:
            lines.append(f"Contact: {name}")
    else:
        lines = [display(name)]

    lines.extend([
        f"Email: {display(customer.email)}",
        f"Phone: {display(customer.phone)}",
        f"Address: {display(customer.address)}",
    ])
    return lines


def line_item_row(item: LineItem) -> dict:
    """Display values for one table row."""
    return {
        'name': display(item.product_name),
        'description': item.description.strip() if item.description and item.description.strip() else None,
        'tax': 'Yes' if item.tax_applicable else 'No',
        'quantity': display(item.quantity),
        'unit_price': format_currency(item.unit_price),
        'line_total': format_currency(item.line_total),
    }


class ReceiptContextBuilder(IContextBuilder):
    """
    Builds the display context for a receipt.

    Used directly by the HTML renderer; the canvas template calls the same
    helpers section by section.
    """

    template_name = 'printing/receipt_invoice.html'

    def build_context(self, obj: Receipt, *, log_prefix: str = '') -> dict:
        receipt = obj
        include_tax = receipt.includes_tax
        return {
            'title': document_title(receipt.is_tax_invoice),
            'receipt_id': receipt.receipt_id,
            'date': format_date(receipt.date_of_purchase, log_prefix),
            'seller_lines': seller_lines(receipt.seller),
            'customer_lines': customer_lines(receipt.customer),
            'include_tax_column': include_tax,
            'tax_column_label': tax_column_label(),
            'rows': [line_item_row(item) for item in receipt.line_items],
            'subtotal_label': subtotal_label(),
            'subtotal': format_currency(receipt.subtotal_excl_tax),
            'tax_label': tax_label(receipt) if include_tax else None,
            'tax_amount': format_currency(receipt.tax_amount) if include_tax else None,
            'total_label': 'Total Amount:',
            'total': format_currency(receipt.total_incl_tax),
            'footer_text': getattr(settings, 'BAKERY_PDF_FOOTER_TEXT', ''),
        }

    def get_template_name(self, obj: Any) -> str:
        return self.template_name
