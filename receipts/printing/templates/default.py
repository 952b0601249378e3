"""
Default Receipt Template

Draws a receipt top to bottom on a ReceiptCanvas: title, seller and
customer blocks, invoice details, the line-items table and the totals.
"""

import logging
from decimal import Decimal
from typing import Optional, Sequence

from django.conf import settings

from .. import styles
from ..dto import CustomerSnapshot, LineItem, SellerSnapshot
from ..formatting import (
    customer_lines,
    document_title,
    format_currency,
    format_date,
    line_item_row,
    seller_lines,
    subtotal_label,
    tax_column_label,
    tax_name,
)
from ..interfaces import IReceiptTemplate
from ..layout import (
    compute_table_columns,
    line_height,
    paginate_rows,
    place_totals_block,
    row_height,
)


logger = logging.getLogger(__name__)


class DefaultReceiptTemplate(IReceiptTemplate):
    """Template for receipts (default layout)"""

    def _use_font(self, size: float, bold: bool = False) -> str:
        return self.fonts.apply(self.canvas, size, bold=bold)

    def add_header(self, is_tax_invoice: bool) -> None:
        logger.debug(f"{self.log_prefix}:add_header Adding header. Is tax invoice: {is_tax_invoice}")
        self._use_font(styles.HEADER_FONT_SIZE, bold=True)
        self.canvas.text(document_title(is_tax_invoice), align='center')
        self._use_font(styles.BODY_FONT_SIZE)
        self.canvas.move_down()

    def _add_party_block(self, label: str, lines: list[str]) -> None:
        self._use_font(styles.SECTION_LABEL_FONT_SIZE, bold=True)
        self.canvas.text(label)
        self._use_font(styles.BODY_FONT_SIZE)
        for line in lines:
            self.canvas.text(line)
        self.canvas.move_down()

    def add_seller_info(self, seller: SellerSnapshot) -> None:
        logger.debug(f"{self.log_prefix}:add_seller_info Adding seller info")
        self._add_party_block('From:', seller_lines(seller))

    def add_customer_info(self, customer: CustomerSnapshot) -> None:
        logger.debug(
            f"{self.log_prefix}:add_customer_info Adding customer info ({customer.customer_type})"
        )
        self._add_party_block('To:', customer_lines(customer))

    def add_invoice_info(self, receipt_id: str, date_of_purchase: str) -> None:
        logger.debug(
            f"{self.log_prefix}:add_invoice_info Adding invoice details ID: {receipt_id}, "
            f"Date: {date_of_purchase}"
        )
        self._use_font(styles.BODY_FONT_SIZE)
        self.canvas.text(f"Invoice ID: {receipt_id}")
        self.canvas.text(f"Date: {format_date(date_of_purchase, self.log_prefix)}")
        self.canvas.move_down(1.5)

    # -- line items --------------------------------------------------------

    def _draw_table_header(self, columns) -> None:
        y = self.canvas.y
        self._use_font(styles.TABLE_FONT_SIZE, bold=True)
        for column in columns:
            self.canvas.text(column.label, column.x, y, width=column.width,
                             align=column.align, underline=True)
        self.canvas.y = y + self._header_height()
        self._use_font(styles.TABLE_FONT_SIZE)

    def _header_height(self) -> float:
        # one text line plus half a line of space
        return line_height(styles.TABLE_FONT_SIZE) * 1.5

    def _measure_row(self, row: dict, item_width: float) -> float:
        height = self.canvas.height_of(row['name'], item_width, size=styles.TABLE_FONT_SIZE)
        if row['description']:
            height += self.canvas.height_of(row['description'], item_width, size=styles.DESCRIPTION_FONT_SIZE)
        return row_height(max(height, line_height(styles.TABLE_FONT_SIZE)))

    def _draw_row(self, row: dict, columns, y: float) -> None:
        item_col = columns[0]
        self._use_font(styles.TABLE_FONT_SIZE)
        self.canvas.text(row['name'], item_col.x, y, width=item_col.width)
        if row['description']:
            self._use_font(styles.DESCRIPTION_FONT_SIZE)
            self.canvas.set_fill_color(styles.COLOR_GREY_DARK)
            self.canvas.text(row['description'], item_col.x, width=item_col.width)
            self.canvas.set_fill_color(styles.COLOR_BLACK)
            self._use_font(styles.TABLE_FONT_SIZE)

        for column in columns[1:]:
            self.canvas.text(row[column.key], column.x, y, width=column.width, align=column.align)

    def add_items_table(self, items: Sequence[LineItem], include_tax_column: bool) -> None:
        """
        Draw the line-items table, paging as needed.

        Rows are never split across pages and the header is repeated at the
        top of every page the table continues onto.
        """
        logger.debug(
            f"{self.log_prefix}:add_items_table Adding {len(items)} line items. "
            f"Include tax column: {include_tax_column}"
        )
        geometry = self.canvas.geometry
        columns = compute_table_columns(geometry, include_tax_column, tax_column_label())
        rows = [line_item_row(item) for item in items]

        self._use_font(styles.TABLE_FONT_SIZE)
        heights = [self._measure_row(row, columns[0].width) for row in rows]
        plan = paginate_rows(heights, self.canvas.cursor, geometry, self._header_height())

        headers = iter(plan.header_positions)
        self.canvas.move_to(next(headers))
        self._draw_table_header(columns)

        for placement in plan.rows:
            if placement.page_index > self.canvas.page_index:
                header = next(headers)
                logger.debug(
                    f"{self.log_prefix}:add_items_table Adding new page before item "
                    f"{placement.index + 1}. Page bottom limit: {geometry.table_bottom}"
                )
                self.canvas.move_to(header)
                self._draw_table_header(columns)
            self._draw_row(rows[placement.index], columns, placement.y)

        self.canvas.move_to(plan.end)
        self.canvas.move_down(0.5)
        logger.debug(
            f"{self.log_prefix}:add_items_table Drawing separator line before totals at Y={self.canvas.y}"
        )
        self.canvas.line(columns[0].x, self.canvas.y, columns[-1].end, self.canvas.y,
                         color=styles.COLOR_GREY_LIGHT)
        self.canvas.move_down(0.5)

    # -- totals ------------------------------------------------------------

    def _draw_total_line(self, label: str, amount, y: float, totals_x: float) -> float:
        geometry = self.canvas.geometry
        self.canvas.text(label, geometry.left, y, width=totals_x - geometry.left - styles.COLUMN_GAP,
                         align='right')
        self.canvas.text(format_currency(amount), totals_x, y, width=geometry.right - totals_x,
                         align='right')
        return self.canvas.y

    def add_totals(self, subtotal, tax_amount, total, tax_label: Optional[str] = None) -> None:
        logger.debug(
            f"{self.log_prefix}:add_totals Adding totals: Sub={subtotal}, Tax={tax_amount}, Total={total}"
        )
        geometry = self.canvas.geometry
        start = place_totals_block(self.canvas.cursor, geometry)
        if start.page_index > self.canvas.page_index:
            logger.debug(
                f"{self.log_prefix}:add_totals Adding new page before totals section at "
                f"Y={self.canvas.y}. Page bottom limit: {geometry.totals_bottom}"
            )
        self.canvas.move_to(start)

        totals_x = geometry.right - styles.TOTALS_AMOUNT_WIDTH
        self._use_font(styles.TOTALS_FONT_SIZE)
        y = self._draw_total_line(subtotal_label(), subtotal, self.canvas.y, totals_x) + 2

        if Decimal(str(tax_amount or 0)) > 0:
            label = tax_label or f"{tax_name()} Amount:"
            y = self._draw_total_line(label, tax_amount, y, totals_x) + 2

        line_y = y + 5
        self.canvas.line(totals_x - 20, line_y, geometry.right, line_y, color=styles.COLOR_GREY_MEDIUM)

        self._use_font(styles.TOTALS_TOTAL_FONT_SIZE, bold=True)
        self._draw_total_line('Total Amount:', total, line_y + 5, totals_x)

        self._use_font(styles.BODY_FONT_SIZE)
        self.canvas.move_down()

    def add_footer(self, notes: Optional[str] = None) -> None:
        text = notes if notes is not None else getattr(settings, 'BAKERY_PDF_FOOTER_TEXT', '')
        font_name = self._use_font(styles.FOOTER_FONT_SIZE)
        self.canvas.set_footer(text, font_name)
        self._use_font(styles.BODY_FONT_SIZE)
