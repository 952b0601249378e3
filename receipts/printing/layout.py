"""
Receipt layout computation

Pure page-geometry arithmetic for the receipt table and totals block. Nothing
here touches a canvas: positions are computed as CursorState values and the
template turns them into draw calls. y grows downwards from the page top.
"""

from dataclasses import dataclass, field
from typing import Sequence

from . import styles


@dataclass(frozen=True)
class CursorState:
    x: float
    y: float
    page_index: int = 0

    def moved(self, dy: float) -> 'CursorState':
        return CursorState(self.x, self.y + dy, self.page_index)


@dataclass(frozen=True)
class PageGeometry:
    width: float
    height: float
    margin_top: float = styles.PAGE_MARGIN
    margin_right: float = styles.PAGE_MARGIN
    margin_bottom: float = styles.PAGE_MARGIN
    margin_left: float = styles.PAGE_MARGIN

    @property
    def left(self) -> float:
        return self.margin_left

    @property
    def right(self) -> float:
        return self.width - self.margin_right

    @property
    def top(self) -> float:
        return self.margin_top

    @property
    def content_bottom(self) -> float:
        return self.height - self.margin_bottom

    @property
    def table_bottom(self) -> float:
        """Lowest y a table row may reach; leaves room for the totals block."""
        return self.content_bottom - styles.TABLE_BOTTOM_MARGIN

    @property
    def totals_bottom(self) -> float:
        return self.content_bottom - styles.TOTALS_BOTTOM_SLACK

    @property
    def printable_width(self) -> float:
        return self.right - self.left

    @property
    def printable_height(self) -> float:
        return self.content_bottom - self.top

    def top_of_page(self, page_index: int) -> CursorState:
        return CursorState(self.left, self.top, page_index)


@dataclass(frozen=True)
class TableColumn:
    key: str
    label: str
    x: float
    width: float
    align: str = 'left'

    @property
    def end(self) -> float:
        return self.x + self.width


@dataclass(frozen=True)
class RowPlacement:
    index: int
    page_index: int
    y: float
    height: float


@dataclass
class TablePlan:
    header_positions: list = field(default_factory=list)
    rows: list = field(default_factory=list)
    end: CursorState = None

    @property
    def page_count(self) -> int:
        pages = {pos.page_index for pos in self.header_positions}
        pages.update(row.page_index for row in self.rows)
        return len(pages)


def line_height(font_size: float) -> float:
    return font_size * styles.LINE_HEIGHT_FACTOR


def row_height(text_height: float) -> float:
    return text_height + styles.ROW_PADDING


def compute_table_columns(geometry: PageGeometry, include_tax_column: bool,
                          tax_label: str = 'Tax?') -> list[TableColumn]:
    """
    Compute the line-items table columns.

    When the tax column is left out, the quantity, unit price and line total
    columns each move one slot left and the line total absorbs the freed
    width, so the table always spans the full printable width.

    Args:
        geometry: Page geometry
        include_tax_column: Whether to include the tax-applicability column
        tax_label: Header text for the tax-applicability column

    Returns:
        Columns in left-to-right order
    """
    start = geometry.left
    end = geometry.right

    item_x = start + styles.ITEM_COL_X_OFFSET
    tax_x = start + styles.TAX_COL_X_OFFSET
    qty_x = start + styles.QTY_COL_X_OFFSET
    price_x = start + styles.PRICE_COL_X_OFFSET
    total_x = start + styles.TOTAL_COL_X_OFFSET

    if include_tax_column:
        slots = [qty_x, price_x, total_x]
    else:
        slots = [tax_x, qty_x, price_x]
    eff_qty_x, eff_price_x, eff_total_x = slots

    gap = styles.COLUMN_GAP
    # item column stretches to the gap before the next column in both layouts
    columns = [TableColumn('item', 'Item', item_x, tax_x - item_x, 'left')]
    if include_tax_column:
        columns.append(TableColumn('tax', tax_label, tax_x, qty_x - tax_x, 'center'))
    columns.extend([
        TableColumn('quantity', 'Qty', eff_qty_x, eff_price_x - eff_qty_x, 'right'),
        TableColumn('unit_price', 'Unit Price', eff_price_x, eff_total_x - eff_price_x, 'right'),
        TableColumn('line_total', 'Line Total', eff_total_x, end - eff_total_x, 'right'),
    ])
    return [
        TableColumn(col.key, col.label, col.x, col.width - (gap if col.key != 'line_total' else 0), col.align)
        for col in columns
    ]


def table_width(columns: Sequence[TableColumn]) -> float:
    return columns[-1].end - columns[0].x


def paginate_rows(row_heights: Sequence[float], cursor: CursorState,
                  geometry: PageGeometry, header_height: float) -> TablePlan:
    """
    Place table rows on pages without splitting any row.

    A header is placed at the start of the table and again at the top of
    every page the table continues onto. A row that does not fit above
    geometry.table_bottom moves to a fresh page, unless it is already the
    first row under a header at the top of a page (a row taller than a
    whole page is placed there and allowed to overflow).

    Args:
        row_heights: Height of each row, in input order
        cursor: Cursor where the table starts
        geometry: Page geometry
        header_height: Height of the header row

    Returns:
        TablePlan with header positions, row placements and the cursor
        just below the last row
    """
    plan = TablePlan()
    bottom = geometry.table_bottom

    first_height = row_heights[0] if row_heights else 0
    if cursor.y > geometry.top and cursor.y + header_height + first_height > bottom:
        cursor = geometry.top_of_page(cursor.page_index + 1)

    header = CursorState(geometry.left, cursor.y, cursor.page_index)
    plan.header_positions.append(header)
    y = header.y + header_height
    page = header.page_index
    rows_on_page = 0

    for index, height in enumerate(row_heights):
        header_at_top = plan.header_positions[-1].y <= geometry.top
        if y + height > bottom and not (rows_on_page == 0 and header_at_top):
            page += 1
            header = geometry.top_of_page(page)
            plan.header_positions.append(header)
            y = header.y + header_height
            rows_on_page = 0

        plan.rows.append(RowPlacement(index, page, y, height))
        y += height
        rows_on_page += 1

    plan.end = CursorState(geometry.left, y, page)
    return plan


def place_totals_block(cursor: CursorState, geometry: PageGeometry,
                       block_height: float = styles.TOTALS_SECTION_HEIGHT_ESTIMATE) -> CursorState:
    """Return where the totals block starts, moving to a new page if it would not fit."""
    if cursor.y + block_height > geometry.totals_bottom:
        return geometry.top_of_page(cursor.page_index + 1)
    return cursor
