"""
PDF Styling

Geometry, typography and colours for receipt PDFs. Column offsets are in
points relative to the page's left margin.
"""

from reportlab.lib.pagesizes import A4

PAGE_SIZE = A4
PAGE_MARGIN = 50

# Built-in PDF base-14 fonts, no font files needed
FONT_REGULAR = 'Helvetica'
FONT_BOLD = 'Helvetica-Bold'
FALLBACK_FONT_REGULAR = 'Courier'
FALLBACK_FONT_BOLD = 'Courier-Bold'

HEADER_FONT_SIZE = 20
SECTION_LABEL_FONT_SIZE = 12
BODY_FONT_SIZE = 10
TABLE_FONT_SIZE = 10
DESCRIPTION_FONT_SIZE = 8
TOTALS_FONT_SIZE = 10
TOTALS_TOTAL_FONT_SIZE = 12
FOOTER_FONT_SIZE = 8

LINE_HEIGHT_FACTOR = 1.2

COLOR_BLACK = '#000000'
COLOR_GREY_DARK = '#666666'
COLOR_GREY_MEDIUM = '#aaaaaa'
COLOR_GREY_LIGHT = '#cccccc'

LINE_THIN = 0.5

ITEM_COL_X_OFFSET = 0
TAX_COL_X_OFFSET = 200
QTY_COL_X_OFFSET = 270
PRICE_COL_X_OFFSET = 350
TOTAL_COL_X_OFFSET = 430
COLUMN_GAP = 10

ROW_PADDING = 3

# Space kept free below the table so the totals block can follow it
TABLE_BOTTOM_MARGIN = 70
TOTALS_SECTION_HEIGHT_ESTIMATE = 60
TOTALS_BOTTOM_SLACK = 20
TOTALS_AMOUNT_WIDTH = 150

FOOTER_Y_OFFSET = 25

PLACEHOLDER = 'N/A'
