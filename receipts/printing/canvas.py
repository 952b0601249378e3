"""
Receipt canvas

A paginated drawing surface over ReportLab's pdfgen canvas, with a top-down
cursor like a word processor's. Pages are buffered until end() so that
footers ("Page X of Y") can be stamped once the page count is known.
"""

import logging
from io import BytesIO
from typing import Callable, Optional

from reportlab.lib import colors
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen.canvas import Canvas

from . import styles
from .errors import PdfDocumentError
from .layout import CursorState, PageGeometry, line_height
from .stream import FILE_CHUNK_SIZE


logger = logging.getLogger(__name__)


class _BufferedPageCanvas(Canvas):
    """
    Canvas that holds finished pages back until save().

    page_decorator(canvas, page_number, page_count) is called for every page
    just before it is emitted.
    """

    def __init__(self, *args, page_decorator: Optional[Callable] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._page_decorator = page_decorator
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        # the current, not yet shown page is the last one
        self._saved_page_states.append(dict(self.__dict__))
        page_count = len(self._saved_page_states)
        for number, state in enumerate(self._saved_page_states, start=1):
            self.__dict__.update(state)
            if self._page_decorator:
                self._page_decorator(self, number, page_count)
            super().showPage()
        super().save()


def draw_footer(canvas, page_size, page_number, page_count, font_name, footer_text=None):
    """
    Draw a footer rule, optional footer text and the page number.

    Args:
        canvas: ReportLab canvas object
        page_size: (width, height) of the page
        page_number: 1-based page number
        page_count: Total number of pages
        font_name: Font to draw the footer with
        footer_text: Optional text drawn on the left
    """
    width, _height = page_size
    margin = styles.PAGE_MARGIN
    y = styles.FOOTER_Y_OFFSET

    canvas.saveState()

    canvas.setStrokeColor(colors.HexColor(styles.COLOR_GREY_LIGHT))
    canvas.setLineWidth(styles.LINE_THIN)
    canvas.line(margin, y + 12, width - margin, y + 12)

    canvas.setFont(font_name, styles.FOOTER_FONT_SIZE)
    canvas.setFillColor(colors.HexColor(styles.COLOR_GREY_DARK))
    if footer_text:
        canvas.drawString(margin, y, footer_text)
    canvas.drawRightString(width - margin, y, f"Page {page_number} of {page_count}")

    canvas.restoreState()


class ReceiptCanvas:
    """
    Drawing surface used by receipt templates.

    Coordinates passed to and returned from this class are measured from the
    top-left corner of the page; conversion to PDF space happens here.
    """

    def __init__(self, page_size=styles.PAGE_SIZE, margin: float = styles.PAGE_MARGIN):
        self.page_width, self.page_height = page_size
        self.geometry = PageGeometry(self.page_width, self.page_height, margin, margin, margin, margin)
        self._buffer = BytesIO()
        self._canvas = _BufferedPageCanvas(
            self._buffer,
            pagesize=page_size,
            page_decorator=self._decorate_page,
        )
        self._font_name: Optional[str] = None
        self._font_size: float = styles.BODY_FONT_SIZE
        self._fill_color = styles.COLOR_BLACK
        self._footer_text: Optional[str] = None
        self._footer_font: Optional[str] = None
        self._stream = None
        self._error_listeners: list[Callable[[Exception], None]] = []
        self._ended = False

        self.y: float = self.geometry.top
        self.page_index = 0

    # -- state -------------------------------------------------------------

    @property
    def font_name(self) -> Optional[str]:
        return self._font_name

    @property
    def _active_font(self) -> str:
        # ReportLab starts every canvas on Helvetica until a font is selected
        return self._font_name or self._canvas._fontname

    @property
    def font_size(self) -> float:
        return self._font_size

    @property
    def page_count(self) -> int:
        return self.page_index + 1

    @property
    def cursor(self) -> CursorState:
        return CursorState(self.geometry.left, self.y, self.page_index)

    def move_to(self, cursor: CursorState) -> None:
        """Move the cursor, adding pages until cursor.page_index is reached."""
        while self.page_index < cursor.page_index:
            self.add_page()
        self.y = cursor.y

    def set_font(self, name: str, size: float) -> None:
        """Select a font. Raises whatever ReportLab raises for an unusable font."""
        self._canvas.setFont(name, size)
        self._font_name = name
        self._font_size = size

    def set_fill_color(self, hex_color: str) -> None:
        self._canvas.setFillColor(colors.HexColor(hex_color))
        self._fill_color = hex_color

    def set_footer(self, text: Optional[str], font_name: str) -> None:
        self._footer_text = text
        self._footer_font = font_name

    # -- measuring ---------------------------------------------------------

    def split_lines(self, text: str, width: float, size: Optional[float] = None) -> list[str]:
        size = size or self._font_size
        return simpleSplit(text, self._active_font, size, width) or ['']

    def height_of(self, text, width: float, size: Optional[float] = None) -> float:
        """Height the text would take when wrapped to width at the current font."""
        if text is None:
            return 0
        size = size or self._font_size
        return len(self.split_lines(str(text), width, size)) * line_height(size)

    def string_width(self, text: str) -> float:
        return self._canvas.stringWidth(text, self._active_font, self._font_size)

    # -- drawing -----------------------------------------------------------

    def text(self, value, x: Optional[float] = None, y: Optional[float] = None,
             width: Optional[float] = None, align: str = 'left', underline: bool = False) -> float:
        """
        Draw text wrapped to width and advance the cursor below it.

        Args:
            value: Text to draw (None draws nothing but an empty line)
            x: Left edge of the text box (defaults to the left margin)
            y: Top of the text box (defaults to the cursor)
            width: Box width (defaults to the remaining printable width)
            align: 'left', 'center' or 'right' within the box
            underline: Underline each drawn line

        Returns:
            Height consumed
        """
        value = '' if value is None else str(value)
        x = self.geometry.left if x is None else x
        if y is not None:
            self.y = y
        if width is None:
            width = self.geometry.right - x

        leading = line_height(self._font_size)
        lines = self.split_lines(value, width)
        for line in lines:
            baseline = self.page_height - self.y - self._font_size
            if align == 'right':
                start = x + width - self.string_width(line)
                self._canvas.drawRightString(x + width, baseline, line)
            elif align == 'center':
                start = x + (width - self.string_width(line)) / 2
                self._canvas.drawCentredString(x + width / 2, baseline, line)
            else:
                start = x
                self._canvas.drawString(x, baseline, line)
            if underline and line:
                underline_y = baseline - 1.5
                self._canvas.setLineWidth(styles.LINE_THIN)
                self._canvas.line(start, underline_y, start + self.string_width(line), underline_y)
            self.on_text_drawn(line, x, self.y)
            self.y += leading
        return leading * len(lines)

    def on_text_drawn(self, line: str, x: float, y: float) -> None:
        """Hook called for every drawn line of text."""
        pass

    def move_down(self, lines: float = 1) -> None:
        self.y += lines * line_height(self._font_size)

    def line(self, x1: float, y1: float, x2: float, y2: float,
             color: str = styles.COLOR_GREY_LIGHT, width: float = styles.LINE_THIN) -> None:
        self._canvas.saveState()
        self._canvas.setStrokeColor(colors.HexColor(color))
        self._canvas.setLineWidth(width)
        self._canvas.line(x1, self.page_height - y1, x2, self.page_height - y2)
        self._canvas.restoreState()

    def add_page(self) -> None:
        self._canvas.showPage()
        self.page_index += 1
        self.y = self.geometry.top
        # ReportLab resets the graphics state on every new page
        if self._font_name:
            self._canvas.setFont(self._font_name, self._font_size)
        self._canvas.setFillColor(colors.HexColor(self._fill_color))

    def _decorate_page(self, canvas, page_number: int, page_count: int) -> None:
        if not self._footer_font:
            return
        draw_footer(
            canvas,
            (self.page_width, self.page_height),
            page_number,
            page_count,
            self._footer_font,
            self._footer_text,
        )

    # -- output ------------------------------------------------------------

    def on_error(self, callback: Callable[[Exception], None]) -> None:
        self._error_listeners.append(callback)

    def pipe(self, stream) -> None:
        """Bind the output stream the finished document will be written to."""
        self._stream = stream

    def end(self) -> None:
        """
        Finish the document and write it to the piped stream.

        Raises:
            PdfDocumentError: If the document cannot be serialized
            PdfStreamError: If the stream fails while writing
        """
        if self._ended:
            raise PdfDocumentError("Document already ended")
        if self._stream is None:
            raise PdfDocumentError("Document has no output stream")
        self._ended = True

        try:
            self._canvas.save()
            data = self._buffer.getvalue()
        except Exception as e:
            for callback in self._error_listeners:
                try:
                    callback(e)
                except Exception:
                    logger.error("PDF document error observer failed", exc_info=True)
            raise PdfDocumentError(f"PDF document error: {e}") from e
        finally:
            self._buffer.close()

        view = memoryview(data)
        for offset in range(0, len(view), FILE_CHUNK_SIZE):
            self._stream.write(view[offset:offset + FILE_CHUNK_SIZE])
        self._stream.end()
