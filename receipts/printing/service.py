"""
Receipt PDF Service

Selects the configured generator and exposes the operations callers need:
generate a receipt PDF, ask whether it exists, and read it back.
"""

from typing import Optional
import logging
import uuid

from django.conf import settings

from . import templates  # noqa: F401  (registers the built-in templates)
from .dto import GenerationResult, Receipt
from .generator import PdfGenerator
from .html_renderer import HtmlPdfGenerator
from .interfaces import IHtmlRasterizer, IPdfGenerator
from .paths import get_receipt_pdf_path, read_receipt_pdf
from .rasterizers import ChromiumRasterizer, WeasyPrintRasterizer
from .registry import get_template_factory


logger = logging.getLogger(__name__)

RENDERER_CANVAS = 'canvas'
RENDERER_HTML = 'html'

HTML_ENGINES = {
    'chromium': ChromiumRasterizer,
    'weasyprint': WeasyPrintRasterizer,
}

STATUS_READY = 'ready'
STATUS_NOT_FOUND = 'not_found'


def get_rasterizer(engine: Optional[str] = None) -> IHtmlRasterizer:
    """
    Build the HTML print engine named by engine or BAKERY_PDF_HTML_ENGINE.

    Raises:
        ValueError: If the engine name is unknown
        RendererUnavailable: If the engine's library is not installed
    """
    engine = (engine or getattr(settings, 'BAKERY_PDF_HTML_ENGINE', 'chromium')).lower()
    if engine not in HTML_ENGINES:
        raise ValueError(f"Unknown HTML engine '{engine}'. Choose from: {', '.join(sorted(HTML_ENGINES))}")
    return HTML_ENGINES[engine]()


def get_pdf_generator(renderer: Optional[str] = None, html_engine: Optional[str] = None) -> IPdfGenerator:
    """
    Build the receipt PDF generator.

    Args:
        renderer: 'canvas' or 'html' (defaults to BAKERY_PDF_RENDERER)
        html_engine: Print engine for the html renderer (defaults to BAKERY_PDF_HTML_ENGINE)

    Raises:
        ValueError: If the renderer name is unknown
        KeyError: If BAKERY_PDF_TEMPLATE names an unregistered template
    """
    renderer = (renderer or getattr(settings, 'BAKERY_PDF_RENDERER', RENDERER_CANVAS)).lower()
    if renderer == RENDERER_CANVAS:
        template_key = getattr(settings, 'BAKERY_PDF_TEMPLATE', 'default')
        return PdfGenerator(get_template_factory(template_key))
    if renderer == RENDERER_HTML:
        return HtmlPdfGenerator(get_rasterizer(html_engine))
    raise ValueError(f"Unknown PDF renderer '{renderer}'. Choose from: {RENDERER_CANVAS}, {RENDERER_HTML}")


class ReceiptPdfService:
    """
    Entry point for receipt PDFs.

    Usage:
        service = ReceiptPdfService()
        result = service.generate(receipt)
        if service.get_status(receipt.receipt_id) == 'ready':
            pdf_bytes = service.get_content(receipt.receipt_id)
    """

    def __init__(self, generator: Optional[IPdfGenerator] = None):
        self._generator = generator

    @property
    def generator(self) -> IPdfGenerator:
        # Built lazily so a missing HTML engine only fails when it is used
        if self._generator is None:
            self._generator = get_pdf_generator()
        return self._generator

    def generate(self, receipt: Receipt, operation_id: Optional[str] = None) -> GenerationResult:
        operation_id = operation_id or str(uuid.uuid4())
        logger.debug(f"[{operation_id}] Generating PDF for receipt {receipt.receipt_id}")
        return self.generator.generate(receipt, operation_id)

    def get_status(self, receipt_id: str) -> str:
        """
        Report whether a receipt's PDF has been generated.

        Returns:
            'ready' if the PDF exists, otherwise 'not_found'

        Raises:
            InvalidReceiptId: If the receipt id is not a safe file name
        """
        if get_receipt_pdf_path(receipt_id) is None:
            return STATUS_NOT_FOUND
        return STATUS_READY

    def get_content(self, receipt_id: str) -> Optional[bytes]:
        """
        Read a receipt's PDF.

        Returns:
            PDF bytes, or None if it has not been generated

        Raises:
            InvalidReceiptId: If the receipt id is not a safe file name
        """
        return read_receipt_pdf(receipt_id)
