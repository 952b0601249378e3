"""
HTML receipt PDF generator

Renders the receipt through a Django template and hands the HTML to a
print engine. Same contract as PdfGenerator: one file per receipt, a
GenerationResult back, no partial file left behind on failure.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from django.template.loader import render_to_string

from .dto import GenerationResult, Receipt
from .errors import ContentInjectionError, RasterizeFailedError
from .formatting import ReceiptContextBuilder
from .interfaces import IContextBuilder, IHtmlRasterizer, IPdfGenerator
from .paths import build_pdf_path, delete_partial_pdf, ensure_output_dir, get_pdf_output_dir


logger = logging.getLogger(__name__)


class HtmlPdfGenerator(IPdfGenerator):
    """
    Generates receipt PDFs from HTML.

    Usage:
        generator = HtmlPdfGenerator(WeasyPrintRasterizer())
        result = generator.generate(receipt, operation_id='op-123')
    """

    def __init__(
        self,
        rasterizer: IHtmlRasterizer,
        context_builder: Optional[IContextBuilder] = None,
        *,
        output_dir: Optional[Union[str, Path]] = None,
    ):
        self.rasterizer = rasterizer
        self.context_builder = context_builder or ReceiptContextBuilder()
        self._output_dir = output_dir

    @property
    def engine_name(self) -> str:
        return self.rasterizer.name

    @property
    def output_dir(self) -> Path:
        if self._output_dir is not None:
            return Path(self._output_dir)
        return get_pdf_output_dir()

    def render_html(self, receipt: Receipt, log_prefix: str = '') -> str:
        context = self.context_builder.build_context(receipt, log_prefix=log_prefix)
        template_name = self.context_builder.get_template_name(receipt)
        try:
            return render_to_string(template_name, context)
        except Exception as e:
            logger.error(f"{log_prefix}:render_html Failed to render template {template_name}: {e}", exc_info=True)
            raise ContentInjectionError(f"Failed to render receipt HTML: {e}") from e

    def generate(self, receipt: Receipt, operation_id: str) -> GenerationResult:
        receipt_id = getattr(receipt, 'receipt_id', None) or 'unknown'
        log_prefix = f"[{operation_id} {self.engine_name} {receipt_id}]"
        file_path = None

        try:
            file_path = build_pdf_path(self.output_dir, receipt_id)
            logger.info(f"{log_prefix} Generating PDF from HTML for path: {file_path}")
            ensure_output_dir(self.output_dir, log_prefix)

            html = self.render_html(receipt, log_prefix)
            logger.debug(f"{log_prefix} Rendered {len(html)} characters of HTML")

            self.rasterizer.rasterize(html, file_path, log_prefix)
            if not file_path.is_file():
                raise RasterizeFailedError("Print engine reported success but no PDF was written")
        except Exception as e:
            logger.error(f"{log_prefix} ERROR during HTML PDF generation: {e}", exc_info=True)
            delete_partial_pdf(file_path, log_prefix)
            return GenerationResult.failure(f"Failed to generate PDF using {self.engine_name}: {e}")

        logger.info(f"{log_prefix} PDF generation successful: {file_path}")
        return GenerationResult.ok(file_path)
