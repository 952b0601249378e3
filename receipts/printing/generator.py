"""
Receipt PDF Generator (ReportLab)

Orchestrates one receipt PDF: builds the document canvas, opens the output
stream, drives the template through its sections in a fixed order, waits
for the stream to finish and removes the partial file on any failure.

Every generate() call works on its own GenerationJob, so one generator
instance can serve any number of calls, sequential or concurrent. There is
no process-wide lock: two calls for the same receipt id race on the same
path and the last writer wins.
"""

import enum
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from .canvas import ReceiptCanvas
from .dto import GenerationResult, Receipt
from .errors import (
    PdfDocumentError,
    PdfGenerationError,
    PdfInitializationError,
    PdfStreamError,
    SectionRenderError,
)
from .fonts import FontSelector
from .formatting import tax_label
from .interfaces import IPdfGenerator, IReceiptTemplate
from .paths import build_pdf_path, delete_partial_pdf, ensure_output_dir, get_pdf_output_dir
from .stream import PdfOutputStream
from .templates import DefaultReceiptTemplate


logger = logging.getLogger(__name__)


class JobState(enum.Enum):
    UNINITIALIZED = 'uninitialized'
    INITIALIZED = 'initialized'
    STREAMING = 'streaming'
    FINALIZED_SUCCESS = 'finalized_success'
    FINALIZED_FAILURE = 'finalized_failure'


@dataclass
class GenerationJob:
    """
    State of one generate() call.

    success only becomes True when the output stream reports that it has
    fully flushed. error holds the first failure reported by any observer.
    """

    operation_id: str
    receipt_id: str
    log_prefix: str
    file_path: Optional[Path] = None
    document: Optional[ReceiptCanvas] = None
    stream: Optional[PdfOutputStream] = None
    template: Optional[IReceiptTemplate] = None
    success: bool = False
    error: Optional[Exception] = None
    state: JobState = JobState.UNINITIALIZED

    def fail(self, error: Exception) -> None:
        if self.error is None:
            self.error = error
        self.success = False

    def release(self) -> None:
        self.document = None
        self.stream = None
        self.template = None


class PdfGenerator(IPdfGenerator):
    """
    Generates receipt PDFs by drawing a receipt template on a ReceiptCanvas.

    Usage:
        generator = PdfGenerator()
        result = generator.generate(receipt, operation_id='op-123')
        if result.success:
            print(result.file_path)
    """

    engine_name = 'ReportLab'

    def __init__(
        self,
        template_factory: Optional[Callable[[], IReceiptTemplate]] = None,
        *,
        output_dir: Optional[Union[str, Path]] = None,
        canvas_factory: Optional[Callable[[], ReceiptCanvas]] = None,
        stream_factory: Optional[Callable[[Path], PdfOutputStream]] = None,
        font_selector_factory: Optional[Callable[..., FontSelector]] = None,
    ):
        """
        Initialize the generator.

        Args:
            template_factory: Returns a fresh template per job (defaults to DefaultReceiptTemplate)
            output_dir: Directory for generated PDFs (defaults to BAKERY_PDF_OUTPUT_DIR)
            canvas_factory: Builds the document canvas (defaults to ReceiptCanvas)
            stream_factory: Opens the output stream for a path (defaults to PdfOutputStream.open)
            font_selector_factory: Builds the per-job font selector (defaults to FontSelector)
        """
        self.template_factory = template_factory or DefaultReceiptTemplate
        self._output_dir = output_dir
        self.canvas_factory = canvas_factory or ReceiptCanvas
        self.stream_factory = stream_factory or PdfOutputStream.open
        self.font_selector_factory = font_selector_factory or FontSelector

    @property
    def output_dir(self) -> Path:
        if self._output_dir is not None:
            return Path(self._output_dir)
        return get_pdf_output_dir()

    def generate(self, receipt: Receipt, operation_id: str) -> GenerationResult:
        try:
            job = self._initialize(receipt, operation_id)
        except PdfGenerationError as e:
            return GenerationResult.failure(str(e))

        try:
            self._setup_stream(job)
            self._render_sections(job, receipt)
            self._finalize(job)
        except Exception as e:
            job.fail(e)
            logger.error(
                f"{job.log_prefix} ERROR during PDF generation orchestration: {e}",
                exc_info=True
            )
            self._cleanup_failed_pdf(job)
            job.state = JobState.FINALIZED_FAILURE
            return GenerationResult.failure(str(job.error))

        job.state = JobState.FINALIZED_SUCCESS
        file_path = job.file_path
        job.release()
        logger.info(f"{job.log_prefix} PDF generation successful: {file_path}")
        return GenerationResult.ok(file_path)

    def _initialize(self, receipt: Receipt, operation_id: str) -> GenerationJob:
        receipt_id = getattr(receipt, 'receipt_id', None) or 'unknown'
        log_prefix = f"[{operation_id} {self.engine_name} {receipt_id}]"
        job = GenerationJob(operation_id=operation_id, receipt_id=receipt_id, log_prefix=log_prefix)

        try:
            job.file_path = build_pdf_path(self.output_dir, receipt_id)
        except PdfGenerationError as e:
            logger.error(f"{log_prefix} Cannot derive PDF path: {e}")
            raise

        logger.info(f"{log_prefix} Initializing PDF generation for path: {job.file_path}")
        try:
            job.document = self.canvas_factory()
            job.template = self.template_factory()
            job.template.bind(job.document, self.font_selector_factory(log_prefix=log_prefix), log_prefix)
        except Exception as e:
            logger.error(f"{log_prefix} FATAL: Error instantiating PDF document: {e}", exc_info=True)
            raise PdfInitializationError(f"PDF library initialization error: {e}") from e

        job.state = JobState.INITIALIZED
        logger.debug(f"{log_prefix} PDF document instantiated and passed to template")
        return job

    def _setup_stream(self, job: GenerationJob) -> None:
        func_prefix = f"{job.log_prefix}:_setup_stream"
        ensure_output_dir(self.output_dir, job.log_prefix)

        logger.debug(f"{func_prefix} Creating write stream for {job.file_path}")
        job.stream = self.stream_factory(job.file_path)

        def on_finish():
            logger.info(f"{func_prefix} PDF stream finished.")
            job.success = True

        def on_stream_error(error):
            logger.error(f"{func_prefix} PDF stream error: {error}")
            job.fail(PdfStreamError(f"PDF stream error: {error}"))

        def on_document_error(error):
            logger.error(f"{func_prefix} PDF document error: {error}")
            job.fail(PdfDocumentError(f"PDF document error: {error}"))

        job.stream.on_finish(on_finish)
        job.stream.on_error(on_stream_error)
        job.document.on_error(on_document_error)

        logger.debug(f"{func_prefix} Piping PDF document to stream...")
        job.document.pipe(job.stream)
        job.state = JobState.STREAMING

    def _render_sections(self, job: GenerationJob, receipt: Receipt) -> None:
        """Draw every section in order; each relies on the cursor left by the previous one."""
        logger.debug(f"{job.log_prefix} Adding content to PDF via template...")
        template = job.template
        include_tax = receipt.includes_tax

        sections = [
            ('header', lambda: template.add_header(receipt.is_tax_invoice)),
            ('seller info', lambda: template.add_seller_info(receipt.seller)),
            ('customer info', lambda: template.add_customer_info(receipt.customer)),
            ('invoice info', lambda: template.add_invoice_info(receipt.receipt_id, receipt.date_of_purchase)),
            ('items table', lambda: template.add_items_table(receipt.line_items, include_tax)),
            ('totals', lambda: template.add_totals(
                receipt.subtotal_excl_tax,
                receipt.tax_amount,
                receipt.total_incl_tax,
                tax_label(receipt) if include_tax else None,
            )),
            ('footer', lambda: template.add_footer()),
        ]

        for name, draw in sections:
            try:
                draw()
            except Exception as e:
                raise SectionRenderError(name, e) from e
            if job.error is not None:
                raise job.error

    def _finalize(self, job: GenerationJob) -> None:
        func_prefix = f"{job.log_prefix}:_finalize"
        if job.document is None or job.stream is None:
            message = "Document not initialized." if job.document is None else "Stream not initialized."
            logger.error(f"{func_prefix} Finalize called prematurely. {message}")
            raise PdfDocumentError(message)

        logger.info(f"{func_prefix} Finalizing PDF document ({job.document.page_count} page(s))...")
        job.document.end()

        if job.error is not None:
            raise job.error
        if not job.success:
            raise PdfStreamError("PDF generation failed: finalize completed but the stream did not finish")
        logger.info(f"{func_prefix} Stream finished successfully during finalize.")

    def _cleanup_failed_pdf(self, job: GenerationJob) -> None:
        """
        Remove whatever part of the PDF was written.

        Best effort: problems are logged and never raised, so the caller
        sees the error that caused the cleanup.
        """
        func_prefix = f"{job.log_prefix}:_cleanup_failed_pdf"
        if job.file_path is None:
            logger.debug(f"{func_prefix} Cleanup called without a file path, initialization failed early.")
            job.release()
            return

        logger.warning(f"{func_prefix} Attempting cleanup for: {job.file_path}")
        try:
            if job.stream is not None and job.stream.writable():
                logger.debug(f"{func_prefix} Closing potentially open write stream...")
                try:
                    job.stream.close()
                except Exception as e:
                    logger.error(f"{func_prefix} Error closing stream during cleanup: {e}")
            else:
                logger.debug(f"{func_prefix} No active/writable stream to close or already closed.")

            delete_partial_pdf(job.file_path, job.log_prefix)
        except Exception:
            logger.error(f"{func_prefix} Error during PDF cleanup process itself", exc_info=True)
        finally:
            job.release()
