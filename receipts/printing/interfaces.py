"""
Interfaces for receipt printing

Defines the contracts shared by the two generator implementations (ReportLab
canvas and HTML print engine), the receipt templates and the HTML engines.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional, Sequence

from .dto import CustomerSnapshot, GenerationResult, LineItem, Receipt, SellerSnapshot


class IPdfGenerator(ABC):
    """
    Interface for receipt PDF generators.

    Implementations write <output dir>/<receipt_id>.pdf and never leave a
    partial file behind when they fail.
    """

    @abstractmethod
    def generate(self, receipt: Receipt, operation_id: str) -> GenerationResult:
        """
        Generate the PDF for a receipt.

        Args:
            receipt: Fully computed receipt
            operation_id: Caller-supplied correlation id, used only in logs

        Returns:
            GenerationResult; failures are reported here, never raised
        """
        pass


class IReceiptTemplate(ABC):
    """
    Interface for receipt templates drawn on a ReceiptCanvas.

    Sections are drawn one at a time; each starts at the cursor the previous
    section left behind.
    """

    canvas = None
    fonts = None
    log_prefix = ''

    def bind(self, canvas, fonts, log_prefix: str = '') -> None:
        """Attach the template to a job's canvas and font selector."""
        self.canvas = canvas
        self.fonts = fonts
        self.log_prefix = log_prefix

    @abstractmethod
    def add_header(self, is_tax_invoice: bool) -> None:
        pass

    @abstractmethod
    def add_seller_info(self, seller: SellerSnapshot) -> None:
        pass

    @abstractmethod
    def add_customer_info(self, customer: CustomerSnapshot) -> None:
        pass

    @abstractmethod
    def add_invoice_info(self, receipt_id: str, date_of_purchase: str) -> None:
        pass

    @abstractmethod
    def add_items_table(self, items: Sequence[LineItem], include_tax_column: bool) -> None:
        pass

    @abstractmethod
    def add_totals(self, subtotal, tax_amount, total, tax_label: Optional[str] = None) -> None:
        pass

    def add_footer(self, notes: Optional[str] = None) -> None:
        """Optional: footer stamped on every page when the document ends"""
        pass


class IHtmlRasterizer(ABC):
    """
    Interface for HTML print engines.

    Implementations print a self-contained HTML document to a PDF file and
    release every engine resource they acquired, whatever stage failed.
    """

    name = 'html'

    @abstractmethod
    def rasterize(self, html: str, file_path: Path, log_prefix: str = '') -> None:
        """
        Print HTML to a PDF file.

        Args:
            html: Self-contained HTML document
            file_path: Where to write the PDF
            log_prefix: Job log prefix

        Raises:
            RasterizationError: Subclass naming the failed stage
        """
        pass


class IContextBuilder(ABC):
    """
    Interface for building template contexts from objects.
    """

    @abstractmethod
    def build_context(self, obj: Any, *, log_prefix: str = '') -> dict:
        """
        Build template context from an object.

        Args:
            obj: The object to build context from
            log_prefix: Job log prefix for warnings raised while formatting

        Returns:
            Dictionary with template context
        """
        pass

    def get_template_name(self, obj: Any) -> str:
        """
        Get template name for an object (optional).

        Args:
            obj: The object to get template for

        Returns:
            Template name/path
        """
        raise NotImplementedError("Subclass must implement get_template_name if needed")
