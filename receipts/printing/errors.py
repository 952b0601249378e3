"""
Receipt printing exceptions

These never cross the public generate() boundary; generators collapse them
into a failed GenerationResult and keep the distinction in the logs.
"""


class PdfGenerationError(Exception):
    """Base exception for receipt PDF generation errors"""
    pass


class PdfInitializationError(PdfGenerationError):
    """Raised when the document canvas cannot be constructed"""
    pass


class InvalidReceiptId(PdfGenerationError, ValueError):
    """Raised when a receipt identifier cannot be used as a file name"""
    pass


class PdfOutputError(PdfGenerationError):
    """Raised when the output directory or file cannot be prepared"""
    pass


class PdfStreamError(PdfGenerationError):
    """Raised when writing the document to its output stream fails"""
    pass


class PdfDocumentError(PdfGenerationError):
    """Raised when the document itself fails to serialize"""
    pass


class FontUnavailableError(PdfGenerationError):
    """Raised when neither the primary nor the fallback font can be selected"""
    pass


class SectionRenderError(PdfGenerationError):
    """Raised when a template section fails to draw"""

    def __init__(self, section: str, cause: Exception):
        self.section = section
        self.cause = cause
        super().__init__(f"Failed to render {section}: {cause}")


class RendererUnavailable(PdfGenerationError):
    """Raised when a configured rendering engine is not installed"""
    pass


class RasterizationError(PdfGenerationError):
    """Base exception for HTML print engine failures"""
    stage = 'rasterize'


class BrowserLaunchError(RasterizationError):
    """Raised when the headless browser process cannot be started"""
    stage = 'launch'


class ContentInjectionError(RasterizationError):
    """Raised when the HTML document cannot be loaded into the engine"""
    stage = 'content'


class RasterizeFailedError(RasterizationError):
    """Raised when the engine fails to print the loaded document to PDF"""
    stage = 'pdf'
