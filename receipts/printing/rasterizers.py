"""
HTML print engines

Adapters that print the receipt HTML to a PDF file. Each raises a
RasterizationError subclass naming the stage that failed.
"""

from pathlib import Path
from typing import Optional
import logging

try:
    from playwright.sync_api import sync_playwright
    PLAYWRIGHT_AVAILABLE = True
except ImportError:
    PLAYWRIGHT_AVAILABLE = False

try:
    from weasyprint import HTML, CSS
    WEASYPRINT_AVAILABLE = True
except (ImportError, OSError):
    WEASYPRINT_AVAILABLE = False

from .errors import (
    BrowserLaunchError,
    ContentInjectionError,
    RasterizeFailedError,
    RendererUnavailable,
)
from .interfaces import IHtmlRasterizer


logger = logging.getLogger(__name__)

# Flags for running Chromium inside containers and restricted hosts
CHROMIUM_LAUNCH_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-gpu',
    '--no-first-run',
    '--no-zygote',
]

PAGE_MARGIN = '50px'


class ChromiumRasterizer(IHtmlRasterizer):
    """
    Prints HTML with headless Chromium driven through Playwright.

    A browser is launched per document and torn down afterwards, so calls
    share nothing. The sync API cannot run inside a running event loop;
    async callers should wrap generate() with asgiref's sync_to_async.
    """

    name = 'Chromium'

    def __init__(
        self,
        paper_format: str = 'A4',
        margin: str = PAGE_MARGIN,
        launch_args: Optional[list] = None,
        timeout_ms: int = 30000,
    ):
        if not PLAYWRIGHT_AVAILABLE:
            raise RendererUnavailable(
                "Playwright is not installed. "
                "Install it with: pip install playwright && playwright install chromium"
            )

        self.paper_format = paper_format
        self.margin = margin
        self.launch_args = CHROMIUM_LAUNCH_ARGS if launch_args is None else launch_args
        self.timeout_ms = timeout_ms

    def rasterize(self, html: str, file_path: Path, log_prefix: str = '') -> None:
        func_prefix = f"{log_prefix}:rasterize"
        driver = browser = page = None
        try:
            try:
                driver = sync_playwright().start()
                browser = driver.chromium.launch(headless=True, args=self.launch_args)
                page = browser.new_page()
            except Exception as e:
                logger.error(f"{func_prefix} Browser launch failed: {e}", exc_info=True)
                raise BrowserLaunchError(f"Browser launch failed: {e}") from e
            logger.debug(f"{func_prefix} Browser launched")

            try:
                page.set_content(html, wait_until='networkidle', timeout=self.timeout_ms)
            except Exception as e:
                logger.error(f"{func_prefix} Setting page content failed: {e}", exc_info=True)
                raise ContentInjectionError(f"Setting page content failed: {e}") from e
            logger.debug(f"{func_prefix} Page content set")

            margin = {side: self.margin for side in ('top', 'right', 'bottom', 'left')}
            try:
                page.pdf(
                    path=str(file_path),
                    format=self.paper_format,
                    print_background=True,
                    margin=margin,
                )
            except Exception as e:
                logger.error(f"{func_prefix} Printing page to PDF failed: {e}", exc_info=True)
                raise RasterizeFailedError(f"Printing page to PDF failed: {e}") from e
            logger.info(f"{func_prefix} PDF written to {file_path}")
        finally:
            self._release(page, 'close', 'page', func_prefix)
            self._release(browser, 'close', 'browser', func_prefix)
            self._release(driver, 'stop', 'playwright driver', func_prefix)

    @staticmethod
    def _release(handle, method: str, label: str, func_prefix: str) -> None:
        """Close one engine resource; a failure here must not stop the others."""
        if handle is None:
            return
        try:
            getattr(handle, method)()
            logger.debug(f"{func_prefix} Closed {label}")
        except Exception as e:
            logger.warning(f"{func_prefix} Error closing {label}: {e}")


class WeasyPrintRasterizer(IHtmlRasterizer):
    """
    Prints HTML with the WeasyPrint engine.

    Supports:
    - Static assets via base_url
    - Print CSS with paged media
    - Extra stylesheets from disk
    """

    name = 'WeasyPrint'

    def __init__(self, stylesheets: Optional[list] = None, base_url: Optional[str] = None):
        """
        Initialize the rasterizer.

        Args:
            stylesheets: Optional list of CSS file paths to include
            base_url: Base URL for resolving relative URLs (images, CSS)
        """
        if not WEASYPRINT_AVAILABLE:
            raise RendererUnavailable(
                "WeasyPrint is not installed. "
                "Install it with: pip install weasyprint"
            )

        self.stylesheets = stylesheets or []
        self.base_url = base_url

    def rasterize(self, html: str, file_path: Path, log_prefix: str = '') -> None:
        func_prefix = f"{log_prefix}:rasterize"
        try:
            html_doc = HTML(string=html, base_url=self.base_url)
            css_list = [CSS(filename=css) for css in self.stylesheets]
            document = html_doc.render(stylesheets=css_list)
        except Exception as e:
            logger.error(f"{func_prefix} Loading HTML failed: {e}", exc_info=True)
            raise ContentInjectionError(f"Loading HTML failed: {e}") from e

        try:
            document.write_pdf(target=str(file_path))
        except Exception as e:
            logger.error(f"{func_prefix} Writing PDF failed: {e}", exc_info=True)
            raise RasterizeFailedError(f"Writing PDF failed: {e}") from e
        logger.info(f"{func_prefix} PDF written to {file_path}")
