"""
Font selection with fallback

The primary typeface is tried first; if it cannot be selected (missing font
metrics or font file), the monospace fallback is used for the rest of the
job and a warning is logged once for that font.
"""

import logging

from django.conf import settings
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont

from . import styles
from .errors import FontUnavailableError


logger = logging.getLogger(__name__)


def ensure_font_registered(font_name: str) -> None:
    """
    Register a configured TrueType font with ReportLab on first use.

    Fonts listed in BAKERY_PDF_FONTS are registered lazily so that a missing
    optional font file never prevents this module from importing. Names that
    are not configured (e.g. the built-in base-14 fonts) are left alone.

    Raises:
        Exception: Whatever ReportLab raises for an unreadable font file
    """
    font_files = getattr(settings, 'BAKERY_PDF_FONTS', None) or {}
    font_path = font_files.get(font_name)
    if not font_path:
        return
    if font_name in pdfmetrics.getRegisteredFontNames():
        return
    pdfmetrics.registerFont(TTFont(font_name, str(font_path)))
    logger.info(f"Registered font '{font_name}' from {font_path}")


class FontSelector:
    """
    Selects fonts on a canvas for one generation job.

    Not shared between jobs: the set of fonts that already failed is
    per-job state.
    """

    def __init__(self, log_prefix: str = '', regular: str = None, bold: str = None,
                 fallback_regular: str = styles.FALLBACK_FONT_REGULAR,
                 fallback_bold: str = styles.FALLBACK_FONT_BOLD):
        self.log_prefix = log_prefix
        self.regular = regular or getattr(settings, 'BAKERY_PDF_FONT_REGULAR', styles.FONT_REGULAR)
        self.bold = bold or getattr(settings, 'BAKERY_PDF_FONT_BOLD', styles.FONT_BOLD)
        self.fallback_regular = fallback_regular
        self.fallback_bold = fallback_bold
        self._failed = set()

    @property
    def failed_fonts(self) -> frozenset:
        return frozenset(self._failed)

    def apply(self, canvas, size: float, bold: bool = False) -> str:
        """
        Select the primary font (or its fallback) at the given size.

        Args:
            canvas: ReceiptCanvas to select the font on
            size: Font size in points
            bold: Select the bold face instead of the regular one

        Returns:
            Name of the font that was selected

        Raises:
            FontUnavailableError: If both the primary and fallback fonts fail
        """
        primary = self.bold if bold else self.regular
        fallback = self.fallback_bold if bold else self.fallback_regular

        if primary not in self._failed:
            try:
                ensure_font_registered(primary)
                canvas.set_font(primary, size)
                return primary
            except Exception as e:
                self._failed.add(primary)
                logger.warning(
                    f"{self.log_prefix}:fonts Could not select font '{primary}' ({e}); "
                    f"falling back to '{fallback}'"
                )

        try:
            ensure_font_registered(fallback)
            canvas.set_font(fallback, size)
        except Exception as e:
            logger.error(
                f"{self.log_prefix}:fonts Fallback font '{fallback}' also failed",
                exc_info=True
            )
            raise FontUnavailableError(
                f"Font '{primary}' and fallback font '{fallback}' are both unavailable: {e}"
            ) from e
        return fallback
