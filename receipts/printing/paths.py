"""
Path handling for generated receipt PDFs

One file per receipt: <BAKERY_PDF_OUTPUT_DIR>/<receipt_id>.pdf
"""

import logging
import re
from pathlib import Path
from typing import Optional, Union

from django.conf import settings

from .errors import InvalidReceiptId, PdfOutputError


logger = logging.getLogger(__name__)

# UUIDs and other simple identifiers; nothing that can leave the directory
RECEIPT_ID_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9_-]{0,127}$')


def get_pdf_output_dir() -> Path:
    return Path(getattr(settings, 'BAKERY_PDF_OUTPUT_DIR', settings.BASE_DIR / 'data' / 'receipt-pdfs'))


def validate_receipt_id(receipt_id) -> str:
    """
    Check that a receipt id is safe to use as a file name.

    Raises:
        InvalidReceiptId: If the id is empty or contains anything beyond
            letters, digits, '-' and '_'
    """
    receipt_id = '' if receipt_id is None else str(receipt_id)
    if not RECEIPT_ID_PATTERN.match(receipt_id):
        raise InvalidReceiptId(f"Invalid receipt ID format: {receipt_id!r}")
    return receipt_id


def build_pdf_path(output_dir: Union[str, Path], receipt_id) -> Path:
    """
    Build the output path of a receipt's PDF.

    Args:
        output_dir: Directory holding generated PDFs
        receipt_id: Receipt identifier

    Returns:
        Path to <output_dir>/<receipt_id>.pdf

    Raises:
        InvalidReceiptId: If the receipt id is not a safe file name
    """
    return Path(output_dir) / f"{validate_receipt_id(receipt_id)}.pdf"


def pdf_download_filename(receipt_id) -> str:
    return f"invoice-{validate_receipt_id(receipt_id)}.pdf"


def get_receipt_pdf_path(receipt_id, output_dir: Optional[Union[str, Path]] = None) -> Optional[Path]:
    """
    Locate the generated PDF for a receipt.

    Returns:
        Path of the PDF if it exists, otherwise None

    Raises:
        InvalidReceiptId: If the receipt id is not a safe file name
    """
    path = build_pdf_path(output_dir or get_pdf_output_dir(), receipt_id)
    if path.is_file():
        return path
    logger.debug(f"No PDF found for receipt {receipt_id} at {path}")
    return None


def read_receipt_pdf(receipt_id, output_dir: Optional[Union[str, Path]] = None) -> Optional[bytes]:
    """
    Read the generated PDF for a receipt.

    Returns:
        PDF bytes, or None if the PDF does not exist or cannot be read
    """
    path = get_receipt_pdf_path(receipt_id, output_dir)
    if path is None:
        return None
    try:
        return path.read_bytes()
    except OSError as e:
        logger.error(f"Failed to read PDF for receipt {receipt_id} at {path}: {e}", exc_info=True)
        return None


def ensure_output_dir(output_dir: Union[str, Path], log_prefix: str = '') -> Path:
    """
    Create the PDF output directory (and parents) if it does not exist.

    Raises:
        PdfOutputError: If the directory cannot be created
    """
    output_dir = Path(output_dir)
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"{log_prefix}:ensure_output_dir FATAL: Error creating PDF directory {output_dir}: {e}")
        raise PdfOutputError(f"Failed to ensure PDF directory exists: {e}") from e
    logger.debug(f"{log_prefix}:ensure_output_dir PDF directory ensured: {output_dir}")
    return output_dir


def delete_partial_pdf(file_path: Optional[Path], log_prefix: str = '') -> bool:
    """
    Delete an incomplete PDF left behind by a failed generation.

    Best effort: failures are logged, never raised.

    Returns:
        True if no file remains at file_path afterwards
    """
    if file_path is None:
        return True
    if not file_path.exists():
        logger.info(f"{log_prefix}:delete_partial_pdf Incomplete PDF {file_path} did not exist, no need to delete.")
        return True

    logger.warning(f"{log_prefix}:delete_partial_pdf Deleting incomplete/corrupted PDF: {file_path}")
    try:
        file_path.unlink()
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.error(f"{log_prefix}:delete_partial_pdf Error deleting potentially corrupted PDF {file_path}: {e}")
        return False
    logger.info(f"{log_prefix}:delete_partial_pdf Deleted incomplete/corrupted PDF: {file_path}")
    return True
