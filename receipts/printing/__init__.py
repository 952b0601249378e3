"""
Receipt Printing

Generates receipt and tax-invoice PDFs, either drawn directly with ReportLab
(canvas renderer) or printed from HTML by a headless engine (html renderer).
"""

from .dto import CustomerSnapshot, GenerationResult, LineItem, Receipt, SellerSnapshot
from .generator import PdfGenerator
from .html_renderer import HtmlPdfGenerator
from .interfaces import IContextBuilder, IHtmlRasterizer, IPdfGenerator, IReceiptTemplate
from .service import ReceiptPdfService, get_pdf_generator

__all__ = [
    'CustomerSnapshot',
    'GenerationResult',
    'LineItem',
    'Receipt',
    'SellerSnapshot',
    'PdfGenerator',
    'HtmlPdfGenerator',
    'IContextBuilder',
    'IHtmlRasterizer',
    'IPdfGenerator',
    'IReceiptTemplate',
    'ReceiptPdfService',
    'get_pdf_generator',
]
