"""
Tests for renderer selection and ReceiptPdfService
"""

import tempfile
import uuid
from pathlib import Path
from unittest.mock import MagicMock, patch

from django.test import TestCase, override_settings

from receipts.printing import service
from receipts.printing.dto import GenerationResult
from receipts.printing.errors import InvalidReceiptId, RendererUnavailable
from receipts.printing.generator import PdfGenerator
from receipts.printing.html_renderer import HtmlPdfGenerator
from receipts.printing.interfaces import IPdfGenerator
from receipts.printing.service import ReceiptPdfService, get_pdf_generator, get_rasterizer
from receipts.printing.templates import DefaultReceiptTemplate

from .test_html_renderer import FakeRasterizer
from .test_generator import make_receipt


class GetPdfGeneratorTestCase(TestCase):
    """Test cases for get_pdf_generator"""

    def test_canvas_renderer(self):
        generator = get_pdf_generator('canvas')

        self.assertIsInstance(generator, PdfGenerator)
        self.assertIs(generator.template_factory, DefaultReceiptTemplate)

    @override_settings(BAKERY_PDF_RENDERER='canvas')
    def test_renderer_from_settings(self):
        self.assertIsInstance(get_pdf_generator(), PdfGenerator)

    def test_html_renderer(self):
        with patch.dict(service.HTML_ENGINES, {'fake': FakeRasterizer}):
            generator = get_pdf_generator('html', 'fake')

        self.assertIsInstance(generator, HtmlPdfGenerator)
        self.assertIsInstance(generator.rasterizer, FakeRasterizer)
        self.assertEqual(generator.engine_name, 'Fake')

    @override_settings(BAKERY_PDF_RENDERER='html', BAKERY_PDF_HTML_ENGINE='fake')
    def test_html_engine_from_settings(self):
        with patch.dict(service.HTML_ENGINES, {'fake': FakeRasterizer}):
            generator = get_pdf_generator()

        self.assertIsInstance(generator.rasterizer, FakeRasterizer)

    def test_unknown_renderer(self):
        with self.assertRaises(ValueError):
            get_pdf_generator('latex')

    def test_unknown_html_engine(self):
        with self.assertRaises(ValueError):
            get_rasterizer('wkhtmltopdf')

    @override_settings(BAKERY_PDF_TEMPLATE='fancy')
    def test_unknown_template(self):
        with self.assertRaises(KeyError):
            get_pdf_generator('canvas')

    def test_missing_engine_library(self):
        with patch('receipts.printing.rasterizers.WEASYPRINT_AVAILABLE', False):
            with self.assertRaises(RendererUnavailable):
                get_rasterizer('weasyprint')


class ReceiptPdfServiceTestCase(TestCase):
    """Test cases for ReceiptPdfService"""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.output_dir = Path(self._tmp.name)
        self.settings_override = override_settings(BAKERY_PDF_OUTPUT_DIR=self.output_dir)
        self.settings_override.enable()

    def tearDown(self):
        self.settings_override.disable()
        self._tmp.cleanup()

    def test_generate_mints_operation_id(self):
        generator = MagicMock(spec=IPdfGenerator)
        generator.generate.return_value = GenerationResult.ok('/tmp/x.pdf')
        receipt = make_receipt()

        result = ReceiptPdfService(generator).generate(receipt)

        self.assertTrue(result.success)
        called_receipt, operation_id = generator.generate.call_args.args
        self.assertIs(called_receipt, receipt)
        uuid.UUID(operation_id)

    def test_generate_passes_operation_id(self):
        generator = MagicMock(spec=IPdfGenerator)
        generator.generate.return_value = GenerationResult.failure('nope')

        result = ReceiptPdfService(generator).generate(make_receipt(), 'op-42')

        self.assertFalse(result.success)
        generator.generate.assert_called_once()
        self.assertEqual(generator.generate.call_args.args[1], 'op-42')

    @override_settings(BAKERY_PDF_RENDERER='canvas')
    def test_default_generator_is_built_lazily(self):
        pdf_service = ReceiptPdfService()
        self.assertIsNone(pdf_service._generator)
        self.assertIsInstance(pdf_service.generator, PdfGenerator)

    @override_settings(BAKERY_PDF_RENDERER='canvas')
    def test_status_and_content(self):
        pdf_service = ReceiptPdfService()

        self.assertEqual(pdf_service.get_status('R-1001'), 'not_found')
        self.assertIsNone(pdf_service.get_content('R-1001'))

        result = pdf_service.generate(make_receipt())

        self.assertTrue(result.success, result.message)
        self.assertEqual(pdf_service.get_status('R-1001'), 'ready')
        self.assertTrue(pdf_service.get_content('R-1001').startswith(b'%PDF-'))

    def test_status_rejects_invalid_id(self):
        with self.assertRaises(InvalidReceiptId):
            ReceiptPdfService(MagicMock()).get_status('../R-1001')
