"""
Tests for the ReportLab receipt PDF generator

Covers:
- Complete receipts (tax invoice, plain invoice, multi-page tables)
- Font fallback
- Failure paths: stream, section, font, document and initialization errors
- Cleanup of partial files and retry after a failure
"""

import tempfile
import threading
from decimal import Decimal
from pathlib import Path
from unittest.mock import patch

from django.test import TestCase

from receipts.printing.canvas import ReceiptCanvas, _BufferedPageCanvas
from receipts.printing.dto import CustomerSnapshot, LineItem, Receipt, SellerSnapshot
from receipts.printing.errors import PdfStreamError
from receipts.printing.fonts import FontSelector
from receipts.printing.generator import GenerationJob, PdfGenerator
from receipts.printing.stream import PdfOutputStream
from receipts.printing.templates import DefaultReceiptTemplate


SELLER = SellerSnapshot(
    name='Crumb & Co Bakery',
    business_address='12 Baker Street, Newtown NSW 2042',
    tax_id='12 345 678 901',
    contact_email='hello@crumbandco.example',
    phone='02 9555 0100',
)

BUSINESS_CUSTOMER = CustomerSnapshot(
    customer_type='business',
    id='C-77',
    first_name='Jane',
    last_name='Smith',
    business_name='Smith Catering Pty Ltd',
    tax_id='98 765 432 109',
    email='orders@smithcatering.example',
    phone='0400 000 000',
    address='5 Market Lane, Sydney NSW 2000',
)

INDIVIDUAL_CUSTOMER = CustomerSnapshot(
    customer_type='individual',
    first_name='Tom',
    last_name='Nguyen',
    email='tom@example.com',
)


def make_receipt(receipt_id='R-1001', **overrides):
    """A 10% tax invoice for a business customer with three lines."""
    values = dict(
        receipt_id=receipt_id,
        date_of_purchase='2024-03-05T10:15:00Z',
        line_items=(
            LineItem('Sourdough Loaf', 2, Decimal('6.50'), Decimal('13.00'), True,
                     description='Stone-baked, 800g'),
            LineItem('Almond Croissant', 3, Decimal('4.00'), Decimal('12.00'), True),
            LineItem('Flour (5kg)', 1, Decimal('20.00'), Decimal('20.00'), False),
        ),
        subtotal_excl_tax=Decimal('45.00'),
        tax_amount=Decimal('2.50'),
        total_incl_tax=Decimal('47.50'),
        is_tax_invoice=True,
        seller=SELLER,
        customer=BUSINESS_CUSTOMER,
    )
    values.update(overrides)
    return Receipt(**values)


class RecordingCanvas(ReceiptCanvas):
    """ReceiptCanvas that remembers every line of text it draws."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.drawn = []

    def on_text_drawn(self, line, x, y):
        self.drawn.append((self.page_index, line, x, y))

    def texts(self):
        return [line for _page, line, _x, _y in self.drawn]

    def pages_with(self, text):
        return {page for page, line, _x, _y in self.drawn if line == text}


class FailingWriteStream(PdfOutputStream):
    """Writes a few bytes, then fails like a full disk."""

    def write(self, data):
        self._file.write(bytes(data[:16]))
        error = OSError(28, 'No space left on device')
        self._emit_error(error)
        raise PdfStreamError(f"PDF stream error: {error}")


class GeneratorTestMixin:

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.output_dir = Path(self._tmp.name) / 'pdfs'
        self.canvases = []

    def tearDown(self):
        self._tmp.cleanup()

    def recording_canvas(self):
        canvas = RecordingCanvas()
        self.canvases.append(canvas)
        return canvas

    def make_generator(self, **kwargs):
        kwargs.setdefault('canvas_factory', self.recording_canvas)
        return PdfGenerator(output_dir=self.output_dir, **kwargs)

    def assert_valid_pdf(self, path):
        data = Path(path).read_bytes()
        self.assertTrue(data.startswith(b'%PDF-'))
        self.assertIn(b'%%EOF', data[-32:])


class PdfGeneratorEndToEndTestCase(GeneratorTestMixin, TestCase):
    """End-to-end receipts drawn on a real ReportLab canvas"""

    def test_tax_invoice_for_business_customer(self):
        generator = self.make_generator()
        result = generator.generate(make_receipt(), 'op-a')

        self.assertTrue(result.success, result.message)
        self.assertIsNone(result.message)
        self.assertEqual(result.file_path, str(self.output_dir / 'R-1001.pdf'))
        self.assert_valid_pdf(result.file_path)

        canvas = self.canvases[0]
        texts = canvas.texts()
        self.assertEqual(canvas.page_count, 1)
        self.assertEqual(texts[0], 'TAX INVOICE')
        self.assertIn('From:', texts)
        self.assertIn('Crumb & Co Bakery', texts)
        self.assertIn('To:', texts)
        self.assertIn('Smith Catering Pty Ltd', texts)
        self.assertIn('ABN: 98 765 432 109', texts)
        self.assertIn('Contact: Jane Smith', texts)
        self.assertIn('Invoice ID: R-1001', texts)
        self.assertIn('Date: 05/03/2024', texts)
        self.assertIn('GST?', texts)
        self.assertIn('Stone-baked, 800g', texts)
        self.assertIn('$13.00', texts)
        self.assertIn('Subtotal (ex GST):', texts)
        self.assertIn('GST Amount (10%):', texts)
        self.assertIn('$2.50', texts)
        self.assertIn('Total Amount:', texts)
        self.assertIn('$47.50', texts)

    def test_sections_are_drawn_in_order(self):
        self.make_generator().generate(make_receipt(), 'op-order')
        texts = self.canvases[0].texts()

        order = ['TAX INVOICE', 'From:', 'To:', 'Invoice ID: R-1001', 'Item', 'Total Amount:']
        positions = [texts.index(text) for text in order]
        self.assertEqual(positions, sorted(positions))

    def test_plain_invoice_for_individual_without_tax(self):
        items = (
            LineItem('Baguette', 1, Decimal('4.50'), Decimal('4.50'), False),
            LineItem('Rye Bread', 2, Decimal('7.00'), Decimal('14.00'), False),
        )
        receipt = make_receipt(
            'R-2002',
            line_items=items,
            subtotal_excl_tax=Decimal('18.50'),
            tax_amount=Decimal('0.00'),
            total_incl_tax=Decimal('18.50'),
            is_tax_invoice=False,
            customer=INDIVIDUAL_CUSTOMER,
        )
        result = self.make_generator().generate(receipt, 'op-b')

        self.assertTrue(result.success, result.message)
        texts = self.canvases[0].texts()
        self.assertEqual(texts[0], 'INVOICE')
        self.assertIn('Tom Nguyen', texts)
        self.assertIn('Phone: N/A', texts)
        self.assertIn('Address: N/A', texts)
        self.assertNotIn('GST?', texts)
        self.assertFalse([t for t in texts if t.startswith('GST Amount')])
        self.assertFalse([t for t in texts if 'None' in t or 'undefined' in t])

    def test_long_receipt_spans_pages_with_repeated_header(self):
        items = tuple(
            LineItem(f'Bread roll #{n}', 1, Decimal('1.20'), Decimal('1.20'), True)
            for n in range(1, 81)
        )
        receipt = make_receipt(
            'R-3003',
            line_items=items,
            subtotal_excl_tax=Decimal('96.00'),
            tax_amount=Decimal('9.60'),
            total_incl_tax=Decimal('105.60'),
        )
        result = self.make_generator().generate(receipt, 'op-c')

        self.assertTrue(result.success, result.message)
        self.assert_valid_pdf(result.file_path)

        canvas = self.canvases[0]
        self.assertGreater(canvas.page_count, 1)

        row_pages = {page for page, line, _x, _y in canvas.drawn if line.startswith('Bread roll #')}
        self.assertTrue(row_pages.issubset(canvas.pages_with('Qty')))
        self.assertTrue(row_pages.issubset(canvas.pages_with('GST?')))

        # every row drawn once, in order, above the table limit
        rows = [(page, line, y) for page, line, _x, y in canvas.drawn if line.startswith('Bread roll #')]
        self.assertEqual([line for _p, line, _y in rows], [f'Bread roll #{n}' for n in range(1, 81)])
        for _page, _line, y in rows:
            self.assertLess(y, canvas.geometry.table_bottom)

        # totals follow the last row
        last_row_page = rows[-1][0]
        self.assertGreaterEqual(min(canvas.pages_with('Total Amount:')), last_row_page)

    def test_single_line_tax_invoice(self):
        receipt = make_receipt(
            'R-1100',
            line_items=(LineItem('Pain au Chocolat', 1, Decimal('10.00'), Decimal('10.00'), True),),
            subtotal_excl_tax=Decimal('10.00'),
            tax_amount=Decimal('1.00'),
            total_incl_tax=Decimal('11.00'),
        )
        result = self.make_generator().generate(receipt, 'op-single')

        self.assertTrue(result.success, result.message)
        self.assertTrue(Path(result.file_path).is_file())
        texts = self.canvases[0].texts()
        self.assertEqual(texts[0], 'TAX INVOICE')
        self.assertIn('$11.00', texts)

    def test_business_customer_without_contact_name(self):
        customer = CustomerSnapshot(customer_type='business', business_name='Smith Catering Pty Ltd')
        result = self.make_generator().generate(make_receipt(customer=customer), 'op-biz')

        self.assertTrue(result.success, result.message)
        texts = self.canvases[0].texts()
        to_block = texts[texts.index('To:') + 1:texts.index('Invoice ID: R-1001')]
        self.assertEqual(to_block[0], 'Smith Catering Pty Ltd')
        self.assertFalse([t for t in to_block if t.startswith(('Contact', 'ABN'))])
        self.assertFalse([t for t in texts if 'undefined' in t or 'None' in t])

    def test_many_long_rows_break_pages_cleanly(self):
        description = 'Slow-fermented for forty-eight hours with organic stone-ground flour, ' * 4
        items = tuple(
            LineItem(f'Loaf {n}', 1, Decimal('8.00'), Decimal('8.00'), True, description=description)
            for n in range(1, 51)
        )
        receipt = make_receipt(
            'R-5050',
            line_items=items,
            subtotal_excl_tax=Decimal('400.00'),
            tax_amount=Decimal('40.00'),
            total_incl_tax=Decimal('440.00'),
        )
        result = self.make_generator().generate(receipt, 'op-long')

        self.assertTrue(result.success, result.message)
        canvas = self.canvases[0]
        self.assertGreaterEqual(canvas.page_count, 3)

        row_pages = {page for page, line, _x, _y in canvas.drawn if line.startswith('Loaf ')}
        for page in row_pages - {0}:
            first_on_page = next(line for p, line, _x, _y in canvas.drawn if p == page)
            self.assertEqual(first_on_page, 'Item')

        # totals start below everything drawn for the table on their page
        totals_page, _line, _x, totals_y = next(
            entry for entry in canvas.drawn if entry[1] == 'Subtotal (ex GST):'
        )
        table_ys = [
            y for page, line, _x, y in canvas.drawn
            if page == totals_page and (line.startswith('Loaf ') or line in description)
        ]
        if table_ys:
            self.assertGreater(totals_y, max(table_ys))

    def test_missing_primary_font_falls_back_with_one_warning(self):
        def fonts(log_prefix):
            return FontSelector(log_prefix=log_prefix, bold='NoSuchFont-Bold')

        generator = self.make_generator(font_selector_factory=fonts)
        with self.assertLogs('receipts.printing.fonts', level='WARNING') as logs:
            result = generator.generate(make_receipt('R-4004'), 'op-d')

        self.assertTrue(result.success, result.message)
        self.assert_valid_pdf(result.file_path)
        warnings = [r for r in logs.records if r.levelname == 'WARNING']
        self.assertEqual(len(warnings), 1)
        message = warnings[0].getMessage()
        self.assertIn('NoSuchFont-Bold', message)
        self.assertIn('Courier-Bold', message)
        self.assertIn('[op-d ReportLab R-4004]', message)

    def test_empty_receipt_still_renders(self):
        receipt = Receipt(receipt_id='R-5005', date_of_purchase='')
        result = self.make_generator().generate(receipt, 'op-empty')

        self.assertTrue(result.success, result.message)
        texts = self.canvases[0].texts()
        self.assertIn('Date: N/A', texts)
        self.assertIn('Item', texts)
        self.assertFalse([t for t in texts if 'None' in t])

    def test_regenerating_overwrites_previous_file(self):
        generator = self.make_generator()
        first = generator.generate(make_receipt(), 'op-1')
        second = generator.generate(make_receipt(), 'op-2')

        self.assertTrue(first.success)
        self.assertTrue(second.success)
        self.assertEqual(first.file_path, second.file_path)
        self.assertEqual(sorted(p.name for p in self.output_dir.iterdir()), ['R-1001.pdf'])

    def test_concurrent_generations_do_not_share_state(self):
        generator = PdfGenerator(output_dir=self.output_dir)
        results = {}

        def run(receipt_id):
            results[receipt_id] = generator.generate(make_receipt(receipt_id), f'op-{receipt_id}')

        threads = [threading.Thread(target=run, args=(f'R-90{n}',)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(results), 4)
        for receipt_id, result in results.items():
            self.assertTrue(result.success, result.message)
            self.assertEqual(result.file_path, str(self.output_dir / f'{receipt_id}.pdf'))
            self.assert_valid_pdf(result.file_path)

    def test_log_lines_carry_the_job_prefix(self):
        with self.assertLogs('receipts.printing.generator', level='INFO') as logs:
            self.make_generator().generate(make_receipt(), 'op-log')

        self.assertTrue(logs.records)
        for record in logs.records:
            self.assertTrue(record.getMessage().startswith('[op-log ReportLab R-1001]'))


class PdfGeneratorFailureTestCase(GeneratorTestMixin, TestCase):
    """Failures never leave a file behind and never escape generate()"""

    def assert_no_pdf(self, receipt_id='R-1001'):
        self.assertFalse((self.output_dir / f'{receipt_id}.pdf').exists())

    def test_stream_error_removes_partial_file(self):
        generator = self.make_generator(stream_factory=lambda path: FailingWriteStream(open(path, 'wb'), path))
        result = generator.generate(make_receipt(), 'op-stream')

        self.assertFalse(result.success)
        self.assertIsNone(result.file_path)
        self.assertIn('No space left on device', result.message)
        self.assert_no_pdf()

    def test_section_error_removes_partial_file(self):
        generator = self.make_generator()
        with patch.object(DefaultReceiptTemplate, 'add_totals', side_effect=RuntimeError('boom')):
            result = generator.generate(make_receipt(), 'op-section')

        self.assertFalse(result.success)
        self.assertEqual(result.message, 'Failed to render totals: boom')
        self.assert_no_pdf()

    def test_font_and_fallback_both_missing(self):
        def fonts(log_prefix):
            return FontSelector(log_prefix=log_prefix, regular='NoSuchFont', fallback_regular='AlsoMissing')

        result = self.make_generator(font_selector_factory=fonts).generate(make_receipt(), 'op-font')

        self.assertFalse(result.success)
        self.assertIn('Failed to render header', result.message)
        self.assertIn('NoSuchFont', result.message)
        self.assert_no_pdf()

    def test_document_serialization_error(self):
        generator = self.make_generator()
        with patch.object(_BufferedPageCanvas, 'save', side_effect=RuntimeError('cannot serialize')):
            result = generator.generate(make_receipt(), 'op-doc')

        self.assertFalse(result.success)
        self.assertEqual(result.message, 'PDF document error: cannot serialize')
        self.assert_no_pdf()

    def test_initialization_error(self):
        def broken_canvas():
            raise RuntimeError('no canvas today')

        result = self.make_generator(canvas_factory=broken_canvas).generate(make_receipt(), 'op-init')

        self.assertFalse(result.success)
        self.assertEqual(result.message, 'PDF library initialization error: no canvas today')
        self.assert_no_pdf()

    def test_invalid_receipt_id_is_rejected(self):
        result = self.make_generator().generate(make_receipt('../../etc/passwd'), 'op-id')

        self.assertFalse(result.success)
        self.assertIn('Invalid receipt ID format', result.message)
        self.assertFalse(self.output_dir.exists())

    def test_output_dir_cannot_be_created(self):
        blocker = Path(self._tmp.name) / 'not-a-dir'
        blocker.write_text('occupied')
        generator = PdfGenerator(output_dir=blocker / 'pdfs')

        result = generator.generate(make_receipt(), 'op-dir')

        self.assertFalse(result.success)
        self.assertIn('Failed to ensure PDF directory exists', result.message)

    def test_retry_after_failure_succeeds(self):
        generator = self.make_generator()
        with patch.object(DefaultReceiptTemplate, 'add_items_table', side_effect=RuntimeError('flaky')):
            failed = generator.generate(make_receipt(), 'op-retry-1')
        self.assertFalse(failed.success)
        self.assert_no_pdf()

        result = generator.generate(make_receipt(), 'op-retry-2')

        self.assertTrue(result.success, result.message)
        self.assert_valid_pdf(result.file_path)

    def test_failure_is_logged_with_prefix(self):
        generator = self.make_generator()
        with patch.object(DefaultReceiptTemplate, 'add_header', side_effect=RuntimeError('bad header')):
            with self.assertLogs('receipts.printing.generator', level='ERROR') as logs:
                generator.generate(make_receipt(), 'op-err')

        messages = [r.getMessage() for r in logs.records]
        self.assertTrue(any(m.startswith('[op-err ReportLab R-1001]') and 'bad header' in m for m in messages))


class GenerationJobTestCase(TestCase):
    """Test cases for GenerationJob"""

    def test_first_error_wins(self):
        job = GenerationJob(operation_id='op', receipt_id='R-1', log_prefix='[op ReportLab R-1]')
        job.success = True
        first = PdfStreamError('first')

        job.fail(first)
        job.fail(RuntimeError('second'))

        self.assertIs(job.error, first)
        self.assertFalse(job.success)
