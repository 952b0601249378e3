"""
Management command to render a receipt PDF from a receipt JSON document.
"""

import json

from django.core.management.base import BaseCommand, CommandError

from receipts.printing.dto import Receipt
from receipts.printing.errors import RendererUnavailable
from receipts.printing.service import ReceiptPdfService, get_pdf_generator


class Command(BaseCommand):
    help = 'Render the PDF invoice for a receipt stored as JSON'

    def add_arguments(self, parser):
        parser.add_argument(
            'receipt_json',
            help='Path to the receipt JSON document',
        )
        parser.add_argument(
            '--renderer',
            choices=['canvas', 'html'],
            help='Renderer to use (defaults to BAKERY_PDF_RENDERER)',
        )
        parser.add_argument(
            '--html-engine',
            choices=['chromium', 'weasyprint'],
            help='Print engine for the html renderer (defaults to BAKERY_PDF_HTML_ENGINE)',
        )
        parser.add_argument(
            '--operation-id',
            help='Correlation id for log lines (a UUID is generated if omitted)',
        )

    def handle(self, *args, **options):
        path = options['receipt_json']
        try:
            with open(path, encoding='utf-8') as f:
                data = json.load(f)
        except OSError as e:
            raise CommandError(f"Cannot read receipt file {path}: {e}")
        except json.JSONDecodeError as e:
            raise CommandError(f"Receipt file {path} is not valid JSON: {e}")

        try:
            receipt = Receipt.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise CommandError(f"Receipt file {path} is not a valid receipt: {e}")

        try:
            generator = get_pdf_generator(options['renderer'], options['html_engine'])
        except RendererUnavailable as e:
            raise CommandError(f"PDF renderer is not available: {e}")
        except (KeyError, ValueError) as e:
            raise CommandError(f"PDF renderer is not properly configured: {e}")

        self.stdout.write(f'Rendering PDF for receipt {receipt.receipt_id}...')
        result = ReceiptPdfService(generator).generate(receipt, options['operation_id'])
        if not result.success:
            raise CommandError(f"Failed to generate PDF: {result.message}")

        self.stdout.write(self.style.SUCCESS(f'PDF written to {result.file_path}'))
