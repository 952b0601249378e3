"""
Django settings for the bakery invoicing project.

Only the pieces needed by the receipts app are configured here; the HTTP
layer, authentication and persistence live in their own deployments.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'dev-only-insecure-key')

DEBUG = os.environ.get('DJANGO_DEBUG', 'False').lower() in ('1', 'true', 'yes')

ALLOWED_HOSTS = [h for h in os.environ.get('DJANGO_ALLOWED_HOSTS', '').split(',') if h]

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'receipts',
]

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [],
        },
    },
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

LANGUAGE_CODE = 'en-au'
TIME_ZONE = 'Australia/Sydney'
USE_I18N = True
USE_TZ = True


# Receipt PDF generation
BAKERY_PDF_OUTPUT_DIR = Path(
    os.environ.get('BAKERY_PDF_OUTPUT_DIR', BASE_DIR / 'data' / 'receipt-pdfs')
)

# 'canvas' (ReportLab layout engine) or 'html' (HTML + print engine)
BAKERY_PDF_RENDERER = os.environ.get('BAKERY_PDF_RENDERER', 'canvas')

# Key in receipts.printing.registry
BAKERY_PDF_TEMPLATE = os.environ.get('BAKERY_PDF_TEMPLATE', 'default')

# 'chromium' (Playwright headless browser) or 'weasyprint'
BAKERY_PDF_HTML_ENGINE = os.environ.get('BAKERY_PDF_HTML_ENGINE', 'chromium')

BAKERY_PDF_FONT_REGULAR = os.environ.get('BAKERY_PDF_FONT_REGULAR', 'Helvetica')
BAKERY_PDF_FONT_BOLD = os.environ.get('BAKERY_PDF_FONT_BOLD', 'Helvetica-Bold')

# Optional TrueType fonts registered on first use, e.g.
# {'Inter': '/usr/share/fonts/Inter-Regular.ttf', 'Inter-Bold': '...'}
BAKERY_PDF_FONTS = {}

BAKERY_PDF_FOOTER_TEXT = os.environ.get('BAKERY_PDF_FOOTER_TEXT', 'Thank you for your business.')

BAKERY_CURRENCY_SYMBOL = '$'
BAKERY_TAX_NAME = 'GST'
# None derives the percentage from the receipt's taxable lines
BAKERY_TAX_RATE_PERCENT = None
BAKERY_SELLER_TAX_ID_LABEL = 'ABN/ACN'
BAKERY_CUSTOMER_TAX_ID_LABEL = 'ABN'


BAKERY_LOG_LEVEL = os.environ.get('BAKERY_LOG_LEVEL', 'DEBUG' if DEBUG else 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '[{asctime}] [{levelname}] {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'receipts': {
            'handlers': ['console'],
            'level': BAKERY_LOG_LEVEL,
            'propagate': False,
        },
    },
}
