"""
Receipt templates

Contains the canvas templates receipts can be drawn with.
"""

from ..registry import is_registered, register_template
from .default import DefaultReceiptTemplate


def register_all_templates():
    """Register all available receipt templates"""
    if not is_registered('default'):
        register_template('default', DefaultReceiptTemplate)


# Auto-register templates when module is imported
register_all_templates()
