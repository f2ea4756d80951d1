"""GenDocs: invoices and quotations with AI-drafted line items."""

__version__ = "0.1.0"
