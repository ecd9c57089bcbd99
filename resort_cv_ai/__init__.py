"""Resort CV AI: CV text extraction, enhancement, taxonomy parsing and tagging."""

__version__ = "0.1.0"
