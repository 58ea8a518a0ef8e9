"""
csvexpr: CSV row codec for SQL expression evaluation.

Converts delimited text to typed rows conforming to a declared schema,
typed rows back to delimited text, and infers schemas from sample text.
"""

__version__ = "0.1.0"
