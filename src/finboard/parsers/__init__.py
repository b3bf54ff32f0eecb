"""Statement parsers."""

from .statement import StatementParser, parse_amount, parse_statement

__all__ = ["StatementParser", "parse_amount", "parse_statement"]
