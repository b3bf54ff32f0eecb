"""Delimited bank-statement parser.

Statements are semicolon-separated text exports. The first line names the
columns; columns are located by header name, so their order may vary
between banks. Parsing is pure: no I/O, no categorization, no identity.
"""

import logging
from decimal import Decimal, InvalidOperation

from finboard.schemas.internal import ParsedTransaction

logger = logging.getLogger(__name__)


def parse_amount(raw: str | None) -> Decimal:
    """Convert a decimal-comma amount ("-1.234,56") into a Decimal.

    Unparsable values become zero instead of failing the import.
    """
    text = (raw or "").strip().replace("R$", "").replace(" ", "")
    if "," in text:
        # "." is a thousands separator whenever a decimal comma is present.
        text = text.replace(".", "").replace(",", ".")
    try:
        value = Decimal(text)
    except InvalidOperation:
        return Decimal("0")
    if not value.is_finite():
        return Decimal("0")
    return value


class StatementParser:
    """Parser for semicolon-delimited statement exports.

    Subclasses can override class attributes to support a different
    delimiter or header vocabulary, or `_parse_amount()` for another
    number format.

    Example:
        >>> rows = StatementParser().parse("Data;Tipo;Descricao;Valor\\n01/02/2024;Pix;Mercado;-10,50")
        >>> rows[0].amount
        Decimal('-10.50')
    """

    DELIMITER = ";"
    MIN_FIELDS = 4

    DATE_HEADER = "data"
    TYPE_HEADER = "tipo"
    DESCRIPTION_HEADER = "descricao"
    AMOUNT_HEADER = "valor"
    IDENTIFIER_HEADER = "codigo da transacao"

    def parse(self, text: str) -> list[ParsedTransaction]:
        """Parse statement text into provisional rows, preserving input order.

        Rows with fewer than MIN_FIELDS fields are skipped. Input without
        data rows yields an empty list.
        """
        # Only "\n" ends a row; descriptions may contain other line-break characters.
        lines = [line.rstrip("\r") for line in (text or "").strip().split("\n")]
        if len(lines) < 2:
            return []

        columns = self._locate_columns(lines[0])

        rows: list[ParsedTransaction] = []
        skipped = 0
        for line in lines[1:]:
            fields = line.split(self.DELIMITER)
            if len(fields) < self.MIN_FIELDS:
                skipped += 1
                continue
            rows.append(self._parse_row(fields, columns))

        if skipped:
            logger.info("Skipped malformed statement rows", extra={"skipped_rows": skipped})
        return rows

    def _locate_columns(self, header_line: str) -> dict[str, int | None]:
        headers = [h.replace("\ufeff", "").strip().lower() for h in header_line.split(self.DELIMITER)]

        def index_of(name: str) -> int | None:
            return headers.index(name) if name in headers else None

        return {
            "date": index_of(self.DATE_HEADER),
            "type": index_of(self.TYPE_HEADER),
            "description": index_of(self.DESCRIPTION_HEADER),
            "amount": index_of(self.AMOUNT_HEADER),
            "source_id": index_of(self.IDENTIFIER_HEADER),
        }

    def _parse_row(self, fields: list[str], columns: dict[str, int | None]) -> ParsedTransaction:
        def cell(name: str) -> str:
            idx = columns[name]
            if idx is None or idx >= len(fields):
                return ""
            return fields[idx].strip()

        return ParsedTransaction(
            source_id=cell("source_id") or None,
            date=cell("date"),
            type=cell("type"),
            description=cell("description"),
            amount=self._parse_amount(cell("amount")),
        )

    def _parse_amount(self, raw: str) -> Decimal:
        return parse_amount(raw)


def parse_statement(text: str) -> list[ParsedTransaction]:
    """Parse statement text with the default parser."""
    return StatementParser().parse(text)
