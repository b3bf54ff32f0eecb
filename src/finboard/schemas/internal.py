"""Internal data schemas for the ingestion pipeline.

These models carry statement rows between the parser, the categorizer,
the identity resolver and persistence.
"""

from decimal import Decimal

from pydantic import BaseModel, Field


class ParsedTransaction(BaseModel):
    """A provisional statement row.

    It has no id, upload id or (usually) category yet; later stages fill
    those in. Amounts are signed: positive is income, negative is expense.
    """

    source_id: str | None = Field(None, description="Bank-issued transaction id, if any")
    date: str = Field("", description="Transaction date as DD/MM/YYYY text")
    type: str = Field("", description="Transaction method/channel label")
    description: str = Field("", description="Free-text narrative from the statement")
    amount: Decimal = Field(Decimal("0"), description="Signed amount")
    category: str | None = Field(None, description="Category, if already known")


class IdentifiedTransaction(BaseModel):
    """A fully resolved record, ready to be written."""

    id: str
    upload_id: str
    source_id: str | None = None
    date: str
    type: str
    description: str
    amount: Decimal
    category: str


class StatementFile(BaseModel):
    """Raw statement file content plus its display name."""

    filename: str
    content: str
