"""Pydantic schemas for the dashboard API.

Field names are snake_case in Python and camelCase on the wire.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from finboard.parsers.statement import parse_amount
from finboard.schemas.internal import ParsedTransaction, StatementFile


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Request schemas


class RawTransaction(CamelModel):
    """One statement row already split into fields by the client."""

    source_id: str | None = Field(None, description="Bank-issued transaction id (dedup key)")
    date: str = Field("", description="DD/MM/YYYY")
    type: str = ""
    description: str = ""
    amount: Decimal = Field(Decimal("0"), description="Signed amount; decimal-comma strings accepted")
    category: str | None = Field(None, description="Filled by the categorizer when omitted")

    @field_validator("amount", mode="before")
    @classmethod
    def amount_from_text(cls, v):
        if v is None:
            return Decimal("0")
        if isinstance(v, str):
            return parse_amount(v)
        return v

    def to_parsed(self) -> ParsedTransaction:
        return ParsedTransaction(
            source_id=self.source_id,
            date=self.date.strip(),
            type=self.type.strip(),
            description=self.description.strip(),
            amount=self.amount,
            category=(self.category or "").strip() or None,
        )


class IngestRequest(CamelModel):
    upload_id: str | None = None
    filename: str | None = None
    timestamp: str | None = None
    transactions: list[RawTransaction] = Field(default_factory=list)


class StatementFileIn(CamelModel):
    filename: str = Field(min_length=1)
    content: str

    def to_internal(self) -> StatementFile:
        return StatementFile(filename=self.filename, content=self.content)


class IngestFilesRequest(CamelModel):
    upload_id: str | None = None
    timestamp: str | None = None
    files: list[StatementFileIn] = Field(min_length=1)


# Response schemas


class UploadResponse(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    filename: str
    timestamp: str
    transaction_count: int


class TransactionResponse(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    upload_id: str
    source_id: str | None = None
    date: str
    type: str
    description: str
    amount: float
    category: str


class IngestResponse(CamelModel):
    upload: UploadResponse
    received_count: int
    inserted_count: int
    skipped_duplicates: int


class DataResponse(CamelModel):
    uploads: list[UploadResponse]
    transactions: list[TransactionResponse]


class ClearResponse(BaseModel):
    ok: bool = True


class FinancialSummaryResponse(CamelModel):
    total_income: float
    total_expenses: float
    balance: float
    transaction_count: int
    savings_rate: float


class DatePointResponse(CamelModel):
    date: str
    amount: float


class CategorySliceResponse(CamelModel):
    name: str
    value: float
    percentage: float


class DescriptionStatResponse(CamelModel):
    name: str
    amount: float
    count: int
    is_income: bool


class SummaryResponse(CamelModel):
    month: str | None = Field(None, description="MM/YYYY filter applied, if any")
    available_months: list[str]
    summary: FinancialSummaryResponse
    trend: list[DatePointResponse]
    expense_categories: list[CategorySliceResponse]
    descriptions: list[DescriptionStatResponse]
    top_expenses: list[TransactionResponse]
