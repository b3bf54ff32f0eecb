"""Dashboard and report aggregates."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from finboard.api.deps import get_ledger_service
from finboard.schemas.ledger import (
    CategorySliceResponse,
    DatePointResponse,
    DescriptionStatResponse,
    FinancialSummaryResponse,
    SummaryResponse,
    TransactionResponse,
)
from finboard.services import summary as agg
from finboard.services.ledger import LedgerService

router = APIRouter(prefix="/summary", tags=["summary"])


@router.get("", response_model=SummaryResponse, summary="Totals, trend and breakdowns")
async def get_summary(
    month: Annotated[
        str | None,
        Query(pattern=r"^\d{2}/\d{4}$", description="Restrict to one MM/YYYY month"),
    ] = None,
    service: LedgerService = Depends(get_ledger_service),
) -> SummaryResponse:
    transactions = await service.load_transactions()
    selected = agg.filter_by_month(transactions, month)
    totals = agg.summarize(selected)

    return SummaryResponse(
        month=month,
        available_months=agg.available_months(transactions),
        summary=FinancialSummaryResponse(
            total_income=totals.total_income,
            total_expenses=totals.total_expenses,
            balance=totals.balance,
            transaction_count=totals.transaction_count,
            savings_rate=totals.savings_rate,
        ),
        trend=[DatePointResponse(date=p.date, amount=p.amount) for p in agg.group_by_date(selected)],
        expense_categories=[
            CategorySliceResponse(name=s.name, value=s.value, percentage=s.percentage)
            for s in agg.expenses_by_category(selected)
        ],
        descriptions=[
            DescriptionStatResponse(name=d.name, amount=d.amount, count=d.count, is_income=d.is_income)
            for d in agg.description_stats(selected)
        ],
        top_expenses=[TransactionResponse.model_validate(t) for t in agg.top_expenses(selected)],
    )
