"""Aggregations over a set of transactions for dashboards and reports.

All functions are pure. Records only need `date`, `description`,
`amount` and `category` attributes, so ORM rows and parsed rows both
work. Dates stay DD/MM/YYYY text; ordering and month buckets come from
splitting that text, not from calendar arithmetic.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

ZERO = Decimal("0")
HUNDRED = Decimal("100")
NO_DESCRIPTION = "(no description)"


@dataclass(frozen=True)
class FinancialSummary:
    total_income: Decimal
    total_expenses: Decimal
    balance: Decimal
    transaction_count: int
    savings_rate: Decimal


@dataclass(frozen=True)
class DatePoint:
    date: str
    amount: Decimal


@dataclass(frozen=True)
class CategorySlice:
    name: str
    value: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class DescriptionStat:
    name: str
    amount: Decimal
    count: int
    is_income: bool

    @property
    def abs_amount(self) -> Decimal:
        return abs(self.amount)


def _amount(record: Any) -> Decimal:
    value = record.amount
    return value if isinstance(value, Decimal) else Decimal(str(value))


def _date_key(value: str) -> tuple[int, int, int]:
    """Sort key (year, month, day) for DD/MM/YYYY; malformed dates sort first."""
    parts = (value or "").split("/")
    if len(parts) != 3:
        return (0, 0, 0)
    try:
        day, month, year = (int(p) for p in parts)
    except ValueError:
        return (0, 0, 0)
    return (year, month, day)


def month_of(date: str) -> str | None:
    """MM/YYYY bucket of a DD/MM/YYYY date, or None if it doesn't look like one."""
    bucket = (date or "")[3:]
    return bucket if len(bucket) == 7 else None


def summarize(records: Iterable[Any]) -> FinancialSummary:
    """Income, expenses and balance. Balance is always the raw signed sum."""
    income = ZERO
    expenses = ZERO
    count = 0
    for record in records:
        amount = _amount(record)
        if amount > 0:
            income += amount
        elif amount < 0:
            expenses += amount
        count += 1

    balance = income + expenses
    savings_rate = (balance / income * HUNDRED) if income > 0 else ZERO
    return FinancialSummary(
        total_income=income,
        total_expenses=abs(expenses),
        balance=balance,
        transaction_count=count,
        savings_rate=savings_rate,
    )


def group_by_date(records: Iterable[Any]) -> list[DatePoint]:
    """Net amount per date, oldest first."""
    totals: dict[str, Decimal] = {}
    for record in records:
        totals[record.date] = totals.get(record.date, ZERO) + _amount(record)
    return [
        DatePoint(date=date, amount=amount)
        for date, amount in sorted(totals.items(), key=lambda item: _date_key(item[0]))
    ]


def available_months(records: Iterable[Any]) -> list[str]:
    """Distinct MM/YYYY buckets, newest first."""
    months = {m for m in (month_of(r.date) for r in records) if m}

    def key(month: str) -> tuple[int, int]:
        try:
            mm, yyyy = month.split("/")
            return (int(yyyy), int(mm))
        except ValueError:
            return (0, 0)

    return sorted(months, key=key, reverse=True)


def filter_by_month(records: Iterable[Any], month: str | None) -> list[Any]:
    if not month:
        return list(records)
    return [r for r in records if month_of(r.date) == month]


def _with_percentages(totals: dict[str, Decimal]) -> list[CategorySlice]:
    group_total = sum(totals.values(), ZERO)
    slices = [
        CategorySlice(
            name=name,
            value=value,
            percentage=(value / group_total * HUNDRED) if group_total else ZERO,
        )
        for name, value in totals.items()
    ]
    return sorted(slices, key=lambda s: s.value, reverse=True)


def expenses_by_category(records: Iterable[Any]) -> list[CategorySlice]:
    """Absolute expense per category (negative amounts only), largest first."""
    totals: dict[str, Decimal] = {}
    for record in records:
        amount = _amount(record)
        if amount < 0:
            totals[record.category] = totals.get(record.category, ZERO) + abs(amount)
    return _with_percentages(totals)


def description_stats(records: Iterable[Any]) -> list[DescriptionStat]:
    """Net amount and count per description, by absolute amount descending.

    A description is flagged as income by the sign of its first occurrence.
    """
    groups: dict[str, dict[str, Any]] = {}
    for record in records:
        name = record.description or NO_DESCRIPTION
        amount = _amount(record)
        group = groups.setdefault(name, {"amount": ZERO, "count": 0, "is_income": amount > 0})
        group["amount"] += amount
        group["count"] += 1

    stats = [DescriptionStat(name=name, **group) for name, group in groups.items()]
    return sorted(stats, key=lambda s: s.abs_amount, reverse=True)


def top_expenses(records: Sequence[Any], limit: int = 5) -> list[Any]:
    """The ``limit`` largest individual expenses, most negative first."""
    expenses = [r for r in records if _amount(r) < 0]
    return sorted(expenses, key=_amount)[:limit]
