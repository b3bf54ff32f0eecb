"""Deterministic transaction categorization.

Statement exports carry no category, so one is inferred from the
description (and, for card spends, the transaction type) with ordered
substring rules. The rules are not mutually exclusive: the first match
wins, and anything unmatched falls into the default category.

The `Categorizer` protocol lets callers swap in another strategy (lookup
table, learned model) without changing the ingestion code.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from functools import lru_cache
from typing import Protocol

# A predicate receives the lower-cased description and lower-cased type.
Predicate = Callable[[str, str], bool]

FOOD = "Food"
INCOME = "Income"
TRANSFERS = "Transfers"
FIXED_BILLS = "Fixed Bills"
LEISURE = "Leisure"
CONSUMPTION = "Consumption"
OTHER = "Other"


class Categorizer(Protocol):
    def classify(self, description: str | None, transaction_type: str | None = None) -> str:
        ...


def description_contains(*terms: str) -> Predicate:
    lowered = tuple(t.lower() for t in terms)
    return lambda description, _type: any(t in description for t in lowered)


def type_contains(*terms: str) -> Predicate:
    lowered = tuple(t.lower() for t in terms)
    return lambda _description, transaction_type: any(t in transaction_type for t in lowered)


def build_default_rules(transfer_counterparties: Iterable[str] = ()) -> list[tuple[str, Predicate]]:
    """Baseline rule set. Ordering matters: earlier matches win."""
    rules: list[tuple[str, Predicate]] = [
        (FOOD, description_contains("mercado", "hortifruti", "armazem", "supermarket", "grocery")),
        (INCOME, description_contains("pix recebido", "vendas", "pix received", "sales")),
    ]
    counterparties = [c.strip() for c in transfer_counterparties if c and c.strip()]
    if counterparties:
        rules.append((TRANSFERS, description_contains(*counterparties)))
    rules += [
        (FIXED_BILLS, description_contains("celesc", "agua", "água", "water", "energia", "internet")),
        (LEISURE, description_contains("spotify", "netflix")),
        (CONSUMPTION, type_contains("cartão de débito", "cartao de debito", "debit card")),
    ]
    return rules


class RuleBasedCategorizer:
    """Ordered list of (category, predicate) pairs with a default."""

    def __init__(self, rules: Sequence[tuple[str, Predicate]], default: str = OTHER):
        self.rules = list(rules)
        self.default = default

    def classify(self, description: str | None, transaction_type: str | None = None) -> str:
        desc = (description or "").lower()
        txn_type = (transaction_type or "").lower()
        for category, predicate in self.rules:
            if predicate(desc, txn_type):
                return category
        return self.default


@lru_cache
def get_default_categorizer() -> RuleBasedCategorizer:
    from finboard.config import settings

    return RuleBasedCategorizer(build_default_rules(settings.transfer_counterparties))


def categorize(description: str | None, transaction_type: str | None = None) -> str:
    """Infer a category from the transaction description and type.

    Args:
        description: Statement narrative.
        transaction_type: Method/channel label (e.g., "Cartão de Débito").

    Returns:
        Category label, or OTHER when no rule matches.
    """
    return get_default_categorizer().classify(description, transaction_type)
