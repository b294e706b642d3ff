from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

Transaction = Mapping[str, Any]


class InsightType(str, Enum):
    SAVINGS_SUGGESTION = "savings_suggestion"
    SPENDING_PATTERN = "spending_pattern"


@dataclass(frozen=True)
class CategoryBreakdown:
    """Summed expense for one category and its share of total expense."""

    category: str
    amount: float
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Insight:
    type: InsightType
    title: str
    description: str
    confidence: int

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        return data


@dataclass(frozen=True)
class SpendingAnalysis:
    top_spending_categories: List[CategoryBreakdown] = field(default_factory=list)
    total_expenses: float = 0.0
    insights: List[Insight] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "top_spending_categories": [c.to_dict() for c in self.top_spending_categories],
            "total_expenses": self.total_expenses,
            "insights": [i.to_dict() for i in self.insights],
        }


@dataclass(frozen=True)
class CashflowPrediction:
    month: str
    predicted_income: int
    predicted_expenses: int
    predicted_balance: int
    confidence: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def transaction_date(transaction: Transaction) -> date:
    """Return the calendar day of a transaction, accepting `date` objects or ISO strings."""
    value = transaction["date"]
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def previous_month(year: int, month: int) -> Tuple[int, int]:
    if month == 1:
        return year - 1, 12
    return year, month - 1


def next_month(year: int, month: int) -> Tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


class InsightEngine:
    """
    Heuristic spending analysis and cash-flow projection over an in-memory
    list of transactions. Every method is pure: the evaluation date is either
    passed in explicitly or read once from the injected clock.
    """

    def __init__(
        self,
        clock: Callable[[], date] = date.today,
        top_n: int = 5,
        concentration_threshold: float = 30.0,
        increase_threshold: float = 20.0,
        reduction_threshold: float = -10.0,
        history_months: int = 3,
    ) -> None:
        self._clock = clock
        self._top_n = top_n
        self._concentration_threshold = concentration_threshold
        self._increase_threshold = increase_threshold
        self._reduction_threshold = reduction_threshold
        self._history_months = history_months

    def category_breakdown(self, transactions: Iterable[Transaction]) -> Tuple[List[CategoryBreakdown], float]:
        """
        Rank expense categories by summed amount, descending. Ties keep the
        order in which the categories were first seen.
        """
        totals: Dict[str, float] = defaultdict(float)
        for t in transactions:
            if t["type"] == "expense":
                totals[t["category"]] += float(t.get("amount", 0))

        ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
        # Summed in ranked order so the breakdown adds back up to the total exactly
        total_expenses = sum(amount for _, amount in ranked)
        if total_expenses == 0:
            return [], 0.0

        categories = [
            CategoryBreakdown(category=category, amount=amount, percentage=amount / total_expenses * 100)
            for category, amount in ranked
        ]
        return categories, total_expenses

    def analyze_spending_patterns(
        self,
        transactions: Iterable[Transaction],
        today: Optional[date] = None,
    ) -> SpendingAnalysis:
        transactions = list(transactions)
        today = today or self._clock()

        categories, total_expenses = self.category_breakdown(transactions)
        return SpendingAnalysis(
            top_spending_categories=categories[: self._top_n],
            total_expenses=total_expenses,
            insights=self.generate_insights(categories, transactions, today),
        )

    def generate_insights(
        self,
        categories: List[CategoryBreakdown],
        transactions: List[Transaction],
        today: date,
    ) -> List[Insight]:
        insights: List[Insight] = []

        concentration = self._concentration_insight(categories)
        if concentration:
            insights.append(concentration)

        trend = self._month_over_month_insight(transactions, today)
        if trend:
            insights.append(trend)

        return insights

    def _concentration_insight(self, categories: List[CategoryBreakdown]) -> Optional[Insight]:
        if not categories:
            return None
        top = categories[0]
        if top.percentage <= self._concentration_threshold:
            return None
        return Insight(
            type=InsightType.SAVINGS_SUGGESTION,
            title="High spending in a single category",
            description=(
                f"You are spending {top.percentage:.1f}% of your budget on {top.category}. "
                "Consider reviewing these expenses."
            ),
            confidence=85,
        )

    def _month_over_month_insight(self, transactions: List[Transaction], today: date) -> Optional[Insight]:
        current = (today.year, today.month)
        previous = previous_month(*current)

        current_total = 0.0
        previous_total = 0.0
        for t in transactions:
            if t["type"] != "expense":
                continue
            day = transaction_date(t)
            key = (day.year, day.month)
            if key == current:
                current_total += float(t.get("amount", 0))
            elif key == previous:
                previous_total += float(t.get("amount", 0))

        if previous_total <= 0:
            return None

        change = (current_total - previous_total) / previous_total * 100
        if change > self._increase_threshold:
            return Insight(
                type=InsightType.SPENDING_PATTERN,
                title="Significant increase in spending",
                description=(
                    f"Your spending increased {change:.1f}% compared to last month. "
                    "Keep a close eye on your expenses."
                ),
                confidence=90,
            )
        if change < self._reduction_threshold:
            return Insight(
                type=InsightType.SPENDING_PATTERN,
                title="Spending reduced",
                description=f"Well done! You cut your spending by {abs(change):.1f}% compared to last month.",
                confidence=95,
            )
        return None

    def monthly_totals(self, transactions: Iterable[Transaction]) -> Dict[str, Dict[str, float]]:
        """Income and expense totals keyed by `YYYY-MM` of the transaction date."""
        monthly: Dict[str, Dict[str, float]] = {}
        for t in transactions:
            month = transaction_date(t).strftime("%Y-%m")
            bucket = monthly.setdefault(month, {"income": 0.0, "expenses": 0.0})
            if t["type"] == "income":
                bucket["income"] += float(t.get("amount", 0))
            else:
                bucket["expenses"] += float(t.get("amount", 0))
        return monthly

    def predict_cashflow(
        self,
        transactions: Iterable[Transaction],
        today: Optional[date] = None,
    ) -> Optional[CashflowPrediction]:
        """
        Project next month's income, expenses and balance as the mean of the
        last three months that have any activity. Returns None when fewer than
        three distinct months are present.
        """
        monthly = self.monthly_totals(transactions)
        months = sorted(monthly)
        if len(months) < self._history_months:
            return None

        recent = months[-self._history_months:]
        avg_income = sum(monthly[m]["income"] for m in recent) / self._history_months
        avg_expenses = sum(monthly[m]["expenses"] for m in recent) / self._history_months

        today = today or self._clock()
        year, month = next_month(today.year, today.month)

        predicted_income = round_half_up(avg_income)
        predicted_expenses = round_half_up(avg_expenses)
        return CashflowPrediction(
            month=f"{year:04d}-{month:02d}",
            predicted_income=predicted_income,
            predicted_expenses=predicted_expenses,
            predicted_balance=predicted_income - predicted_expenses,
            confidence=75,
        )
