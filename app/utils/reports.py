"""
Report helpers
Period resolution and the totals shown on the dashboard and report pages.
"""
import calendar
from collections import defaultdict
from datetime import date
from typing import Any, Dict, List, Optional, Tuple

PERIODS = ("current-month", "last-month", "current-year", "last-year")
DEFAULT_PERIOD = "current-month"


def _month_range(year: int, month: int) -> Tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def resolve_period(period: str, today: date) -> Tuple[date, date]:
    """
    Return the inclusive (start, end) dates for a named period.
    Unknown names fall back to the current month.
    """
    if period == "last-month":
        if today.month == 1:
            return _month_range(today.year - 1, 12)
        return _month_range(today.year, today.month - 1)
    if period == "current-year":
        return date(today.year, 1, 1), date(today.year, 12, 31)
    if period == "last-year":
        return date(today.year - 1, 1, 1), date(today.year - 1, 12, 31)
    return _month_range(today.year, today.month)


def period_title(period: str, today: date) -> str:
    start, _ = resolve_period(period, today)
    if period in ("current-year", "last-year"):
        return str(start.year)
    return f"{calendar.month_name[start.month]} {start.year}"


def dashboard_stats(transactions: List[Dict[str, Any]]) -> Dict[str, Any]:
    income = sum(float(t.get("amount", 0)) for t in transactions if t["type"] == "income")
    expenses = sum(float(t.get("amount", 0)) for t in transactions if t["type"] == "expense")
    return {
        "total_income": income,
        "total_expenses": expenses,
        "balance": income - expenses,
        "transactions": transactions,
    }


def top_categories(transactions: List[Dict[str, Any]], limit: int = 5) -> List[Dict[str, Any]]:
    """Categories ranked by summed amount across both income and expense."""
    totals: Dict[str, float] = defaultdict(float)
    for t in transactions:
        totals[t["category"]] += float(t.get("amount", 0))
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [{"category": category, "amount": amount} for category, amount in ranked[:limit]]


def monthly_series(transactions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Income, expenses and balance per `YYYY-MM` month, oldest first."""
    monthly: Dict[str, Dict[str, Any]] = {}
    for t in transactions:
        month = str(t["date"])[:7]
        bucket = monthly.setdefault(month, {"month": month, "income": 0.0, "expenses": 0.0, "balance": 0.0})
        if t["type"] == "income":
            bucket["income"] += float(t.get("amount", 0))
        else:
            bucket["expenses"] += float(t.get("amount", 0))
        bucket["balance"] = bucket["income"] - bucket["expenses"]
    return [monthly[month] for month in sorted(monthly)]


def expense_categories(transactions: List[Dict[str, Any]], limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Expense totals per category, largest first, optionally truncated."""
    totals: Dict[str, float] = defaultdict(float)
    for t in transactions:
        if t["type"] == "expense":
            totals[t["category"]] += float(t.get("amount", 0))
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [{"category": category, "amount": amount} for category, amount in ranked]


def build_report(period: str, transactions: List[Dict[str, Any]], today: date) -> Dict[str, Any]:
    if period not in PERIODS:
        period = DEFAULT_PERIOD
    start, end = resolve_period(period, today)
    stats = dashboard_stats(transactions)
    return {
        "period": period,
        "title": period_title(period, today),
        "start_date": start.isoformat(),
        "end_date": end.isoformat(),
        "income": stats["total_income"],
        "expenses": stats["total_expenses"],
        "balance": stats["balance"],
        "total_transactions": len(transactions),
        "top_categories": top_categories(transactions),
        "monthly": monthly_series(transactions),
        "expense_categories": expense_categories(transactions),
        "transactions": transactions,
    }
