from datetime import date
from typing import Dict
import logging

from fastapi import APIRouter, Depends

from app.db import dynamo
from app.routers.deps import get_current_user_id, get_today
from app.utils.insights import InsightEngine
from app.utils.reports import dashboard_stats, expense_categories, monthly_series, resolve_period

router = APIRouter()
logger = logging.getLogger(__name__)
insight_engine = InsightEngine()


@router.get("/")
def get_dashboard(user_id: str = Depends(get_current_user_id), today: date = Depends(get_today)) -> Dict:
    """
    Current-month totals plus the spending analysis and cash-flow prediction
    computed over the user's full history.
    """
    transactions = dynamo.get_transactions(user_id)

    start, end = resolve_period("current-month", today)
    month_transactions = [
        t for t in transactions if start.isoformat() <= str(t["date"])[:10] <= end.isoformat()
    ]
    stats = dashboard_stats(month_transactions)

    analysis = None
    prediction = None
    if transactions:
        analysis = insight_engine.analyze_spending_patterns(transactions, today=today).to_dict()
        cashflow = insight_engine.predict_cashflow(transactions, today=today)
        prediction = cashflow.to_dict() if cashflow else None

    return {
        "month": start.strftime("%Y-%m"),
        "stats": stats,
        "charts": {
            "monthly": monthly_series(month_transactions),
            "expense_categories": expense_categories(month_transactions, limit=6),
        },
        "analysis": analysis,
        "prediction": prediction,
    }
