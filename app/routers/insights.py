from datetime import date
from typing import Dict
import logging

from fastapi import APIRouter, Depends

from app.db import dynamo
from app.routers.deps import get_current_user_id, get_today
from app.utils.insights import InsightEngine

router = APIRouter()
logger = logging.getLogger(__name__)
insight_engine = InsightEngine()


@router.get("/")
def get_insights(user_id: str = Depends(get_current_user_id), today: date = Depends(get_today)) -> Dict:
    """
    Spending analysis over all of the user's transactions. `prediction` is
    null until at least three distinct months of history exist.
    """
    transactions = dynamo.get_transactions(user_id)
    logger.info(f"Generating insights for user {user_id} over {len(transactions)} transactions")

    analysis = insight_engine.analyze_spending_patterns(transactions, today=today)
    prediction = insight_engine.predict_cashflow(transactions, today=today)

    return {
        "analysis": analysis.to_dict(),
        "prediction": prediction.to_dict() if prediction else None,
    }
