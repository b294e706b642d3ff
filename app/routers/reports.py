from datetime import date
from typing import Dict
import logging

from fastapi import APIRouter, Depends, HTTPException, Response

from app.db import dynamo
from app.routers.deps import get_current_user_id, get_today
from app.utils import export
from app.utils.reports import PERIODS, build_report, resolve_period

router = APIRouter()
logger = logging.getLogger(__name__)


def _load_report(period: str, user_id: str, today: date) -> Dict:
    if period not in PERIODS:
        raise HTTPException(
            status_code=400,
            detail=f"Unknown period '{period}'. Expected one of: {', '.join(PERIODS)}",
        )
    start, end = resolve_period(period, today)
    logger.info(f"Generating {period} report for user_id: {user_id} ({start} to {end})")
    transactions = dynamo.get_transactions(user_id, start_date=start.isoformat(), end_date=end.isoformat())
    logger.info(f"Found {len(transactions)} transactions for user {user_id} in period {period}")
    return build_report(period, transactions, today)


@router.get("/{period}")
def get_report(period: str, user_id: str = Depends(get_current_user_id), today: date = Depends(get_today)) -> Dict:
    """
    Totals, balance and top categories for one of: current-month,
    last-month, current-year, last-year.
    """
    return _load_report(period, user_id, today)


@router.get("/{period}/csv")
def export_report_csv(period: str, user_id: str = Depends(get_current_user_id), today: date = Depends(get_today)):
    report = _load_report(period, user_id, today)
    filename = export.export_filename(report["title"], "csv")
    return Response(
        content=export.render_csv(report["transactions"]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{period}/pdf")
def export_report_pdf(period: str, user_id: str = Depends(get_current_user_id), today: date = Depends(get_today)):
    report = _load_report(period, user_id, today)
    filename = export.export_filename(report["title"], "pdf")
    return Response(
        content=export.render_pdf(report),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
