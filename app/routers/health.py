"""
Health Check Router
Service liveness plus a data store connectivity check
"""
from fastapi import APIRouter
from datetime import datetime, timezone
import logging

from botocore.exceptions import BotoCoreError, ClientError

from app.core.config import settings
from app.db import dynamo

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check():
    """
    Health check endpoint.
    Returns API status.
    """
    return {
        "status": "healthy",
        "service": settings.PROJECT_NAME,
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@router.get("/status")
def data_store_status():
    """
    Check connectivity to the DynamoDB users and transactions tables.
    """
    tables = {
        "users": (dynamo.users_table, settings.DYNAMO_USERS_TABLE),
        "transactions": (dynamo.transactions_table, settings.DYNAMO_TRANSACTIONS_TABLE),
    }
    status = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "region": settings.DYNAMO_REGION,
        "tables": {},
    }

    for label, (table, name) in tables.items():
        try:
            table.scan(Limit=1)
            status["tables"][label] = {"name": name, "status": "accessible"}
        except (ClientError, BotoCoreError) as e:
            logger.error(f"DynamoDB check failed for {name}: {str(e)}")
            status["tables"][label] = {"name": name, "status": "error", "error": str(e)}

    all_accessible = all(t["status"] == "accessible" for t in status["tables"].values())
    status["overall_status"] = "healthy" if all_accessible else "degraded"
    return status
