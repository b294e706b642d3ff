from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.db import dynamo
from app.models.transaction import (
    TransactionCreate,
    TransactionInDB,
    TransactionPublic,
    TransactionType,
    TransactionUpdate,
)
from app.routers.deps import get_current_user_id

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/", response_model=List[TransactionPublic])
def list_transactions(
    start_date: Optional[str] = Query(None, description="Inclusive lower bound, YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, description="Inclusive upper bound, YYYY-MM-DD"),
    category: Optional[str] = None,
    type: Optional[TransactionType] = None,
    user_id: str = Depends(get_current_user_id),
):
    """List the user's transactions, newest first."""
    return dynamo.get_transactions(
        user_id,
        start_date=start_date,
        end_date=end_date,
        category=category,
        type=type,
    )


@router.post("/", response_model=TransactionPublic, status_code=status.HTTP_201_CREATED)
def create_transaction(transaction: TransactionCreate, user_id: str = Depends(get_current_user_id)):
    data = transaction.model_dump()
    data["date"] = transaction.date.isoformat()
    transaction_db = TransactionInDB(user_id=user_id, **data)
    success = dynamo.put_transaction(transaction_db.model_dump())
    if not success:
        raise HTTPException(status_code=500, detail="Failed to save transaction")
    return TransactionPublic(**transaction_db.model_dump())


@router.put("/{transaction_id}", response_model=TransactionPublic)
def update_transaction(
    transaction_id: str,
    transaction_update: TransactionUpdate,
    user_id: str = Depends(get_current_user_id),
):
    mutable_fields = {
        k: v for k, v in transaction_update.model_dump(exclude_unset=True).items() if v is not None
    }
    if not mutable_fields:
        raise HTTPException(status_code=400, detail="No fields to update")
    if "date" in mutable_fields:
        mutable_fields["date"] = mutable_fields["date"].isoformat()

    try:
        updated = dynamo.update_transaction(user_id, transaction_id, mutable_fields)
    except dynamo.DataAccessError:
        raise HTTPException(status_code=500, detail="Failed to update transaction")
    if not updated:
        raise HTTPException(status_code=404, detail="Transaction not found")

    return TransactionPublic(**updated)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(transaction_id: str, user_id: str = Depends(get_current_user_id)):
    try:
        deleted = dynamo.delete_transaction(user_id, transaction_id)
    except dynamo.DataAccessError:
        raise HTTPException(status_code=500, detail="Failed to delete transaction")
    if not deleted:
        raise HTTPException(status_code=404, detail="Transaction not found")
    return None
