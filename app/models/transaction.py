import datetime as dt
from typing import Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

TransactionType = Literal["income", "expense"]


class TransactionCreate(BaseModel):
    type: TransactionType
    amount: float = Field(ge=0)
    description: Optional[str] = ""
    category: str = Field(min_length=1)
    date: dt.date = Field(default_factory=dt.date.today)


class TransactionUpdate(BaseModel):
    type: Optional[TransactionType] = None
    amount: Optional[float] = Field(default=None, ge=0)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1)
    date: Optional[dt.date] = None


class TransactionInDB(BaseModel):
    user_id: str
    transaction_id: str = Field(default_factory=lambda: str(uuid4()))
    type: TransactionType
    amount: float
    description: Optional[str] = ""
    category: str
    date: str  # YYYY-MM-DD
    created_at: str = Field(default_factory=lambda: dt.datetime.now(dt.timezone.utc).isoformat())


class TransactionPublic(BaseModel):
    transaction_id: str
    type: TransactionType
    amount: float
    description: Optional[str] = ""
    category: str
    date: str
    created_at: str
