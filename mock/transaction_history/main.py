from fastapi import FastAPI
from pydantic import BaseModel
from typing import List, Optional

app = FastAPI(title="Mock Transaction History", version="1.0.0")

RECORDS: List[dict] = []


class ExpenseIn(BaseModel):
    user_id: str
    type: str
    description: str
    amount_cents: int
    date: str
    card_id: str
    account_id: Optional[str] = None
    notes: Optional[str] = None


@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/transactions", status_code=201)
def create_transaction(record: ExpenseIn):
    RECORDS.append(record.model_dump())
    return {"id": len(RECORDS)}

@app.get("/transactions")
def list_transactions(user_id: str):
    return {"transactions": [r for r in RECORDS if r["user_id"] == user_id]}
