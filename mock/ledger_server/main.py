from typing import Any, Dict, List
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Mock Ledger Server", version="1.0.0")

# Posted transactions keyed by schedule id; replays of the same payment are ignored
POSTED: Dict[str, Dict[str, Any]] = {}

@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/mock-ledger")
def post_transaction(event: Dict[str, Any]):
    if event.get("event") != "DEBT_PAYMENT_POSTED":
        raise HTTPException(status_code=400, detail="unsupported event")
    POSTED.setdefault(event["schedule_id"], event)
    return {"status": "accepted"}

@app.get("/mock-ledger/transactions")
def list_transactions() -> List[Dict[str, Any]]:
    return list(POSTED.values())
