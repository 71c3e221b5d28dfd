from fastapi import FastAPI, Header, HTTPException
from pydantic import BaseModel
from typing import Any, Dict, Optional

app = FastAPI(title="Mock Notification Server", version="1.0.0")

# Delivered notifications by dedupe key; a repeated key is acknowledged but not stored twice
INBOX: Dict[str, Dict[str, Any]] = {}


class Notification(BaseModel):
    recipient_id: str
    category: str
    title: str
    message: str
    dedupe_key: str
    action_url: Optional[str] = None
    payload: Dict[str, Any] = {}


@app.get("/health")
def health(): return {"status": "ok"}

@app.post("/notifications")
def deliver(notification: Notification, idempotency_key: Optional[str] = Header(default=None)):
    key = idempotency_key or notification.dedupe_key
    if not notification.recipient_id:
        raise HTTPException(status_code=422, detail="recipient required")
    duplicate = key in INBOX
    if not duplicate:
        INBOX[key] = notification.model_dump()
    return {"status": "delivered", "duplicate": duplicate}

@app.get("/notifications")
def list_notifications(recipient_id: Optional[str] = None):
    items = [n for n in INBOX.values() if recipient_id is None or n["recipient_id"] == recipient_id]
    return {"notifications": items}
