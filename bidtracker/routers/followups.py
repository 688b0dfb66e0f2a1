"""routers/followups.py — Admin triggers: run today's follow-ups now, or send a test email."""

from fastapi import APIRouter, Depends, Query
from pydantic import EmailStr
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import require_admin
from ..models import User
from ..services.followup_service import run_followups, send_test_email

router = APIRouter(tags=["followups"])


@router.post("/api/followups/run")
async def run_now(user: User = Depends(require_admin), db: Session = Depends(get_db)):
    return await run_followups(db)


@router.post("/api/followups/test")
async def send_test(to: EmailStr = Query(...), user: User = Depends(require_admin)):
    await send_test_email(str(to))
    return {"ok": True, "to": str(to)}
