"""
services/followup_service.py — Daily follow-up emails for open bids

Business Rules:
- A bid is due for follow-up when follow_up_on is today (in the configured
  follow-up timezone) and its status is one of followup_active_statuses
- Bids without a contact email are skipped with a warning
- One message per bid; a failed send is logged and the run continues
- The run only reads bids; nothing is written back

Called by: scheduler.py (daily cron), routers/followups.py (manual run, test email)
Depends on: fastapi-mail, config, models
"""

from datetime import date, datetime
from html import escape
from zoneinfo import ZoneInfo

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType
from loguru import logger
from sqlalchemy.orm import Session, joinedload

from ..errors import MailDeliveryError
from ..config import settings
from ..models import Bid


def build_mail_config() -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=settings.mail_username,
        MAIL_PASSWORD=settings.mail_password,
        MAIL_FROM=settings.mail_from,
        MAIL_FROM_NAME=settings.mail_from_name,
        MAIL_PORT=settings.mail_port,
        MAIL_SERVER=settings.mail_server,
        MAIL_STARTTLS=settings.mail_starttls,
        MAIL_SSL_TLS=settings.mail_ssl_tls,
        USE_CREDENTIALS=bool(settings.mail_username),
        SUPPRESS_SEND=int(settings.mail_suppress_send),
    )


def followup_today() -> date:
    return datetime.now(ZoneInfo(settings.followup_timezone)).date()


def due_followups(db: Session, today: date) -> list[Bid]:
    return (
        db.query(Bid)
        .options(joinedload(Bid.client_company), joinedload(Bid.contact))
        .filter(
            Bid.follow_up_on == today,
            Bid.bid_status.in_(settings.followup_active_statuses),
        )
        .order_by(Bid.id)
        .all()
    )


async def send_test_email(to: str, mailer: FastMail | None = None) -> None:
    """One-off message to check the SMTP settings."""
    mailer = mailer or FastMail(build_mail_config())
    message = MessageSchema(
        subject="Bid Tracker test email",
        recipients=[to],
        body="<p>Hello from Bid Tracker. Outgoing mail is working.</p>",
        subtype=MessageType.html,
    )
    try:
        await mailer.send_message(message)
    except Exception as e:
        logger.error(f"Test email to {to} failed: {e}")
        raise MailDeliveryError(f"Test email failed: {e}") from e
    logger.info(f"Test email sent → {to}")


def render_followup(bid: Bid) -> tuple[str, str]:
    """Return (subject, html body) for one bid."""
    client = bid.client_company.name if bid.client_company else "—"
    proposal = bid.proposal_date.isoformat() if bid.proposal_date else "—"
    due = bid.due_date.isoformat() if bid.due_date else "—"
    subject = f"Follow-up: {bid.project_name}"
    html = f"""
    <p>Hello,</p>
    <p>Following up on <b>{escape(bid.project_name)}</b>.</p>
    <ul>
      <li>Client: {escape(client)}</li>
      <li>Proposal Date: {proposal}</li>
      <li>Due Date: {due}</li>
    </ul>
    <p>Please let us know if you have any questions.</p>
    """
    return subject, html


async def run_followups(db: Session, today: date | None = None, mailer: FastMail | None = None) -> dict:
    """Send today's follow-ups. Returns {checked, sent, skipped, failed}."""
    today = today or followup_today()
    bids = due_followups(db, today)
    stats = {"checked": len(bids), "sent": 0, "skipped": 0, "failed": 0}
    if not bids:
        logger.info(f"No follow-ups due on {today}")
        return stats

    mailer = mailer or FastMail(build_mail_config())
    for bid in bids:
        to = bid.contact.email if bid.contact else None
        if not to:
            logger.warning(f"Skipping bid {bid.id} ({bid.project_name}): no contact email")
            stats["skipped"] += 1
            continue
        subject, html = render_followup(bid)
        try:
            message = MessageSchema(
                subject=subject,
                recipients=[to],
                body=html,
                subtype=MessageType.html,
            )
            await mailer.send_message(message)
        except Exception as e:
            logger.error(f"Follow-up email failed for bid {bid.id}: {e}")
            stats["failed"] += 1
            continue
        stats["sent"] += 1
        logger.info(f"Follow-up sent for bid {bid.id} → {to}")

    logger.info(f"Follow-up run {today}: {stats}")
    return stats
