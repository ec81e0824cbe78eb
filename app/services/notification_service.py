"""Contractor notifications for newly assigned leads."""

import html
import logging
from typing import Optional, Protocol
from uuid import UUID

from app.core.config import settings
from app.core.exceptions import NotificationError
from app.models.contractor import Contractor
from app.models.lead import Lead
from app.services.email_service import EmailService, email_service
from app.services.scoring import PRIORITY_HIGH, PRIORITY_MEDIUM, priority_label

logger = logging.getLogger(__name__)

PRIORITY_HEADLINES = {
    PRIORITY_HIGH: ("HIGH PRIORITY", "#dc2626"),
    PRIORITY_MEDIUM: ("MEDIUM PRIORITY", "#d97706"),
}
STANDARD_HEADLINE = ("STANDARD", "#059669")


class ContractorNotifier(Protocol):
    """Tells a contractor a lead was routed to them. Raises NotificationError on failure."""

    async def notify(self, contractor: Contractor, lead: Lead, assignment_id: UUID) -> None:
        ...


def _display(value: Optional[object]) -> str:
    if value is None or value == "":
        return "Not provided"
    return html.escape(str(getattr(value, "value", value)))


def build_lead_email(contractor: Contractor, lead: Lead, assignment_id: UUID) -> tuple[str, str, str]:
    """Return (subject, html_body, plain_body) for a lead assignment email."""
    headline, color = PRIORITY_HEADLINES.get(priority_label(lead.overall_score or 0), STANDARD_HEADLINE)
    room = _display(lead.room_type)
    zip_code = _display(lead.zip)
    dashboard_url = f"{settings.DASHBOARD_URL.rstrip('/')}/contractor-dashboard"

    subject = f"New {headline} Lead - {room} in {zip_code}"

    images = ""
    if lead.image_url or lead.ai_url:
        before = f'<p>Before</p><img src="{html.escape(lead.image_url)}" alt="Before" style="width: 100%;" />' if lead.image_url else ""
        after = f'<p>After (AI Generated)</p><img src="{html.escape(lead.ai_url)}" alt="After" style="width: 100%;" />' if lead.ai_url else ""
        images = f'<div style="margin: 30px 0;"><h3>Project Images</h3>{before}{after}</div>'

    html_body = f"""
    <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #2563eb;">New Lead Assignment</h2>
                <div style="background: {color}; color: white; padding: 8px 16px; border-radius: 20px; display: inline-block; font-weight: bold;">
                    {headline} - Score: {lead.overall_score}
                </div>

                <p>Hi {_display(contractor.name)}, a new homeowner lead has been routed to you:</p>

                <div style="background-color: #f8fafc; padding: 15px; border-radius: 5px; margin: 20px 0;">
                    <p><strong>Name:</strong> {_display(lead.name)}</p>
                    <p><strong>Email:</strong> {_display(lead.email)}</p>
                    <p><strong>Phone:</strong> {_display(lead.phone)}</p>
                    <p><strong>ZIP Code:</strong> {zip_code}</p>
                    <p><strong>Project Type:</strong> {room}</p>
                    <p><strong>Style:</strong> {_display(lead.style)}</p>
                    <p><strong>Wants Quote:</strong> {"YES" if lead.wants_quote else "NO"}</p>
                </div>
                {images}
                <ul>
                    <li>Contact the lead within 24 hours for best results</li>
                    <li>Reference their AI design when reaching out</li>
                    <li>Update lead status in your contractor dashboard</li>
                </ul>

                <p>
                    <a href="{dashboard_url}"
                       style="display: inline-block; padding: 12px 24px; background-color: #2563eb;
                              color: white; text-decoration: none; border-radius: 5px;">
                        View in Dashboard
                    </a>
                </p>

                <p style="color: #666; font-size: 14px; margin-top: 40px;">Assignment ID: {assignment_id}</p>
            </div>
        </body>
    </html>
    """

    plain_body = f"""
    New Lead Assignment ({headline} - Score: {lead.overall_score})

    Name: {lead.name or 'Not provided'}
    Email: {lead.email or 'Not provided'}
    Phone: {lead.phone or 'Not provided'}
    ZIP Code: {lead.zip or 'Not provided'}
    Project Type: {getattr(lead.room_type, 'value', lead.room_type)}
    Style: {lead.style or 'Not provided'}
    Wants Quote: {"YES" if lead.wants_quote else "NO"}

    View in dashboard: {dashboard_url}

    Assignment ID: {assignment_id}
    """

    return subject, html_body, plain_body


class EmailContractorNotifier:
    """Sends the assignment email through SendGrid."""

    def __init__(self, emails: EmailService = email_service):
        self.emails = emails

    async def notify(self, contractor: Contractor, lead: Lead, assignment_id: UUID) -> None:
        if not self.emails.enabled:
            # Local and preview deployments run without an email key.
            logger.warning(
                "Email disabled; notification for assignment %s to %s skipped",
                assignment_id,
                contractor.email,
            )
            return

        subject, html_body, plain_body = build_lead_email(contractor, lead, assignment_id)
        sent = await self.emails.send_email(contractor.email, subject, html_body, plain_body)
        if not sent:
            raise NotificationError(f"Email to {contractor.email} was not accepted")

        logger.info("Contractor notification sent to %s for lead %s", contractor.email, lead.id)
