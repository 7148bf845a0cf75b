# intellibook/services/notification/notification_service.py
"""
Booking notifications. Runs after commit and is strictly best-effort:
every failure is logged and counted, none is raised to the writer.
"""
import html
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from intellibook.services.email.email_service import EmailResult, EmailService
from intellibook.utils.time_utils import format_human, parse_time_lenient

logger = logging.getLogger(__name__)

CLIENT_CONFIRMED = "client_confirmed"
CLIENT_PENDING = "client_pending"
CLIENT_STATUS = "client_status"
OWNER_ALERT = "owner_alert"
OWNER_REQUEST = "owner_request"


@dataclass
class NotificationSummary:
    mode: str = "none"
    sent: int = 0
    failed: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"mode": self.mode, "sent": self.sent}


@dataclass
class Recipients:
    business_name: str
    owner_email: Optional[str] = None
    notify_owner: bool = True


def _human_time(value: str) -> str:
    return format_human(parse_time_lenient(value))


def build_branded_html(
        business_name: str,
        title: str,
        message: str,
        details: List[Tuple[str, str]],
        subtitle: Optional[str] = None
) -> str:
    """Single-column branded email body; every value is escaped"""
    brand = html.escape(business_name or "IntelliBook")
    subtitle_html = (
        f'<p style="margin:6px 0 0;color:#e2e8f0;font-size:14px;">{html.escape(subtitle)}</p>'
        if subtitle else ""
    )
    rows = "".join(
        f"""
            <tr>
                <td style="padding:8px 10px;background:#f8fafc;border:1px solid #e2e8f0;width:140px;font-size:12px;font-weight:700;color:#334155;text-transform:uppercase;">{html.escape(label)}</td>
                <td style="padding:8px 10px;border:1px solid #e2e8f0;font-size:14px;color:#0f172a;">{html.escape(str(value))}</td>
            </tr>"""
        for label, value in details
    )
    message_html = html.escape(message).replace("\n", "<br/>")

    return f"""<!DOCTYPE html>
<html>
<body style="margin:0;padding:0;background:#f1f5f9;font-family:Arial,sans-serif;">
    <div style="max-width:640px;margin:24px auto;background:#ffffff;border:1px solid #e2e8f0;border-radius:18px;overflow:hidden;">
        <div style="padding:18px 20px;background:linear-gradient(135deg,#667eea 0%,#764ba2 100%);color:#ffffff;">
            <div style="font-size:13px;opacity:.9;">{brand}</div>
            <div style="font-size:22px;font-weight:800;margin-top:4px;">{html.escape(title)}</div>
            {subtitle_html}
        </div>
        <div style="padding:20px;">
            <div style="font-size:14px;line-height:1.65;color:#0f172a;">{message_html}</div>
            <table role="presentation" width="100%" cellpadding="0" cellspacing="0" style="margin-top:14px;">{rows}
            </table>
        </div>
        <div style="padding:14px 20px;border-top:1px solid #e2e8f0;font-size:12px;color:#64748b;">
            Sent by {brand}
        </div>
    </div>
</body>
</html>"""


class NotificationService:
    """Builds and dispatches booking emails"""

    def __init__(self, email_service: Optional[EmailService] = None):
        self.email_service = email_service or EmailService()

    def render(self, template_kind: str, appointment: Dict[str, Any], recipients: Recipients) -> Tuple[str, str, str]:
        """Returns (subject, plain_text, html)"""
        business = recipients.business_name
        when = f"{appointment['date']} at {_human_time(appointment['time'])}"
        type_name = appointment.get("type_name") or "Appointment"

        if template_kind == CLIENT_PENDING:
            subject = f"{business}: Booking received - awaiting confirmation"
            text = (
                f"Hi {appointment['client_name']},\n\n"
                f"Your {type_name} request for {when} has been received and is awaiting "
                f"confirmation from the business.\n\n"
                f"Location: {appointment['location']}\n"
                f"Duration: {appointment['duration_minutes']} minutes\n\n"
                f"You will be notified once it is confirmed.\n\nThanks,\n{business}"
            )
            title = "Booking Received - Awaiting Confirmation"
            status_label = "Pending Confirmation"
        elif template_kind == CLIENT_CONFIRMED:
            subject = f"{business}: Appointment confirmed"
            text = (
                f"Hi {appointment['client_name']},\n\n"
                f"Your {type_name} is confirmed for {when}.\n\n"
                f"Location: {appointment['location']}\n"
                f"Duration: {appointment['duration_minutes']} minutes\n\nThanks,\n{business}"
            )
            title = "Appointment Confirmed"
            status_label = "Confirmed"
        elif template_kind == CLIENT_STATUS:
            status = appointment["status"]
            subject = f"{business}: Appointment {status}"
            text = (
                f"Hi {appointment['client_name']}, your appointment on {when} is now {status}."
            )
            title = f"Appointment {status.capitalize()}"
            status_label = status.capitalize()
        elif template_kind in (OWNER_ALERT, OWNER_REQUEST):
            is_request = template_kind == OWNER_REQUEST
            subject = f"[Owner Alert] New booking - {business}"
            headline = (
                f"New booking request in {business} - ACTION REQUIRED"
                if is_request else f"New booking received in {business}"
            )
            text = (
                f"{headline}\n\n"
                f"Type: {type_name}\n"
                f"Client: {appointment['client_name']}\n"
                f"When: {when}\n"
                f"Source: {appointment['source']}"
            )
            if is_request:
                text += "\n\nLog in to your dashboard to confirm or decline this booking."
            title = "New Booking Request - Action Required" if is_request else "New Booking Alert"
            status_label = "Pending Your Approval" if is_request else appointment["status"].capitalize()
        else:
            raise ValueError(f"Unknown notification template: {template_kind}")

        details = [
            ("Service", type_name),
            ("Client", appointment["client_name"]),
            ("Date", appointment["date"]),
            ("Time", _human_time(appointment["time"])),
            ("Duration", f"{appointment['duration_minutes']} minutes"),
            ("Location", appointment["location"]),
            ("Status", status_label),
        ]
        body = build_branded_html(business, title, text, details, subtitle=type_name)
        return subject, text, body

    def notify(self, target: Optional[str], template_kind: str, appointment: Dict[str, Any], recipients: Recipients) -> EmailResult:
        """Send one message; never raises"""
        try:
            subject, text, body = self.render(template_kind, appointment, recipients)
            return self.email_service.send_email(target, subject, body, text)
        except Exception as e:
            logger.error(f"Notification '{template_kind}' to {target} failed: {e}")
            return EmailResult(ok=False, error=str(e))

    @staticmethod
    def _summarize(results: List[EmailResult]) -> NotificationSummary:
        providers = [r.provider for r in results if r.provider]
        return NotificationSummary(
            mode=providers[0] if providers else "none",
            sent=sum(1 for r in results if r.ok),
            failed=sum(1 for r in results if not r.ok),
        )

    def booking_created(self, appointment: Dict[str, Any], recipients: Recipients) -> NotificationSummary:
        is_public = appointment["source"] == "public"
        results = []

        if appointment.get("client_email"):
            results.append(self.notify(
                appointment["client_email"],
                CLIENT_PENDING if is_public else CLIENT_CONFIRMED,
                appointment,
                recipients,
            ))

        if recipients.owner_email and recipients.notify_owner:
            results.append(self.notify(
                recipients.owner_email,
                OWNER_REQUEST if is_public else OWNER_ALERT,
                appointment,
                recipients,
            ))

        summary = self._summarize(results)
        if summary.failed:
            logger.warning(
                f"{summary.failed} notification(s) failed for appointment {appointment.get('id')}"
            )
        return summary

    def status_changed(self, appointment: Dict[str, Any], recipients: Recipients) -> NotificationSummary:
        if not appointment.get("client_email"):
            return NotificationSummary()
        return self._summarize([
            self.notify(appointment["client_email"], CLIENT_STATUS, appointment, recipients)
        ])
