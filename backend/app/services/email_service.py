"""Email service for task-assignment notifications.

Sends are best-effort: every public method returns a ``NotificationResult``
instead of raising, and callers run them after the HTTP response has been
sent. There is no retry and no queue.
"""

import logging
import smtplib
from collections.abc import Iterable
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

from pydantic import BaseModel

from app.components.workspace.diff import AssignmentChange
from app.settings import settings

logger = logging.getLogger(__name__)

TEST_EMAIL_SUBJECT = "One Cre Email Service Test"
NOT_CONFIGURED = "Email service not configured"


class NotificationResult(BaseModel):
    success: bool
    error: str | None = None
    messageId: str | None = None


class EmailNotifier:
    """SMTP-backed notifier.

    ``_open_transport`` is the single place a connection is made, so tests
    can replace it with a fake SMTP object.
    """

    def _sender(self) -> str:
        return f"{settings.email_sender_name} <{settings.smtp_username}>"

    def _open_transport(self) -> smtplib.SMTP:
        server = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=settings.email_timeout)
        if settings.smtp_use_tls:
            server.starttls()
        server.login(settings.smtp_username, settings.smtp_password)
        return server

    def _send(self, to_email: str, subject: str, text: str, html: str) -> NotificationResult:
        msg = MIMEMultipart("alternative")
        msg["From"] = self._sender()
        msg["To"] = to_email
        msg["Subject"] = subject
        msg["Message-ID"] = make_msgid()
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))

        # Development mode: just log the message
        if settings.email_dev_mode:
            logger.info("=" * 60)
            logger.info("EMAIL (DEV MODE)")
            logger.info(f"To: {to_email}")
            logger.info(f"Subject: {subject}")
            logger.info("=" * 60)
            return NotificationResult(success=True, messageId=msg["Message-ID"])

        if not settings.is_email_configured():
            logger.warning(f"{NOT_CONFIGURED}; skipping email to {to_email}")
            return NotificationResult(success=False, error=NOT_CONFIGURED)

        try:
            with self._open_transport() as server:
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            return NotificationResult(success=False, error=str(e))

        logger.info(f"Email sent to {to_email}: {subject}")
        return NotificationResult(success=True, messageId=msg["Message-ID"])

    def notify_assignment(
        self,
        change: AssignmentChange,
        workspace_name: str,
        assigned_by: str | None,
    ) -> NotificationResult:
        """Tell the new assignee about a task assignment."""
        due = change.dueDate.isoformat() if change.dueDate else "Not set"
        assigner = assigned_by or "a teammate"
        dashboard_url = f"{settings.frontend_url.rstrip('/')}/dashboard"

        text = f"""
        You have been assigned a new task

        Task: {change.taskTitle}
        Workspace: {workspace_name}
        Assigned by: {assigner}
        Due date: {due}

        Open your dashboard: {dashboard_url}
        """

        html = f"""
        <!DOCTYPE html>
        <html>
        <head><meta charset="UTF-8"></head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto;">
            <h2>New Task Assignment</h2>
            <p>You have been assigned a new task in <strong>{workspace_name}</strong>.</p>
            <table style="border-collapse: collapse;">
                <tr><td><strong>Task</strong></td><td>{change.taskTitle}</td></tr>
                <tr><td><strong>Assigned by</strong></td><td>{assigner}</td></tr>
                <tr><td><strong>Due date</strong></td><td>{due}</td></tr>
            </table>
            <p><a href="{dashboard_url}">Open your dashboard</a></p>
            <p style="color: #666; font-size: 13px;">This is an automated email. Please do not reply.</p>
        </body>
        </html>
        """

        return self._send(change.newAssignee, f"New Task Assignment: {change.taskTitle}", text, html)

    def test_configuration(self, target_email: str) -> NotificationResult:
        """Check SMTP connectivity, then send a canned message to `target_email`."""
        if not settings.email_dev_mode:
            if not settings.is_email_configured():
                return NotificationResult(success=False, error=NOT_CONFIGURED)
            try:
                with self._open_transport() as server:
                    server.noop()
            except (smtplib.SMTPException, OSError) as e:
                logger.error(f"Email transport check failed: {e}")
                return NotificationResult(success=False, error=str(e))

        text = "This is a test email from One Cre Workspace. Email delivery is working."
        html = f"<p>{text}</p>"
        return self._send(target_email, TEST_EMAIL_SUBJECT, text, html)


email_notifier = EmailNotifier()


def dispatch_changes(
    changes: Iterable[AssignmentChange],
    workspace_name: str,
    assigned_by: str | None,
    notifier: EmailNotifier | None = None,
) -> list[NotificationResult]:
    """Exactly one send attempt per change; failures are logged, never raised."""
    notifier = notifier or email_notifier
    results = []
    for change in changes:
        try:
            result = notifier.notify_assignment(change, workspace_name, assigned_by)
        except Exception as e:
            logger.error(f"Assignment notification for task {change.taskId} crashed: {e}")
            result = NotificationResult(success=False, error=str(e))
        if not result.success:
            logger.warning(f"Assignment email to {change.newAssignee} for task {change.taskId} failed: {result.error}")
        results.append(result)
    return results

