# =============================================================================
# utils/notifier.py - Email notifications
# =============================================================================

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from core.models import ProcessingOutcome, RunCounters


class NotificationError(Exception):
    """Notification could not be delivered"""


class EmailNotifier:
    """Sends welcome mails to new users and run summaries to an administrator"""

    def __init__(self, host: str, port: int = 25, username: str = "", password: str = "",
                 sender: str = "provisioning@localhost", use_tls: bool = True,
                 admin_email: Optional[str] = None, timeout: float = 10.0):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.sender = sender
        self.use_tls = use_tls
        self.admin_email = admin_email
        self.timeout = timeout
        self.logger = logging.getLogger(__name__)

    def build_welcome(self, outcome: ProcessingOutcome) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = "Your new account is ready"
        message["From"] = self.sender
        message["To"] = outcome.email
        body = [
            f"Hello {outcome.display_name or outcome.username},",
            "",
            f"An account has been created for you with the username {outcome.username}.",
            "Your IT administrator will give you your initial password separately.",
            "You will be asked to change it the first time you sign in.",
        ]
        if outcome.home_directory:
            body.extend(["", f"Your home folder is {outcome.home_directory}."])
        message.set_content("\n".join(body))
        return message

    def build_summary(self, action: str, counters: RunCounters,
                      report_path: Optional[str] = None) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = f"User provisioning {action}: {counters.failure_count} failures"
        message["From"] = self.sender
        message["To"] = self.admin_email or ""
        body = [
            f"action: {action}",
            f"succeeded: {counters.success_count}",
            f"failed: {counters.failure_count}",
            f"warnings: {counters.warning_count}",
        ]
        if report_path:
            body.append(f"report: {report_path}")
        message.set_content("\n".join(body))
        return message

    def send_welcome(self, outcome: ProcessingOutcome) -> None:
        if not outcome.email:
            raise NotificationError(f"No email address for {outcome.username}")
        self.send(self.build_welcome(outcome))
        self.logger.info(f"Sent welcome email to {outcome.email}")

    def send_summary(self, action: str, counters: RunCounters,
                     report_path: Optional[str] = None) -> None:
        if not self.admin_email:
            self.logger.debug("No admin email configured, skipping run summary")
            return
        self.send(self.build_summary(action, counters, report_path))
        self.logger.info(f"Sent run summary to {self.admin_email}")

    def send(self, message: EmailMessage) -> None:
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                smtp.ehlo()
                if self.use_tls:
                    smtp.starttls()
                    smtp.ehlo()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Failed to send mail to {message['To']}: {e}") from e
