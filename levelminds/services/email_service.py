"""
Email Service for sending platform emails
Handles: credentials and password resets for admin-managed accounts, application status updates
"""
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional

from loguru import logger

from levelminds.core.config import settings
from levelminds.models.application import ApplicationStatus


class EmailService:
    """Service for sending recruitment-related emails"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.email_from = settings.EMAIL_FROM
        self.platform_name = settings.PLATFORM_NAME

    def _send_email(self, to_email: str, subject: str, html_body: str) -> bool:
        """Send an email using SMTP. Delivery problems are logged, never raised."""
        try:
            msg = MIMEMultipart("alternative")
            msg["Subject"] = subject
            msg["From"] = f"{self.platform_name} <{self.email_from}>"
            msg["To"] = to_email

            html_part = MIMEText(html_body, "html")
            msg.attach(html_part)

            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.sendmail(self.email_from, to_email, msg.as_string())

            logger.info(f"Email sent to {to_email}: {subject}")
            return True
        except Exception as e:
            logger.error(f"Email sending to {to_email} failed: {e}")
            return False

    def _wrap(self, heading: str, header_color: str, content: str) -> str:
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ background: {header_color}; color: white; padding: 20px; text-align: center; }}
                .content {{ padding: 20px; background: #f9f9f9; }}
                .highlight {{ background: #fff; border: 2px solid {header_color}; padding: 15px; border-radius: 5px; margin: 15px 0; }}
                .footer {{ text-align: center; padding: 20px; font-size: 12px; color: #666; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1>{heading}</h1>
                </div>
                <div class="content">
                    {content}
                    <p>Thank you,<br>
                    <strong>The {self.platform_name} Team</strong></p>
                </div>
                <div class="footer">
                    <p>This is an automated message from {self.platform_name}.</p>
                </div>
            </div>
        </body>
        </html>
        """

    def send_account_credentials(
        self,
        to_email: str,
        name: str,
        role: str,
        temp_password: str
    ) -> bool:
        """Send login details to a user created by an admin bulk upload"""
        subject = "Your Student Account Details" if role == "student" else "Your School Account Details"
        login_link = f"{settings.FRONTEND_URL.rstrip('/')}/login"

        content = f"""
                    <p>Dear <strong>{name}</strong>,</p>
                    <p>A {role} profile has been created for you/your institution by the admin.</p>
                    <div class="highlight">
                        <p><strong>Email:</strong> {to_email}</p>
                        <p><strong>Temporary Password:</strong> {temp_password}</p>
                    </div>
                    <p>Please log in <a href="{login_link}">here</a> and complete your profile.
                    We recommend changing this temporary password after your first login.</p>
        """

        return self._send_email(to_email, subject, self._wrap(f"Welcome to {self.platform_name}!", "#4A90A4", content))

    def send_password_reset(self, to_email: str, name: str, new_password: str) -> bool:
        login_link = f"{settings.FRONTEND_URL.rstrip('/')}/login"
        content = f"""
                    <p>Dear <strong>{name}</strong>,</p>
                    <p>Your password for {self.platform_name} has been reset by an administrator.</p>
                    <div class="highlight">
                        <p><strong>New Password:</strong> {new_password}</p>
                    </div>
                    <p>Please log in <a href="{login_link}">here</a> and change this password immediately.
                    If you did not request this change, contact support.</p>
        """

        return self._send_email(
            to_email,
            "Your Password Has Been Changed by an Administrator",
            self._wrap("Password Change Notification", "#FF9800", content)
        )

    def send_application_status_update(
        self,
        to_email: str,
        name: str,
        job_title: str,
        status: str,
        interview: Optional[dict] = None
    ) -> bool:
        """Tell a student their application moved to `status`"""
        if status == ApplicationStatus.SHORTLISTED.value:
            subject = f"You've been shortlisted for {job_title}"
            heading, color = "Congratulations!", "#4CAF50"
            body = f"""
                    <p>Dear <strong>{name}</strong>,</p>
                    <p>Your application for <strong>{job_title}</strong> has been shortlisted.
                    The school will get in touch with interview details soon.</p>
            """
        elif status == ApplicationStatus.INTERVIEW_SCHEDULED.value and interview:
            subject = f"Interview Scheduled: {job_title}"
            heading, color = "Interview Scheduled", "#2196F3"
            body = f"""
                    <p>Dear <strong>{name}</strong>,</p>
                    <p>Your interview for <strong>{job_title}</strong> has been scheduled.</p>
                    <div class="highlight">
                        <p><strong>Date:</strong> {interview['date']}</p>
                        <p><strong>Time:</strong> {interview['startTime']} - {interview['endTime']}</p>
                        <p><strong>Location:</strong> {interview['location']}</p>
                    </div>
                    <p>Please arrive a few minutes early and bring a copy of your resume.</p>
            """
        elif status == ApplicationStatus.REJECTED.value:
            subject = f"Application Update: {job_title}"
            heading, color = "Application Update", "#607D8B"
            body = f"""
                    <p>Dear <strong>{name}</strong>,</p>
                    <p>Thank you for applying to <strong>{job_title}</strong>. After careful review,
                    the school has decided not to move forward with your application at this time.</p>
                    <p>We encourage you to keep applying to openings that match your skills.</p>
            """
        else:
            logger.warning(f"No status email template for '{status}'")
            return False

        return self._send_email(to_email, subject, self._wrap(heading, color, body))


# Singleton instance
email_service = EmailService()
