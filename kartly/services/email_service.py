# kartly/services/email_service.py
from typing import List, Optional
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
import aiosmtplib
from jinja2 import Template

from kartly.core.config import settings
from kartly.core.logging import logger


PASSWORD_RESET_TEMPLATE = """
<!DOCTYPE html>
<html>
<head>
    <style>
        body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
        .container { max-width: 600px; margin: 0 auto; padding: 20px; }
        .header { background: #f97316; color: white; padding: 20px; text-align: center; border-radius: 8px 8px 0 0; }
        .content { background: #f9f9f9; padding: 30px; border-radius: 0 0 8px 8px; }
        .button { display: inline-block; padding: 12px 24px; background: #f97316;
                  color: white; text-decoration: none; border-radius: 4px; margin: 20px 0; }
        .footer { text-align: center; padding: 20px; color: #666; font-size: 12px; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>Reset your password</h1>
        </div>
        <div class="content">
            <h2>Hi {{ name }},</h2>
            <p>We received a request to reset the password for {{ shop_name }} on Kartly.</p>

            <a href="{{ reset_url }}" class="button">Choose a new password</a>

            <p>This link expires in {{ expires_minutes }} minutes. If you did not ask for a reset,
            you can ignore this email and your password will stay the same.</p>
        </div>
        <div class="footer">
            <p>Kartly</p>
        </div>
    </div>
</body>
</html>
"""


class EmailService:
    """Service for sending emails"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.FROM_EMAIL

    async def send_email(
        self,
        to: List[str],
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ):
        """Send an email"""
        if not self.smtp_host:
            logger.warning("SMTP not configured, skipping email")
            return

        try:
            message = MIMEMultipart('alternative')
            message['Subject'] = subject
            message['From'] = self.from_email
            message['To'] = ', '.join(to)

            if text_content:
                message.attach(MIMEText(text_content, 'plain'))

            message.attach(MIMEText(html_content, 'html'))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=self.smtp_port != 465,
                use_tls=self.smtp_port == 465,
            )

            logger.info(f"Email sent to {to}: {subject}")

        except aiosmtplib.SMTPException as e:
            logger.error(f"Failed to send email: {str(e)}")

    async def send_password_reset_email(self, email: str, name: str, shop_name: str, reset_url: str):
        """Send the password reset link"""
        html_content = Template(PASSWORD_RESET_TEMPLATE).render(
            name=name or 'there',
            shop_name=shop_name,
            reset_url=reset_url,
            expires_minutes=settings.PASSWORD_RESET_EXPIRE_MINUTES,
        )
        text_content = (
            f"Reset your Kartly password: {reset_url}\n"
            f"This link expires in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes."
        )

        await self.send_email([email], "Reset your Kartly password", html_content, text_content)
