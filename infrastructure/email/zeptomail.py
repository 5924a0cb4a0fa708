"""ZeptoMail implementation of EmailSender.

Messages are rendered from Jinja2 templates under templates/emails and posted
to the ZeptoMail HTTP API through the shared HttpClient. Any failure to hand
the message over (missing token, transport error, non-2xx) raises
EmailDeliveryError.
"""

import os
from typing import Optional

import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from errors import EmailDeliveryError
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.com/v1.1/email"
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


class ZeptoMailProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        app_name: str = "Atelier Admin",
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._app_name = app_name
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    async def _send(
        self,
        to_email: str,
        subject: str,
        html_body: str,
        text_body: Optional[str] = None,
    ) -> None:
        failure = EmailDeliveryError(
            f"Could not send email to {to_email}. Please try again."
        )
        if not self._settings.zepto_api_token:
            log.error("email_send_failed", to_email=to_email, reason="not_configured")
            raise failure

        payload: dict = {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [{"email_address": {"address": to_email, "name": to_email}}],
            "subject": subject,
            "htmlbody": html_body,
        }
        if text_body:
            payload["textbody"] = text_body

        api_key = self._settings.zepto_api_token
        if not api_key.startswith("Zoho-enczapikey "):
            api_key = f"Zoho-enczapikey {api_key}"
        headers = {"Authorization": api_key, "Content-Type": "application/json"}

        try:
            response = await self._http.post(_ZEPTO_API_URL, json=payload, headers=headers)
        except httpx.HTTPError as e:
            log.error(
                "email_send_error",
                to_email=to_email,
                subject=subject,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise failure from e

        if response.status_code not in (200, 201, 202):
            log.error(
                "email_send_failed",
                to_email=to_email,
                subject=subject,
                status_code=response.status_code,
                response=response.text[:200],
            )
            raise failure

        log.info("email_sent", to_email=to_email, subject=subject)

    def _render(self, template_name: str, **context) -> str:
        template = self._jinja.get_template(template_name)
        return template.render(app_name=self._app_name, **context)

    async def send_verification_email(self, email: str, link: str) -> None:
        subject = f"Confirm your email - {self._app_name}"
        html_body = self._render("verification_link.html", link=link)
        text_body = (
            f"Welcome to {self._app_name}!\n\n"
            f"Confirm your email address by opening this link:\n{link}\n"
        )
        await self._send(email, subject, html_body, text_body)

    async def send_verification_otp(self, email: str, otp_code: str) -> None:
        subject = f"Your verification code - {self._app_name}"
        html_body = self._render("verification_otp.html", otp_code=otp_code)
        text_body = (
            f"Your verification code is: {otp_code}\n\n"
            f"This code expires in 5 minutes.\n"
        )
        await self._send(email, subject, html_body, text_body)

    async def send_reset_password_url(self, email: str, link: str) -> None:
        subject = f"Reset your password - {self._app_name}"
        html_body = self._render("password_reset.html", link=link)
        text_body = (
            f"Reset your {self._app_name} password by opening this link:\n{link}\n\n"
            f"The link expires in 1 hour. If you did not ask for a reset, ignore this email.\n"
        )
        await self._send(email, subject, html_body, text_body)
