import logging
import httpx
from clinic.platform.ports.email import EmailPort, EmailDeliveryError
from clinic.core.config import settings

log = logging.getLogger("email.resend")

class ResendEmail(EmailPort):
    def __init__(
        self, api_key: str | None = None, base_url: str | None = None, sender: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key or settings.RESEND_API_KEY
        if not self.api_key:
            raise RuntimeError("RESEND_API_KEY not configured")
        self.api_url = f"{(base_url or settings.RESEND_API_URL).rstrip('/')}/emails"
        self.sender = sender or f"{settings.CLINIC_NAME} <{settings.FROM_EMAIL}>"
        self.transport = transport

    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> str:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        body = {"from": self.sender, "to": [to], "subject": subject, "html": html}
        if text:
            body["text"] = text
        try:
            async with httpx.AsyncClient(timeout=10.0, transport=self.transport) as client:
                response = await client.post(self.api_url, headers=headers, json=body)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            log.error(f"Resend rejected message to {to}: {e.response.status_code} {e.response.text}")
            raise EmailDeliveryError(f"provider returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            log.error(f"Resend request failed for {to}: {e}", exc_info=True)
            raise EmailDeliveryError(str(e)) from e
        except ValueError as e:
            log.error(f"Resend returned a non-JSON body for {to}: {e}")
            raise EmailDeliveryError("provider returned an unreadable response") from e
        message_id = data.get("id") if isinstance(data, dict) else None
        if not message_id:
            raise EmailDeliveryError("provider response missing message id")
        log.debug(f"[RESEND] sent id={message_id} to={to}")
        return message_id
