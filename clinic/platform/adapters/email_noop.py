import uuid
import logging
from clinic.platform.ports.email import EmailPort

log = logging.getLogger("email.noop")

class NoopEmail(EmailPort):
    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> str:
        message_id = f"noop-{uuid.uuid4()}"
        log.info(f"[NOOP EMAIL] id={message_id} to={to} subject={subject!r}")
        return message_id
