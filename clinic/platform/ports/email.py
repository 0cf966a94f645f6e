from typing import Protocol, runtime_checkable

class EmailDeliveryError(Exception):
    pass

@runtime_checkable
class EmailPort(Protocol):
    async def send(self, to: str, subject: str, html: str, text: str | None = None) -> str:
        """Deliver one message and return the provider's message id."""
        ...
