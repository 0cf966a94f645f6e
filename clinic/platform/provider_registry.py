from clinic.core.config import settings
from clinic.platform.ports.email import EmailPort, EmailDeliveryError
from clinic.platform.adapters.email_noop import NoopEmail
from clinic.platform.adapters.email_resend import ResendEmail

class ProviderRegistry:
    _email: EmailPort | None = None

    @classmethod
    def email(cls) -> EmailPort:
        if cls._email is None:
            prov = (settings.EMAIL_PROVIDER or "noop").lower()
            if prov == "resend":
                try:
                    cls._email = ResendEmail()
                except RuntimeError as e:
                    raise EmailDeliveryError(f"email provider '{prov}' is not configured: {e}") from e
            else:
                cls._email = NoopEmail()
        return cls._email

    @classmethod
    def use_email(cls, adapter: EmailPort | None) -> None:
        """Swap the email adapter (None resets to the configured provider)."""
        cls._email = adapter

registry = ProviderRegistry()
