"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Stripe keys are scoped per environment (test/live); the driver resolves the
pair matching ``core.config.settings.ENVIRONMENT`` on every call instead of
mutating a process-wide API key.
"""
from __future__ import annotations

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field

from domain.payment.exceptions import DriverConfigurationError


INVOICE_REF_PLACEHOLDER = "{{INVOICE_REF}}"


class PaymentTimeouts(BaseModel):
    connect: float = 5.0
    read: float = 30.0
    write: float = 30.0
    total: float = 80.0


class StripeSettings(BaseModel):
    label: str = "Stripe"
    statement_descriptor: str = f"INV #{INVOICE_REF_PLACEHOLDER}"
    enable_receipt_email: bool = False

    key_test_secret: Optional[str] = None
    key_test_public: Optional[str] = None
    key_live_secret: Optional[str] = None
    key_live_public: Optional[str] = None

    def secret_key(self, live: bool) -> str:
        key = self.key_live_secret if live else self.key_test_secret
        if not key:
            env = "live" if live else "test"
            raise DriverConfigurationError(f"Missing Stripe secret key for the {env} environment")
        return key

    def public_key(self, live: bool) -> str:
        key = self.key_live_public if live else self.key_test_public
        if not key:
            env = "live" if live else "test"
            raise DriverConfigurationError(f"Missing Stripe publishable key for the {env} environment")
        return key


class PaymentSettings(BaseSettings):
    timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    stripe: StripeSettings = Field(default_factory=StripeSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )


payment_settings = PaymentSettings()
