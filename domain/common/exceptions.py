"""Base exceptions shared by the driver's domain and infrastructure layers.

The API layer maps ``code`` onto an HTTP status; nothing here imports core.
"""
from __future__ import annotations

from typing import Any, Optional

from shared.codes import BusinessCode


class BusinessException(Exception):
    """业务异常基类"""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)

    def log_fields(self) -> dict[str, Any]:
        """Structured context for log events; details never carry credentials."""
        fields: dict[str, Any] = {"error_type": self.error_type, "code": int(self.code), "error": self.message}
        if self.field:
            fields["field"] = self.field
        if self.details:
            fields.update({f"detail_{k}": v for k, v in self.details.items()})
        return fields


class DomainValidationException(BusinessException):
    """A domain invariant was violated (bad Stripe id, duplicate customer link)."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )
