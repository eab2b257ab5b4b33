"""
Stripe adapter using the official stripe-python SDK.

Notes on SDK usage:
- One ``stripe.StripeClient`` per adapter instance, built with the secret key
  of the active environment; nothing is written to ``stripe.api_key``.
- Async calls go through the SDK's httpx transport with the configured
  timeouts; SDK network retries are disabled.
- Idempotency keys are supplied via request options.
- Field names from older API versions (``requires_source_action``,
  ``next_source_action``, ``authorize_with_url``, ``charges``) are folded into
  the normalized GatewayPaymentIntent here and nowhere else.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

import httpx
import stripe

from application.dtos.payments import (
    BalanceTransaction,
    CardUpdate,
    ChargeRequest,
    ExplicitSource,
    GatewayCard,
    GatewayCustomer,
    GatewayPaymentIntent,
    GatewayRefund,
    SavedSource,
    TokenSource,
)
from core.logging_config import get_logger
from core.settings import PaymentTimeouts, payment_settings
from infrastructure.external.payments.exceptions import translate_stripe_error
from shared.codes.payment_codes import normalize_intent_status


logger = get_logger(__name__)

INTENT_EXPAND = ["latest_charge"]


def _id_of(value: Any) -> Optional[str]:
    """Expanded objects and bare ids both reduce to an id."""
    if isinstance(value, dict):
        return value.get("id")
    return value or None


def to_plain(value: Any) -> Any:
    """SDK responses as plain dicts, recursively; StripeObject is not a dict on current SDKs."""
    if isinstance(value, stripe.StripeObject):
        value = value.to_dict()
    if isinstance(value, dict):
        return {k: to_plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [to_plain(v) for v in value]
    return value


def to_intent(pi: Any) -> GatewayPaymentIntent:
    pi = to_plain(pi)
    raw_status = pi.get("status")
    action = pi.get("next_action") or pi.get("next_source_action") or {}
    redirect = action.get("redirect_to_url") or action.get("authorize_with_url") or {}

    charge = pi.get("latest_charge")
    if not charge:
        charges = (pi.get("charges") or {}).get("data") or []
        charge = charges[0] if charges else None
    balance_transaction = charge.get("balance_transaction") if isinstance(charge, dict) else None

    return GatewayPaymentIntent(
        id=str(pi["id"]),
        status=normalize_intent_status(raw_status),
        raw_status=raw_status,
        next_action_type=action.get("type"),
        redirect_url=redirect.get("url"),
        charge_id=_id_of(charge),
        balance_transaction_id=_id_of(balance_transaction),
    )


def to_card(obj: Any) -> GatewayCard:
    obj = to_plain(obj)
    # Legacy Source objects keep card details one level down
    details = (obj.get("card") or {}) if obj.get("object") == "source" else obj
    owner = obj.get("owner") or {}
    return GatewayCard(
        id=str(obj["id"]),
        brand=details.get("brand"),
        last4=details.get("last4"),
        exp_month=details.get("exp_month"),
        exp_year=details.get("exp_year"),
        name=details.get("name") or owner.get("name"),
    )


def charge_params(req: ChargeRequest) -> dict[str, Any]:
    params: dict[str, Any] = {
        "amount": req.amount,
        "currency": req.currency.lower(),
        "metadata": req.metadata,
        "confirmation_method": "manual",
        "confirm": True,
        "expand": INTENT_EXPAND,
    }
    if req.description:
        params["description"] = req.description
    if req.statement_descriptor:
        params["statement_descriptor"] = req.statement_descriptor
    if req.receipt_email:
        params["receipt_email"] = req.receipt_email
    if not req.customer_present:
        params["off_session"] = True

    source = req.payment_source
    if isinstance(source, TokenSource):
        params["payment_method_data"] = {"type": "card", "card": {"token": source.token}}
    elif isinstance(source, (SavedSource, ExplicitSource)):
        params["payment_method"] = source.source_id
        params["customer"] = source.customer_id
    return params


class StripeGatewayClient:
    provider = "stripe"

    def __init__(
        self,
        api_key: str,
        *,
        timeouts: Optional[PaymentTimeouts] = None,
        client: Optional[stripe.StripeClient] = None,
    ) -> None:
        self._http_client = None
        if client is None:
            t = timeouts or payment_settings.timeouts
            self._http_client = stripe.HTTPXClient(
                timeout=httpx.Timeout(connect=t.connect, read=t.read, write=t.write, timeout=t.total),
            )
            client = stripe.StripeClient(api_key, http_client=self._http_client, max_network_retries=0)
        self._stripe = client

    @contextmanager
    def _translate(self, operation: str) -> Iterator[None]:
        try:
            yield
        except stripe.StripeError as exc:
            logger.info("stripe_call_failed", operation=operation, error_type=type(exc).__name__)
            raise translate_stripe_error(exc, provider=self.provider) from exc

    @staticmethod
    def _options(idempotency_key: Optional[str]) -> dict[str, Any]:
        return {"idempotency_key": idempotency_key} if idempotency_key else {}

    async def create_payment_intent(self, req: ChargeRequest) -> GatewayPaymentIntent:
        with self._translate("create_payment_intent"):
            pi = await self._stripe.v1.payment_intents.create_async(
                params=charge_params(req),
                options=self._options(req.idempotency_key),
            )
        return to_intent(pi)

    async def retrieve_payment_intent(self, intent_id: str) -> GatewayPaymentIntent:
        with self._translate("retrieve_payment_intent"):
            pi = await self._stripe.v1.payment_intents.retrieve_async(
                intent_id, params={"expand": INTENT_EXPAND}
            )
        return to_intent(pi)

    async def confirm_payment_intent(self, intent_id: str, return_url: Optional[str]) -> GatewayPaymentIntent:
        params: dict[str, Any] = {"expand": INTENT_EXPAND}
        if return_url:
            params["return_url"] = return_url
        with self._translate("confirm_payment_intent"):
            pi = await self._stripe.v1.payment_intents.confirm_async(intent_id, params=params)
        return to_intent(pi)

    async def retrieve_balance_transaction(self, transaction_id: str) -> BalanceTransaction:
        with self._translate("retrieve_balance_transaction"):
            bt = to_plain(await self._stripe.v1.balance_transactions.retrieve_async(transaction_id))
        return BalanceTransaction(id=str(bt["id"]), fee=int(bt.get("fee") or 0), net=bt.get("net"))

    async def create_refund(
        self,
        charge_id: str,
        amount: int,
        metadata: dict[str, str],
        idempotency_key: Optional[str] = None,
    ) -> GatewayRefund:
        target = "payment_intent" if charge_id.startswith("pi_") else "charge"
        params = {
            target: charge_id,
            "amount": amount,
            "metadata": metadata,
            "expand": ["balance_transaction"],
        }
        with self._translate("create_refund"):
            refund = to_plain(
                await self._stripe.v1.refunds.create_async(params=params, options=self._options(idempotency_key))
            )
        bt = refund.get("balance_transaction")
        fee = int(bt.get("fee") or 0) if isinstance(bt, dict) else 0
        return GatewayRefund(id=str(refund["id"]), status=refund.get("status"), fee=fee)

    async def create_customer(
        self,
        email: Optional[str],
        name: Optional[str],
        metadata: dict[str, Any],
    ) -> GatewayCustomer:
        params: dict[str, Any] = {"metadata": {k: str(v) for k, v in metadata.items()}}
        if email:
            params["email"] = email
        if name:
            params["name"] = name
        with self._translate("create_customer"):
            customer = to_plain(await self._stripe.v1.customers.create_async(params=params))
        return GatewayCustomer(id=str(customer["id"]), email=customer.get("email"))

    async def retrieve_customer(self, customer_id: str) -> GatewayCustomer:
        with self._translate("retrieve_customer"):
            customer = to_plain(await self._stripe.v1.customers.retrieve_async(customer_id))
        return GatewayCustomer(
            id=str(customer["id"]),
            email=customer.get("email"),
            deleted=bool(customer.get("deleted")),
        )

    async def update_customer(self, customer_id: str, email: Optional[str], name: Optional[str]) -> GatewayCustomer:
        params = {k: v for k, v in {"email": email, "name": name}.items() if v}
        with self._translate("update_customer"):
            customer = to_plain(await self._stripe.v1.customers.update_async(customer_id, params=params))
        return GatewayCustomer(id=str(customer["id"]), email=customer.get("email"))

    async def delete_customer(self, customer_id: str) -> None:
        with self._translate("delete_customer"):
            await self._stripe.v1.customers.delete_async(customer_id)

    async def create_source(self, customer_id: str, token: str) -> GatewayCard:
        with self._translate("create_source"):
            obj = await self._stripe.v1.customers.payment_sources.create_async(
                customer_id, params={"source": token}
            )
        return to_card(obj)

    async def update_source(self, customer_id: str, source_id: str, update: CardUpdate) -> GatewayCard:
        with self._translate("update_source"):
            obj = await self._stripe.v1.customers.payment_sources.update_async(
                customer_id, source_id, params=update.model_dump(exclude_none=True)
            )
        return to_card(obj)

    async def delete_source(self, customer_id: str, source_id: str) -> None:
        with self._translate("delete_source"):
            await self._stripe.v1.customers.payment_sources.delete_async(customer_id, source_id)

    async def aclose(self) -> None:
        """Close the underlying httpx client if this adapter created it."""
        close = getattr(self._http_client, "close_async", None)
        if callable(close):
            await close()
