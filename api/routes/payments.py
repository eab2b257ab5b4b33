"""
Stripe driver API routes.

Thin HTTP surface over PaymentService for the host's checkout pipeline.
Gateway failures come back as outcomes inside a success envelope; only
configuration errors surface as error responses.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from api.dependencies import get_payment_service
from application.dtos.payments import (
    ChargeCommand,
    CreateSourceCommand,
    Customer,
    RefundCommand,
    ScaCommand,
    StoredSource,
    UpdateSourceCommand,
)
from application.services.payment_service import PaymentService
from core.response import outcome_response, success_response


router = APIRouter(prefix="/payments/stripe", tags=["Payments"])


@router.get("/config", summary="Checkout widget configuration")
async def checkout_config(service: PaymentService = Depends(get_payment_service)):
    return success_response(data={"label": service.label, "key": service.public_key()})


@router.post("/charges", summary="Take a payment")
async def charge(payload: ChargeCommand, service: PaymentService = Depends(get_payment_service)):
    outcome = await service.charge(
        payload.amount,
        payload.currency,
        payload.data,
        payload.payment_data,
        payload.description,
        payload.payment,
        payload.invoice,
        payload.success_url,
        payload.error_url,
        payload.customer_present,
        payload.source,
    )
    return outcome_response(outcome, "Charge")


@router.post("/sca/complete", summary="Complete Strong Customer Authentication")
async def complete_sca(payload: ScaCommand, service: PaymentService = Depends(get_payment_service)):
    outcome = await service.authenticate(payload.intent_id, payload.success_url)
    return outcome_response(outcome, "Authentication")


@router.post("/refunds", summary="Issue a refund")
async def refund(payload: RefundCommand, service: PaymentService = Depends(get_payment_service)):
    outcome = await service.refund(
        payload.transaction_id,
        payload.amount,
        payload.currency,
        payload.payment_data,
        payload.reason,
        payload.payment,
        payload.refund,
        payload.invoice,
    )
    return outcome_response(outcome, "Refund")


@router.post("/sources", summary="Save a payment source")
async def create_source(payload: CreateSourceCommand, service: PaymentService = Depends(get_payment_service)):
    record = await service.create_source(payload.customer, payload.token)
    return success_response(data=record.model_dump(mode="json"), message="Source created")


@router.patch("/sources", summary="Update a payment source")
async def update_source(payload: UpdateSourceCommand, service: PaymentService = Depends(get_payment_service)):
    record = await service.update_source(payload.source, payload.update)
    return success_response(data=record.model_dump(mode="json"), message="Source updated")


@router.post("/sources/delete", summary="Delete a payment source")
async def delete_source(payload: StoredSource, service: PaymentService = Depends(get_payment_service)):
    await service.delete_source(payload)
    return success_response(data={"id": payload.id}, message="Source deleted")


@router.post("/customers/sync", summary="Push customer details to Stripe")
async def sync_customer(payload: Customer, service: PaymentService = Depends(get_payment_service)):
    synced = await service.sync_customer(payload)
    return success_response(data={"id": payload.id, "synced": synced})


@router.post("/customers/delete", summary="Delete the linked Stripe customer")
async def delete_customer(payload: Customer, service: PaymentService = Depends(get_payment_service)):
    deleted = await service.delete_customer(payload)
    message = "Customer deleted" if deleted else "Customer not linked"
    return success_response(data={"id": payload.id, "deleted": deleted}, message=message)
