"""
Payment API Endpoints

The on-device payment profile. Responses only ever carry the masked card
number; the full number and CVV stay in the encrypted store.
"""
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from scholarlink.api.auth import get_container
from scholarlink.container import AppContainer
from scholarlink.schemas.payment import BillingAddress, PaymentDetails

router = APIRouter(prefix="/api/v1/payment", tags=["payment"])


class PaymentSummary(BaseModel):
    cardholder_name: str
    masked_card_number: str
    expiration_display: str
    email: str
    billing_address: BillingAddress
    save_for_future_sessions: bool
    enable_auto_approval: bool
    last_updated: Optional[datetime] = None


class PaymentResponse(BaseModel):
    data: Optional[PaymentSummary]


def _summary(details: Optional[PaymentDetails], last_updated: Optional[datetime]) -> PaymentResponse:
    if details is None:
        return PaymentResponse(data=None)
    return PaymentResponse(
        data=PaymentSummary(
            cardholder_name=details.cardholder_name,
            masked_card_number=details.masked_card_number,
            expiration_display=details.expiration_display,
            email=details.email,
            billing_address=details.billing_address,
            save_for_future_sessions=details.save_for_future_sessions,
            enable_auto_approval=details.enable_auto_approval,
            last_updated=last_updated,
        )
    )


@router.get("", response_model=PaymentResponse)
async def get_payment_details(container: AppContainer = Depends(get_container)):
    details = await container.payments.load()
    return _summary(details, container.payments.last_updated)


@router.put("", response_model=PaymentResponse)
async def save_payment_details(body: PaymentDetails, container: AppContainer = Depends(get_container)):
    saved = await container.payments.save(body)
    return _summary(saved, container.payments.last_updated)


@router.delete("", status_code=204)
async def clear_payment_details(container: AppContainer = Depends(get_container)):
    await container.payments.clear()
