"""Schedule endpoints - next payment date and upcoming payments"""

from dataclasses import asdict
from fastapi import APIRouter

from payment_forecast.api.v1.schemas import (
    NextPaymentRequest,
    NextPaymentResponse,
    ScheduledPaymentSchema,
    SkippedSchema,
    UpcomingRequest,
    UpcomingResponse,
)
from payment_forecast.domain.aggregation import index_cards
from payment_forecast.domain.models import Skipped
from payment_forecast.domain.schedule import (
    collect_payments,
    compute_next_payment_date,
    plan_upcoming_payments,
)
from payment_forecast.infrastructure.observability.metrics import record_schedule

router = APIRouter()


@router.post("/subscriptions/next-payment", response_model=NextPaymentResponse)
def get_next_payment(request_body: NextPaymentRequest):
    """
    Next charge date of one subscription on or after the reference date.

    Returns ``next_payment_date: null`` when nothing is scheduled.
    """
    subscription = request_body.subscription.to_domain()
    card = request_body.card.to_domain() if request_body.card else None

    next_date = compute_next_payment_date(subscription, card, request_body.reference_date)

    return NextPaymentResponse(subscription_id=subscription.id, next_payment_date=next_date)


@router.post("/schedule/upcoming", response_model=UpcomingResponse)
def get_upcoming_payments(request_body: UpcomingRequest):
    """
    Upcoming payments across all subscriptions, earliest first.

    Subscriptions that cannot be scheduled are listed under ``skipped``.
    """
    card_map = index_cards(card.to_domain() for card in request_body.cards)
    results = plan_upcoming_payments(
        [subscription.to_domain() for subscription in request_body.subscriptions],
        card_map,
        start_date_limit=request_body.start_date_limit,
        months_limit=request_body.months_limit,
    )
    payments = collect_payments(results)
    skipped = [result for result in results if isinstance(result, Skipped)]
    record_schedule(len(payments), skipped)

    return UpcomingResponse(
        payments=[ScheduledPaymentSchema(**asdict(payment)) for payment in payments],
        skipped=[SkippedSchema(**asdict(result)) for result in skipped],
    )
