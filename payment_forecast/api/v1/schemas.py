"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field

from payment_forecast.domain.models import Card, Subscription

# Raw user input: kept loose so bad values reach the schedule code and are skipped there
RawNumber = Optional[Union[int, float, str]]


class CardSchema(BaseModel):
    """Card record as stored by the application"""

    id: str = Field(..., min_length=1, description="Card identifier")
    user_id: str = ""
    card_type: Optional[str] = Field(None, description='"credit" or "debit"')
    card_name: str = ""
    closing_day: RawNumber = None
    payment_day: RawNumber = None
    billing_day: RawNumber = None
    card_brand: str = ""
    last4_digits: str = ""
    limit_amount: RawNumber = None

    def to_domain(self) -> Card:
        return Card(**self.model_dump())


class SubscriptionSchema(BaseModel):
    """Subscription record as stored by the application"""

    id: str = Field(..., min_length=1, description="Subscription identifier")
    card_id: Optional[str] = None
    user_id: str = ""
    service_name: str = ""
    amount: RawNumber = None
    currency: Optional[str] = None
    cycle: str = "monthly"
    payment_start_date: Optional[str] = Field(None, description="ISO date the schedule is anchored to")
    billing_day: RawNumber = None
    notes: str = ""
    registered_email: str = ""

    def to_domain(self) -> Subscription:
        return Subscription(**self.model_dump())


class NextPaymentRequest(BaseModel):
    """Request body for POST /v1/subscriptions/next-payment"""

    subscription: SubscriptionSchema
    card: Optional[CardSchema] = None
    reference_date: Optional[date] = None


class NextPaymentResponse(BaseModel):
    subscription_id: str
    next_payment_date: Optional[date] = None


class UpcomingRequest(BaseModel):
    """Request body for POST /v1/schedule/upcoming"""

    cards: List[CardSchema] = []
    subscriptions: List[SubscriptionSchema] = []
    start_date_limit: Optional[date] = None
    months_limit: Optional[int] = Field(None, ge=1, le=24)


class ScheduledPaymentSchema(BaseModel):
    """Single upcoming charge"""

    subscription_id: str
    card_id: Optional[str] = None
    card_name: str
    card_type: str
    subscription_name: str
    amount: Decimal
    currency: str
    cycle: str
    date: date
    month_key: str
    notes: str = ""


class SkippedSchema(BaseModel):
    subscription_id: str
    reason: str


class UpcomingResponse(BaseModel):
    payments: List[ScheduledPaymentSchema]
    skipped: List[SkippedSchema]


class DashboardRequest(BaseModel):
    """Request body for POST /v1/dashboard"""

    cards: List[CardSchema] = []
    subscriptions: List[SubscriptionSchema] = []
    reference_date: Optional[date] = None


class SubscriptionViewSchema(BaseModel):
    subscription: SubscriptionSchema
    next_payment_date: Optional[date] = None


class CardSummarySchema(BaseModel):
    card: CardSchema
    subscriptions: List[SubscriptionViewSchema]
    subscription_total: Decimal
    conversion_warning: bool


class UpcomingPaymentMonthSchema(BaseModel):
    month_key: str
    credit_payments: List[ScheduledPaymentSchema]
    debit_payments: List[ScheduledPaymentSchema]


class MonthlyTotalDetailSchema(BaseModel):
    name: str
    amount: Decimal
    currency: str
    cycle: str


class MonthlyTotalSchema(BaseModel):
    month_key: str
    total_amount: Decimal
    details: List[MonthlyTotalDetailSchema] = []
    conversion_warning: bool = False
    unconverted: List[ScheduledPaymentSchema] = []


class DashboardResponse(BaseModel):
    """Response for POST /v1/dashboard"""

    cards: List[CardSummarySchema]
    unlinked_subscriptions: List[SubscriptionSchema]
    upcoming_payment_months: List[UpcomingPaymentMonthSchema]
    monthly_totals: List[MonthlyTotalSchema]
    skipped: List[SkippedSchema]
    conversion_warning: bool
    exchange_rate_status: str  # ok | timeout | unavailable


class ExchangeRatesResponse(BaseModel):
    """Response for GET /v1/exchange-rates"""

    base_currency: str
    rates: Dict[str, Decimal]


class ConversionResponse(BaseModel):
    """Response for GET /v1/exchange-rates/convert"""

    amount: Decimal
    currency: str
    amount_jpy: Decimal
