"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Union

CREDIT = "credit"
DEBIT = "debit"

DEFAULT_CARD_NAME = "Registered card"


def normalize_card_type(value: Any) -> str:
    """Anything that is not explicitly "debit" is treated as a credit card"""
    return DEBIT if value == DEBIT else CREDIT


@dataclass
class Card:
    """Payment card owned by a user"""

    id: str
    user_id: str = ""
    card_type: str = CREDIT  # "credit" or "debit"
    card_name: str = ""
    closing_day: Any = None  # statement close day, credit only
    payment_day: Any = None  # charge day, credit only
    billing_day: Any = None
    card_brand: str = ""
    last4_digits: str = ""
    limit_amount: Any = None


@dataclass
class Subscription:
    """
    Recurring charge attached to a card.

    Values arrive as entered by the user, so ``amount`` and
    ``payment_start_date`` are parsed leniently by the schedule code rather
    than validated here.
    """

    id: str
    card_id: Optional[str] = None
    user_id: str = ""
    service_name: str = ""
    amount: Any = None
    currency: Optional[str] = None
    cycle: str = "monthly"  # "monthly" or "yearly"
    payment_start_date: Any = None
    billing_day: Any = None
    notes: str = ""
    registered_email: str = ""


@dataclass
class ScheduledPayment:
    """One concrete upcoming charge derived from a subscription"""

    subscription_id: str
    card_id: Optional[str]
    card_name: str
    card_type: str
    subscription_name: str
    amount: Decimal
    currency: str
    cycle: str
    date: date
    month_key: str  # YYYY-MM
    notes: str = ""


@dataclass
class Scheduled:
    """Subscription that produced upcoming payments"""

    subscription_id: str
    payments: List[ScheduledPayment]


@dataclass
class Skipped:
    """Subscription excluded from the schedule, with the reason"""

    subscription_id: str
    reason: str  # invalid_amount | invalid_start_date | no_occurrence


ScheduleResult = Union[Scheduled, Skipped]


@dataclass
class ExchangeRateSnapshot:
    """Rate table as returned by the rate service, keyed by currency code"""

    base_currency: str
    rates: Dict[str, Decimal]
    expires_at: Optional[float] = None


@dataclass
class UpcomingPaymentMonth:
    """Calendar month with payments bucketed by card type"""

    month_key: str
    credit_payments: List[ScheduledPayment] = field(default_factory=list)
    debit_payments: List[ScheduledPayment] = field(default_factory=list)


@dataclass
class MonthlyTotalDetail:
    name: str
    amount: Decimal
    currency: str
    cycle: str


@dataclass
class MonthlyTotal:
    """Sum of one month's payments in the reporting currency"""

    month_key: str
    total_amount: Decimal = Decimal("0")
    details: List[MonthlyTotalDetail] = field(default_factory=list)
    conversion_warning: bool = False
    unconverted: List[ScheduledPayment] = field(default_factory=list)


@dataclass
class SubscriptionView:
    subscription: Subscription
    next_payment_date: Optional[date]


@dataclass
class CardSummary:
    """Card with its subscriptions and their total in the reporting currency"""

    card: Card
    subscriptions: List[SubscriptionView]
    subscription_total: Decimal
    conversion_warning: bool


@dataclass
class Dashboard:
    """Everything the card overview page shows"""

    cards: List[CardSummary]
    unlinked_subscriptions: List[Subscription]
    upcoming_payment_months: List[UpcomingPaymentMonth]
    monthly_totals: List[MonthlyTotal]
    skipped: List[Skipped]
    conversion_warning: bool
