"""
Billing enums - strongly typed enumerations for subscription and billing states.
"""

from enum import Enum

from common.core.state_machine import StatusEnum


class SubscriptionStatus(StatusEnum):
    """
    Subscription status lifecycle.

    Flow: pending_payment -> active -> cancelled | expired
    """

    PENDING_PAYMENT = "pending_payment"  # Enterprise plan awaiting registration fee
    ACTIVE = "active"
    CANCELLED = "cancelled"
    EXPIRED = "expired"

    @classmethod
    def transitions(cls):
        return SUBSCRIPTION_TRANSITIONS

    def has_access(self) -> bool:
        return self == SubscriptionStatus.ACTIVE


SUBSCRIPTION_TRANSITIONS = {
    SubscriptionStatus.PENDING_PAYMENT: frozenset(
        {SubscriptionStatus.ACTIVE, SubscriptionStatus.CANCELLED}
    ),
    SubscriptionStatus.ACTIVE: frozenset(
        {SubscriptionStatus.CANCELLED, SubscriptionStatus.EXPIRED}
    ),
    SubscriptionStatus.CANCELLED: frozenset(),
    SubscriptionStatus.EXPIRED: frozenset(),
}


class InvoiceStatus(StatusEnum):
    """Invoice payment status."""

    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"

    @classmethod
    def transitions(cls):
        return INVOICE_TRANSITIONS


INVOICE_TRANSITIONS = {
    InvoiceStatus.PENDING: frozenset(
        {InvoiceStatus.PAID, InvoiceStatus.OVERDUE, InvoiceStatus.CANCELLED}
    ),
    InvoiceStatus.OVERDUE: frozenset({InvoiceStatus.PAID, InvoiceStatus.CANCELLED}),
    InvoiceStatus.PAID: frozenset(),
    InvoiceStatus.CANCELLED: frozenset(),
}


class InvoiceType(str, Enum):
    REGISTRATION_FEE = "registration_fee"
    MONTHLY_USAGE = "monthly_usage"


class UsageCategory(str, Enum):
    """Fixed meter categories. Features are metered as ``feature:<name>``."""

    RESOURCE_CREATED = "resource_created"
    FILE_UPLOADED = "file_uploaded"


class Feature(str, Enum):
    """Billable link features."""

    CHATBOT = "chatbot"
    SCREENSHOT = "screenshot"
    INTEREST_FORM = "interest_form"
    DOWNLOAD_ENABLE = "download_enable"
    FOLLOW_UP = "follow_up"

    @property
    def meter_category(self) -> str:
        return feature_category(self.value)


FEATURE_PREFIX = "feature:"


def feature_category(name: str) -> str:
    return f"{FEATURE_PREFIX}{name}"
