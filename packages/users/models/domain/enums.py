from enum import Enum

from common.core.state_machine import StatusEnum


class AccountClass(str, Enum):
    INDIVIDUAL = "individual"
    ENTERPRISE = "enterprise"


class AccountStatus(StatusEnum):
    """
    Account lifecycle.

    Enterprise accounts start in pending_payment until the registration fee
    is paid. Individuals are active from registration.
    """

    PENDING_PAYMENT = "pending_payment"
    ACTIVE = "active"
    SUSPENDED = "suspended"

    @classmethod
    def transitions(cls):
        return ACCOUNT_TRANSITIONS

    def can_sign_in(self) -> bool:
        return self == AccountStatus.ACTIVE


ACCOUNT_TRANSITIONS = {
    AccountStatus.PENDING_PAYMENT: frozenset({AccountStatus.ACTIVE}),
    AccountStatus.ACTIVE: frozenset({AccountStatus.SUSPENDED}),
    AccountStatus.SUSPENDED: frozenset({AccountStatus.ACTIVE}),
}
