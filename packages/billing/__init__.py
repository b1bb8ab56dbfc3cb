"""
Billing package - plans, subscriptions, usage metering, quotas and invoices.

Quota enforcement reads the subscription ledger and live link counts.
Enterprise accounts are unlimited but metered per calendar month, and the
BillingService prices those monthly records into invoices.
"""
