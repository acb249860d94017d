"""
Referral services package.

Building blocks of the ledger service:
- code_generator: Referral code and link generation
- commission: Advisory commission policy
- status: Referral status state machine
- aggregation: Recompute-from-source aggregates
- export: CSV export for the admin back office
- reconciliation: Year-to-date rollover and drift repair
"""

from referral_ledger.services.referral.aggregation import AggregationEngine, ReferralTotals
from referral_ledger.services.referral.code_generator import (
    CodeGenerator,
    build_referral_link,
    code_prefix,
)
from referral_ledger.services.referral.commission import (
    commission_for_deposit,
    quantize_money,
)
from referral_ledger.services.referral.reconciliation import (
    reconcile_aggregates,
    rollover_year_to_date,
)
from referral_ledger.services.referral.status import StatusEvent, next_status


__all__ = [
    # Codes
    "CodeGenerator",
    "build_referral_link",
    "code_prefix",
    # Commission
    "commission_for_deposit",
    "quantize_money",
    # Status
    "StatusEvent",
    "next_status",
    # Aggregates
    "AggregationEngine",
    "ReferralTotals",
    "reconcile_aggregates",
    "rollover_year_to_date",
]
