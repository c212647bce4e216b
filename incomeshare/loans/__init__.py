"""
loans - Income-share loan lifecycle

Pure functions that decide each loan operation against a read-only
LedgerView and return a Decision carrying the PendingTransaction to apply.
"""

from .terms import (
    LoanTerms, Loan, IncomeReport, LoanUpdate, RepaymentRecord,
    ReportPolicy, CyclePolicy,
    calculate_total_due, calculate_repayment_amount,
    is_valid_transition, status_reason,
    load_loan, loan_symbol, registry_symbol,
)
from .registry import (
    RegistryConfig, TrackerConfig, RegistrySettings,
    load_registry,
    compute_bootstrap_registry, compute_create_loan, compute_initialize_loan,
    compute_disburse, compute_configure_authority, compute_set_authority,
    compute_set_max_loans, compute_set_disbursement_fee,
)
from .income import compute_report_income
from .repayment import compute_repayment, check_cycle
from .default import compute_default, is_stale, loans_eligible_for_default
from .updates import compute_update_terms
