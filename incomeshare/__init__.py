"""
incomeshare - Income-Share Loan Engine

Loan lifecycle state machine and repayment engine on top of an atomic,
audited double-entry ledger measured in block heights.

Usage:
    from incomeshare import Ledger, IndividualLoanLedger, RegistryConfig

    ledger = Ledger("loans", verbose=False, test_mode=True)
    loans = IndividualLoanLedger(ledger, RegistryConfig(administrator="authority"))
    ledger.register_wallet("originator")
    ledger.set_balance("originator", "STX", 1000)

    loan_id = loans.create_loan("originator", 10000, 500, 100, 50000, 10,
                                "borrower", "lender", 100, 360, "STX").value
"""

# Core types
from .core import (
    LedgerView,
    Move,
    Transaction,
    PendingTransaction,
    TransactionOrigin,
    OriginType,
    build_transaction,
    Unit,
    UnitStateChange,
    ExecuteResult,
    LedgerError,
    UnitNotRegistered,
    WalletNotRegistered,
    Reason,
    Decision,
    OpResult,
    cash,
    SYSTEM_WALLET,
    STALENESS_WINDOW,
    SUPPORTED_CURRENCIES,
    STATUS_PENDING,
    STATUS_ACTIVE,
    STATUS_REPAID,
    STATUS_DEFAULT,
)

# Ledger
from .ledger import Ledger

# Authority
from .authority import Role, is_principal, require_principal

# Loans
from .loans import (
    LoanTerms,
    Loan,
    IncomeReport,
    LoanUpdate,
    RepaymentRecord,
    ReportPolicy,
    CyclePolicy,
    RegistryConfig,
    TrackerConfig,
    calculate_total_due,
    calculate_repayment_amount,
    loans_eligible_for_default,
)

# Facades
from .engine import LoanEngine
from .individual_loan import IndividualLoanLedger, INDIVIDUAL_LOAN_CODES
from .repayment_tracker import RepaymentTracker, TRACKER_CODES

# Projections
from .projection import (
    BenchmarkKey,
    SalaryBenchmark,
    BenchmarkSource,
    Projection,
    EarningOracle,
    ORACLE_CODES,
    project_repayment_schedule,
    suggest_income_threshold,
)

__version__ = "0.1.0"

__all__ = [
    # Core
    'LedgerView', 'Move', 'Transaction', 'PendingTransaction',
    'TransactionOrigin', 'OriginType', 'build_transaction',
    'Unit', 'UnitStateChange', 'ExecuteResult',
    'LedgerError', 'UnitNotRegistered', 'WalletNotRegistered',
    'Reason', 'Decision', 'OpResult', 'cash',
    'SYSTEM_WALLET', 'STALENESS_WINDOW', 'SUPPORTED_CURRENCIES',
    'STATUS_PENDING', 'STATUS_ACTIVE', 'STATUS_REPAID', 'STATUS_DEFAULT',
    # Ledger
    'Ledger',
    # Authority
    'Role', 'is_principal', 'require_principal',
    # Loans
    'LoanTerms', 'Loan', 'IncomeReport', 'LoanUpdate', 'RepaymentRecord',
    'ReportPolicy', 'CyclePolicy', 'RegistryConfig', 'TrackerConfig',
    'calculate_total_due', 'calculate_repayment_amount', 'loans_eligible_for_default',
    # Facades
    'LoanEngine', 'IndividualLoanLedger', 'INDIVIDUAL_LOAN_CODES',
    'RepaymentTracker', 'TRACKER_CODES',
    # Projections
    'BenchmarkKey', 'SalaryBenchmark', 'BenchmarkSource', 'Projection',
    'EarningOracle', 'ORACLE_CODES',
    'project_repayment_schedule', 'suggest_income_threshold',
]
