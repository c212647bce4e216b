"""
projection.py - Earning benchmarks and repayment projections

Provides the income-expectation side of the system:

Classes:
- BenchmarkKey: (degree, location) key with structural equality
- SalaryBenchmark: average/median salary and confidence for one key
- BenchmarkSource: Protocol for anything that can look a benchmark up
- EarningOracle: ledger-backed benchmark store and per-student projections

Functions:
- project_repayment_schedule: vectorised per-cycle repayments for an
  income path, using the same integer formula and ceiling rule as the
  repayment engine
- suggest_income_threshold: seed a threshold from a benchmark median

Benchmarks do not influence the loan state machine; they only inform the
terms a lender chooses at origination.
"""

from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Protocol, Sequence, Tuple, runtime_checkable

import numpy as np

from .authority import require_principal
from .core import (
    Decision, ExecuteResult, LedgerView, Move, OpResult, OriginType, Reason,
    TransactionOrigin, Unit, UnitStateChange,
    accept, build_transaction, bump_version, user_action,
    EXPERIENCE_STEP, MAX_LABEL_LENGTH, MAX_YEARS_EXPERIENCE, SUPPORTED_CURRENCIES,
)
from .engine import ensure_currencies
from .ledger import Ledger


UNIT_TYPE_EARNING_ORACLE = "EARNING_ORACLE"

ORACLE_CODES: Dict[Reason, int] = {
    Reason.NOT_AUTHORIZED: 300,
    Reason.INVALID_DEGREE: 301,
    Reason.INVALID_LOCATION: 302,
    Reason.INVALID_YEARS: 303,
    Reason.INVALID_SALARY: 304,
    Reason.PROJECTION_NOT_FOUND: 306,
    Reason.INVALID_CONFIDENCE: 307,
    Reason.INVALID_UPDATE_PARAM: 308,
    Reason.INVALID_CURRENCY: 309,
    Reason.MAX_PROJECTIONS: 310,
    Reason.TRANSFER_FAILED: 312,
    Reason.DUPLICATE_OPERATION: 312,
}


# ============================================================================
# BENCHMARK TYPES
# ============================================================================

@dataclass(frozen=True, slots=True)
class BenchmarkKey:
    """Degree and location of a salary benchmark. Hashable, no string joining."""
    degree: str
    location: str


@dataclass(frozen=True, slots=True)
class SalaryBenchmark:
    avg_salary: int
    median_salary: int
    confidence: int       # 0-100
    last_updated: int     # height
    data_points: int


@dataclass(frozen=True, slots=True)
class Projection:
    """Projected salary for one student, derived from a benchmark."""
    projection_id: int
    student: str
    degree: str
    location: str
    years_experience: int
    projected_salary: int
    confidence_score: int
    created_at: int
    updated_at: int
    currency: str


@runtime_checkable
class BenchmarkSource(Protocol):
    """
    Protocol for benchmark lookups.

    Implementations return None when no benchmark exists for the key.
    """

    def get_benchmark(self, key: BenchmarkKey) -> Optional[SalaryBenchmark]:
        ...


# ============================================================================
# PURE CALCULATIONS
# ============================================================================

def calculate_projected_salary(benchmark: SalaryBenchmark, years_experience: int) -> int:
    """
    floor((avg_salary + years * EXPERIENCE_STEP) * confidence / 100)

    >>> calculate_projected_salary(SalaryBenchmark(100000, 95000, 90, 0, 1), 2)
    99000
    """
    base = benchmark.avg_salary + years_experience * EXPERIENCE_STEP
    return (base * benchmark.confidence) // 100


def suggest_income_threshold(benchmark: SalaryBenchmark, ratio_percent: int = 80) -> int:
    """Income threshold set at a percentage of the benchmark median."""
    if not 0 < ratio_percent <= 100:
        raise ValueError(f"ratio_percent must be in (0, 100], got {ratio_percent}")
    return (benchmark.median_salary * ratio_percent) // 100


def project_repayment_schedule(
    total_due: int,
    threshold: int,
    percentage: int,
    incomes: Sequence[int],
    repaid: int = 0,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Repayments a sequence of income reports would produce.

    Per-cycle amounts are computed in one vectorised pass with the engine's
    integer formula. The ceiling rule is then applied in order: a cycle
    whose amount would push cumulative repaid past total_due is refused by
    the engine and contributes 0, and once total_due is reached every
    later cycle contributes 0.

    Args:
        total_due: Fixed obligation of the loan
        threshold: Income threshold
        percentage: Repayment percentage (0-100)
        incomes: Reported income per cycle
        repaid: Amount already repaid before the first cycle

    Returns:
        Tuple of (payments, cumulative_repaid), both int64 arrays with one
        entry per cycle.

    Example:
        payments, cumulative = project_repayment_schedule(
            10500, 50000, 10, [60000, 70000, 40000])
        # payments   -> [1000, 2000, 0]
        # cumulative -> [1000, 3000, 3000]
    """
    income_arr = np.asarray(incomes, dtype=np.int64)
    if income_arr.ndim != 1:
        raise ValueError("incomes must be one-dimensional")
    if np.any(income_arr < 0):
        raise ValueError("incomes must be non-negative")

    excess = np.maximum(income_arr - threshold, 0)
    raw = (excess * percentage) // 100

    payments = np.zeros_like(raw)
    running = repaid
    for i, amount in enumerate(raw):
        if running >= total_due:
            break
        if 0 < amount and running + amount <= total_due:
            payments[i] = amount
            running += int(amount)
    cumulative = repaid + np.cumsum(payments)
    return payments, cumulative


# ============================================================================
# EARNING ORACLE
# ============================================================================

def _valid_label(label: str) -> bool:
    return bool(label) and len(label) <= MAX_LABEL_LENGTH


def _benchmarks(state: dict) -> Dict[Tuple[str, str], dict]:
    return state.get('benchmarks', {})


def _benchmark_from(raw: dict) -> SalaryBenchmark:
    return SalaryBenchmark(**raw)


class EarningOracle:
    """
    Ledger-backed benchmark store and projection registry.

    Benchmarks are written by a single oracle principal. Any caller may
    create a projection for a student against an existing benchmark; only
    that student may later re-point it, paying update_fee to the oracle.

    All state lives in one ledger unit so every write is an audited
    transaction, and the fee move and the projection change apply together.
    """

    def __init__(
        self,
        ledger: Ledger,
        oracle: str,
        max_projections: int = 10000,
        update_fee: int = 100,
        fee_unit: str = "STX",
        symbol: str = "ORACLE",
    ):
        if max_projections <= 0:
            raise ValueError(f"max_projections must be positive, got {max_projections}")
        if update_fee < 0:
            raise ValueError(f"update_fee must be non-negative, got {update_fee}")
        self.ledger = ledger
        self.symbol = symbol
        self.verbose = ledger.verbose
        ensure_currencies(ledger)
        if not ledger.has_unit(symbol):
            initial = {
                'oracle': oracle,
                'max_projections': max_projections,
                'update_fee': update_fee,
                'fee_unit': fee_unit,
                'next_projection_id': 0,
                'benchmarks': {},
                'projections': {},
                'version': 0,
            }
            pending = build_transaction(
                ledger, [],
                [UnitStateChange(unit=symbol, old_state=None, new_state=initial)],
                origin=TransactionOrigin(OriginType.SYSTEM, "oracle", symbol, "BOOTSTRAP"),
                units_to_create=(Unit(symbol=symbol, name="Earning oracle",
                                      unit_type=UNIT_TYPE_EARNING_ORACLE),),
            )
            if ledger.execute(pending) != ExecuteResult.APPLIED:
                raise ValueError(f"Could not create oracle {symbol}")

    # ------------------------------------------------------------------
    # plumbing
    # ------------------------------------------------------------------

    def _state(self) -> dict:
        return self.ledger.get_unit_state(self.symbol)

    def _change(self, view: LedgerView, caller: str, event: str, moves=(), **changes) -> Decision:
        old_state = view.get_unit_state(self.symbol)
        new_state = bump_version(old_state, **changes)
        pending = build_transaction(
            view, list(moves),
            [UnitStateChange(unit=self.symbol, old_state=old_state, new_state=new_state)],
            origin=user_action(caller, self.symbol, event),
        )
        return accept(pending)

    def _submit(self, operation: str, decision: Decision) -> OpResult:
        if not decision.accepted:
            return self._fail(operation, decision.reason)
        result = self.ledger.execute(decision.pending, register_wallets=True)
        if result == ExecuteResult.APPLIED:
            return OpResult(ok=True, value=decision.value)
        if result == ExecuteResult.ALREADY_APPLIED:
            return self._fail(operation, Reason.DUPLICATE_OPERATION)
        return self._fail(operation, Reason.TRANSFER_FAILED)

    def _fail(self, operation: str, reason: Reason) -> OpResult:
        code = ORACLE_CODES.get(reason)
        if self.verbose:
            print(f"✗ {operation}({self.symbol}): {reason.value} [{code}]")
        return OpResult(ok=False, reason=reason, code=code)

    def _require_oracle(self, caller: str) -> Optional[Reason]:
        return require_principal(caller, self._state()['oracle'])

    # ------------------------------------------------------------------
    # configuration
    # ------------------------------------------------------------------

    @property
    def oracle(self) -> str:
        return self._state()['oracle']

    def set_oracle(self, caller: str, new_oracle: str) -> OpResult:
        failure = self._require_oracle(caller)
        if failure is None and not new_oracle:
            failure = Reason.INVALID_UPDATE_PARAM
        if failure is not None:
            return self._fail("set_oracle", failure)
        return self._submit("set_oracle", self._change(self.ledger, caller, "SET_ORACLE", oracle=new_oracle))

    def set_max_projections(self, caller: str, max_projections: int) -> OpResult:
        failure = self._require_oracle(caller)
        if failure is None and max_projections <= 0:
            failure = Reason.INVALID_UPDATE_PARAM
        if failure is not None:
            return self._fail("set_max_projections", failure)
        decision = self._change(self.ledger, caller, "SET_MAX_PROJECTIONS", max_projections=max_projections)
        return self._submit("set_max_projections", decision)

    def set_update_fee(self, caller: str, fee: int) -> OpResult:
        failure = self._require_oracle(caller)
        if failure is None and fee < 0:
            failure = Reason.INVALID_UPDATE_PARAM
        if failure is not None:
            return self._fail("set_update_fee", failure)
        return self._submit("set_update_fee", self._change(self.ledger, caller, "SET_UPDATE_FEE", update_fee=fee))

    # ------------------------------------------------------------------
    # benchmarks
    # ------------------------------------------------------------------

    def update_degree_salary(
        self,
        caller: str,
        degree: str,
        location: str,
        avg_salary: int,
        median_salary: int,
        confidence: int,
    ) -> OpResult:
        """Write a benchmark. data_points counts the writes for the key."""
        failure = self._require_oracle(caller)
        if failure is None:
            if not _valid_label(degree):
                failure = Reason.INVALID_DEGREE
            elif not _valid_label(location):
                failure = Reason.INVALID_LOCATION
            elif avg_salary <= 0 or median_salary <= 0:
                failure = Reason.INVALID_SALARY
            elif not 0 <= confidence <= 100:
                failure = Reason.INVALID_CONFIDENCE
        if failure is not None:
            return self._fail("update_degree_salary", failure)

        benchmarks = dict(_benchmarks(self._state()))
        key = (degree, location)
        previous = benchmarks.get(key)
        benchmarks[key] = {
            'avg_salary': avg_salary,
            'median_salary': median_salary,
            'confidence': confidence,
            'last_updated': self.ledger.current_height,
            'data_points': previous['data_points'] + 1 if previous else 1,
        }
        decision = self._change(self.ledger, caller, "UPDATE_BENCHMARK", benchmarks=benchmarks)
        return self._submit("update_degree_salary", decision)

    def get_benchmark(self, key: BenchmarkKey) -> Optional[SalaryBenchmark]:
        raw = _benchmarks(self._state()).get((key.degree, key.location))
        return _benchmark_from(raw) if raw else None

    # ------------------------------------------------------------------
    # projections
    # ------------------------------------------------------------------

    def _projection_checks(self, degree: str, location: str, years: int) -> Optional[Reason]:
        if not _valid_label(degree):
            return Reason.INVALID_DEGREE
        if not _valid_label(location):
            return Reason.INVALID_LOCATION
        if not 0 <= years <= MAX_YEARS_EXPERIENCE:
            return Reason.INVALID_YEARS
        return None

    def create_projection(
        self,
        caller: str,
        student: str,
        degree: str,
        location: str,
        years_experience: int,
        currency: str,
    ) -> OpResult:
        """Project a student's salary. On success the value is the projection id."""
        state = self._state()
        projection_id = state['next_projection_id']
        failure = None
        if projection_id >= state['max_projections']:
            failure = Reason.MAX_PROJECTIONS
        if failure is None:
            failure = self._projection_checks(degree, location, years_experience)
        if failure is None and currency not in SUPPORTED_CURRENCIES:
            failure = Reason.INVALID_CURRENCY
        benchmark = self.get_benchmark(BenchmarkKey(degree, location))
        if failure is None and benchmark is None:
            failure = Reason.PROJECTION_NOT_FOUND
        if failure is not None:
            return self._fail("create_projection", failure)

        height = self.ledger.current_height
        projections = dict(state['projections'])
        projections[projection_id] = {
            'student': student,
            'degree': degree,
            'location': location,
            'years_experience': years_experience,
            'projected_salary': calculate_projected_salary(benchmark, years_experience),
            'confidence_score': benchmark.confidence,
            'created_at': height,
            'updated_at': height,
            'currency': currency,
        }
        decision = self._change(
            self.ledger, caller, "CREATE_PROJECTION",
            projections=projections, next_projection_id=projection_id + 1,
        )
        if decision.accepted:
            decision = accept(decision.pending, projection_id)
        return self._submit("create_projection", decision)

    def update_projection(
        self,
        caller: str,
        projection_id: int,
        degree: str,
        location: str,
        years_experience: int,
    ) -> OpResult:
        """Re-point a projection; the student pays update_fee to the oracle."""
        state = self._state()
        current = state['projections'].get(projection_id)
        if current is None:
            return self._fail("update_projection", Reason.PROJECTION_NOT_FOUND)
        failure = require_principal(caller, current['student'])
        if failure is None:
            failure = self._projection_checks(degree, location, years_experience)
        benchmark = self.get_benchmark(BenchmarkKey(degree, location))
        if failure is None and benchmark is None:
            failure = Reason.PROJECTION_NOT_FOUND
        if failure is not None:
            return self._fail("update_projection", failure)

        moves = []
        fee = state['update_fee']
        if fee > 0:
            if caller == state['oracle']:
                return self._fail("update_projection", Reason.TRANSFER_FAILED)
            moves.append(Move(
                quantity=Decimal(fee),
                unit_symbol=state['fee_unit'],
                source=caller,
                dest=state['oracle'],
                contract_id=f"projection_fee_{projection_id}",
            ))

        projections = dict(state['projections'])
        projections[projection_id] = {
            **current,
            'degree': degree,
            'location': location,
            'years_experience': years_experience,
            'projected_salary': calculate_projected_salary(benchmark, years_experience),
            'confidence_score': benchmark.confidence,
            'updated_at': self.ledger.current_height,
        }
        decision = self._change(self.ledger, caller, "UPDATE_PROJECTION", moves, projections=projections)
        return self._submit("update_projection", decision)

    def get_projection(self, projection_id: int) -> Optional[Projection]:
        raw = self._state()['projections'].get(projection_id)
        if raw is None:
            return None
        return Projection(projection_id=projection_id, **raw)
