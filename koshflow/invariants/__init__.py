from .rules import ALL_INVARIANTS, EXPECTED_COUNTS, TOTAL_INVARIANTS, Invariant, Severity

__all__ = [
    "ALL_INVARIANTS",
    "EXPECTED_COUNTS",
    "TOTAL_INVARIANTS",
    "Invariant",
    "Severity",
]
