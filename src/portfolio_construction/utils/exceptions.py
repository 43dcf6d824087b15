"""
Exception Hierarchy for Portfolio Construction
==============================================
Errors raised by the construction pipeline.

Critical Rule: an empty eligible universe must BLOCK portfolio construction
with a reason the caller can show to the user. Non-convergence and
over-constrained inputs are NOT errors: they produce results flagged as
approximate.
"""

from enum import Enum
from typing import Dict, Optional


# =============================================================================
# BASE EXCEPTION HIERARCHY
# =============================================================================

class PortfolioConstructionError(Exception):
    """
    Base exception for the construction engine.

    All engine exceptions inherit from this to allow catching every
    construction failure with a single except clause.
    """
    pass


class InvalidInputError(PortfolioConstructionError, ValueError):
    """
    Raised for malformed parameters or inconsistent statistics.

    These are programming errors on the caller side (wrong shapes,
    negative penalties, unknown solver names), not investor conditions.
    """

    def __init__(self, field_name: str, problem: str):
        self.field_name = field_name
        self.problem = problem
        super().__init__(f"Invalid {field_name}: {problem}")


# =============================================================================
# NO ELIGIBLE FUNDS
# =============================================================================

class NoEligibleFundsReason(str, Enum):
    """Why no portfolio could be built."""
    EMPTY_UNIVERSE = "EMPTY_UNIVERSE"
    NO_REGION_MATCH = "NO_REGION_MATCH"
    INDUSTRY_EXCLUSIONS = "INDUSTRY_EXCLUSIONS"
    INSUFFICIENT_LIQUIDITY = "INSUFFICIENT_LIQUIDITY"
    INSUFFICIENT_HISTORY = "INSUFFICIENT_HISTORY"
    MULTIPLE_CONSTRAINTS = "MULTIPLE_CONSTRAINTS"
    EXCLUSION_INFEASIBLE = "EXCLUSION_INFEASIBLE"


REASON_MESSAGES: Dict[NoEligibleFundsReason, str] = {
    NoEligibleFundsReason.EMPTY_UNIVERSE: "The fund universe is empty.",
    NoEligibleFundsReason.NO_REGION_MATCH: "No funds match your selected regions.",
    NoEligibleFundsReason.INDUSTRY_EXCLUSIONS: "Every fund is exposed to an industry you excluded.",
    NoEligibleFundsReason.INSUFFICIENT_LIQUIDITY: "No fund meets the minimum size and trading-cost requirements.",
    NoEligibleFundsReason.INSUFFICIENT_HISTORY: "No fund has enough return history.",
    NoEligibleFundsReason.MULTIPLE_CONSTRAINTS: "Your combined preferences exclude every available fund.",
    NoEligibleFundsReason.EXCLUSION_INFEASIBLE: (
        "Every remaining fund exceeds the allowed exposure to an excluded industry."
    ),
}


class NoEligibleFundsError(PortfolioConstructionError):
    """
    Raised when no portfolio can be constructed under current constraints.

    Args:
        reason: NoEligibleFundsReason code (what the caller shows the user)
        rejected: Count of rejected funds per reason, when known
        details: Free-form technical details
    """

    def __init__(
        self,
        reason: NoEligibleFundsReason,
        rejected: Optional[Dict[str, int]] = None,
        details: Optional[dict] = None,
    ):
        self.reason = NoEligibleFundsReason(reason)
        self.rejected = dict(rejected or {})
        self.details = dict(details or {})

        msg_parts = [
            f"Cannot construct a portfolio under current constraints [{self.reason.value}]",
            f"REASON: {REASON_MESSAGES[self.reason]}",
        ]
        if self.rejected:
            msg_parts.append("REJECTED FUNDS:")
            for key, count in self.rejected.items():
                msg_parts.append(f"   • {key}: {count}")
        if self.details:
            msg_parts.append("DETAILS:")
            for key, value in self.details.items():
                msg_parts.append(f"   • {key}: {value}")

        super().__init__("\n".join(msg_parts))

    @property
    def user_message(self) -> str:
        """Short explanation suitable for end users."""
        return REASON_MESSAGES[self.reason]
