"""
Academic standing rules.

Standing is a pure function of the current standing and the new cumulative
GPA. The per-standing policy is a constant table; nothing here holds state or
performs I/O, persisting the result is the caller's job.
"""

from dataclasses import dataclass
from typing import Dict, Optional

from .enums import AcademicStanding


NORMAL_THRESHOLD = 2.0
AT_RISK_THRESHOLD = 1.5


@dataclass(frozen=True)
class StandingPolicy:
    """What a student in a given standing may do."""
    standing: AcademicStanding
    can_register: bool
    requires_counseling: bool
    max_credit_hours: int
    required_actions: str


STANDING_POLICIES: Dict[AcademicStanding, StandingPolicy] = {
    AcademicStanding.NORMAL: StandingPolicy(
        standing=AcademicStanding.NORMAL,
        can_register=True,
        requires_counseling=False,
        max_credit_hours=18,
        required_actions="No special actions required. Maintain good academic standing."
    ),
    AcademicStanding.AT_RISK: StandingPolicy(
        standing=AcademicStanding.AT_RISK,
        can_register=True,
        requires_counseling=True,
        max_credit_hours=15,
        required_actions=(
            "Schedule meeting with academic advisor. Consider reducing course load. "
            "Utilize tutoring services."
        )
    ),
    AcademicStanding.PROBATION: StandingPolicy(
        standing=AcademicStanding.PROBATION,
        can_register=True,
        requires_counseling=True,
        max_credit_hours=12,
        required_actions=(
            "MANDATORY: Meet with academic advisor immediately. "
            "Complete academic success workshop. Reduced course load required. "
            "Progress monitored weekly."
        )
    ),
    AcademicStanding.GRADUATED: StandingPolicy(
        standing=AcademicStanding.GRADUATED,
        can_register=False,
        requires_counseling=False,
        max_credit_hours=0,
        required_actions=(
            "All academic requirements completed. "
            "Proceed with graduation ceremony registration."
        )
    ),
}


def standing_from_gpa(gpa: Optional[float]) -> AcademicStanding:
    """Standing implied by a GPA alone; no GPA means no completed coursework."""
    if gpa is None or gpa >= NORMAL_THRESHOLD:
        return AcademicStanding.NORMAL
    if gpa >= AT_RISK_THRESHOLD:
        return AcademicStanding.AT_RISK
    return AcademicStanding.PROBATION


def next_standing(current: AcademicStanding, new_gpa: Optional[float]) -> AcademicStanding:
    """Transition function of the standing machine. GRADUATED is terminal."""
    if current is AcademicStanding.GRADUATED:
        return current
    return standing_from_gpa(new_gpa)


def policy_for(standing: AcademicStanding) -> StandingPolicy:
    return STANDING_POLICIES[standing]


def is_transition(old: AcademicStanding, new: AcademicStanding) -> bool:
    return old is not new


def can_register(standing: AcademicStanding, requested_credits: int = 0) -> bool:
    """Check a registration request against the standing's credit limit."""
    policy = policy_for(standing)
    return policy.can_register and requested_credits <= policy.max_credit_hours
