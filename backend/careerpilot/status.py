from enum import Enum

APPROVED_THRESHOLD = 75
NEEDS_IMPROVEMENT_THRESHOLD = 50
# Candidates at or above this score are offered interview practice.
INTERVIEW_THRESHOLD = APPROVED_THRESHOLD


class MatchStatus(str, Enum):
    APPROVED = "Approved"
    NEEDS_IMPROVEMENT = "Needs Improvement"
    NOT_A_MATCH = "Not a Match"


def status_for_score(score: int) -> MatchStatus:
    """Map a 0-100 match score to its status bucket."""
    if score >= APPROVED_THRESHOLD:
        return MatchStatus.APPROVED
    if score >= NEEDS_IMPROVEMENT_THRESHOLD:
        return MatchStatus.NEEDS_IMPROVEMENT
    return MatchStatus.NOT_A_MATCH
