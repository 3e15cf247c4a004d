import pytest

from careerpilot.status import MatchStatus, status_for_score


@pytest.mark.parametrize("score", range(0, 101))
def test_every_score_lands_in_its_bucket(score):
    status = status_for_score(score)
    if score >= 75:
        assert status is MatchStatus.APPROVED
    elif score >= 50:
        assert status is MatchStatus.NEEDS_IMPROVEMENT
    else:
        assert status is MatchStatus.NOT_A_MATCH


@pytest.mark.parametrize("score, expected", [
    (49, "Not a Match"),
    (50, "Needs Improvement"),
    (74, "Needs Improvement"),
    (75, "Approved"),
])
def test_boundaries(score, expected):
    assert status_for_score(score).value == expected
