import pytest

from repsync.domain.study import StudyState, resolve_study_state
from repsync.errors import StudyStateError
from tests.study_fakes import make_study


@pytest.mark.parametrize(
    ("included", "hidden", "removed", "expected"),
    [
        (False, False, False, StudyState.AVAILABLE),
        (False, True, False, StudyState.HIDDEN),
        (True, False, False, StudyState.INCLUDED),
        (True, False, True, StudyState.REMOVED_ON_REMOTE),
    ],
)
def test_resolve_study_state(
    included: bool, hidden: bool, removed: bool, expected: StudyState
) -> None:
    assert resolve_study_state(included, hidden, removed) is expected


def test_hidden_included_study_is_rejected() -> None:
    with pytest.raises(StudyStateError):
        resolve_study_state(True, True, False)


def test_removed_flag_requires_inclusion() -> None:
    with pytest.raises(StudyStateError):
        _ = make_study("s1", removed_on_remote=True).state
