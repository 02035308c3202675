from repsync.domain.moves import StudyMove
from repsync.domain.mutations import DetachMoveFromStudy, DetachStudyMoves, SoftDeleteMove
from repsync.domain.orphans import (
    find_orphan_moves,
    orphan_move_soft_deletions,
    plan_move_detachment,
)


def _stored(move_id: str, *owners: str) -> StudyMove:
    return StudyMove(
        move_id=move_id,
        rep_for_white=True,
        from_fen=f"from-{move_id}",
        to_fen=f"to-{move_id}",
        own_move=True,
        owner_study_ids=frozenset(owners),
    )


def test_find_orphan_moves_keeps_shared_moves() -> None:
    exclusive = _stored("m1", "s1")
    shared = _stored("m2", "s1", "s2")

    assert find_orphan_moves([exclusive, shared], "s1") == [exclusive]


def test_find_orphan_moves_handles_move_already_without_study() -> None:
    stray = _stored("m3")

    assert find_orphan_moves([stray], "s1") == [stray]


def test_orphan_move_soft_deletions() -> None:
    moves = [_stored("m1", "s1"), _stored("m2", "s1", "s2"), _stored("m3", "s1")]

    assert orphan_move_soft_deletions(moves, "s1") == [SoftDeleteMove("m1"), SoftDeleteMove("m3")]


def test_plan_move_detachment_pairs_edges_with_soft_deletes() -> None:
    moves = [_stored("m1", "s1"), _stored("m2", "s1", "s2")]

    mutations = plan_move_detachment(moves, "s1")

    assert mutations == [
        SoftDeleteMove("m1"),
        DetachMoveFromStudy("m1", "s1"),
        DetachMoveFromStudy("m2", "s1"),
    ]


def test_plan_move_detachment_can_sever_every_edge() -> None:
    moves = [_stored("m1", "s1"), _stored("m2", "s1", "s2")]

    mutations = plan_move_detachment(moves, "s1", detach_all=True)

    assert mutations == [SoftDeleteMove("m1"), DetachStudyMoves("s1")]
