"""Local identifiers for stored studies and move nodes."""

from uuid import uuid4


def new_study_id() -> str:
    """Return a local id for a study seen on Lichess for the first time.

    Local ids are independent of the Lichess study id, which is kept as
    ``remote_id``.
    """
    return str(uuid4())


def new_move_id() -> str:
    return str(uuid4())
