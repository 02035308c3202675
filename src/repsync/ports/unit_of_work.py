"""Transaction boundary used to apply mutation batches."""

from __future__ import annotations

from typing import Protocol, TypeVar

ConnT_co = TypeVar("ConnT_co", covariant=True)


class UnitOfWork(Protocol[ConnT_co]):
    """One storage transaction.

    Everything executed between ``begin`` and ``commit`` lands together; after
    ``rollback`` none of it is visible to other readers.
    """

    def begin(self) -> ConnT_co:
        """Open the transaction and return the connection bound to it."""

    def commit(self) -> None: ...

    def rollback(self) -> None: ...

    def close(self) -> None:
        """Roll back anything still open and release the connection."""
