"""DeleteResult — the outcome of a bulk or targeted delete."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class DeleteResult:
    """Immutable summary of a delete pass over matching rows.

    Attributes:
        matched:  Number of rows the scan returned.
        deleted:  Anchor numbers (row keys) that were removed.
        failures: ``(row_key, error message)`` for every row that could not
                  be removed.
        aborted:  ``True`` when the pass stopped at the first failure and
                  left later rows untouched.
    """

    matched: int
    deleted: tuple[str, ...] = ()
    failures: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    aborted: bool = False

    @property
    def any_deleted(self) -> bool:
        return bool(self.deleted)

    @property
    def complete(self) -> bool:
        """``True`` when at least one row matched and every match was removed."""
        return self.matched > 0 and not self.failures and len(self.deleted) == self.matched
