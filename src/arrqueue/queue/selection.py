"""Selection of queue records by identity key.

Selection is keyed by record (service:instanceId:id), not by summary row,
so selecting a group row selects each of its members and regrouping after
a refetch does not lose the selection.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from arrqueue.queue.models import QueueRecord, SummaryRow, build_key


class SelectionSet:
    """Mutable set of selected record keys."""

    def __init__(self, keys: Iterable[str] | None = None) -> None:
        self._keys: set[str] = set(keys or ())

    def __contains__(self, key: object) -> bool:
        return key in self._keys

    def __iter__(self) -> Iterator[str]:
        return iter(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    @property
    def keys(self) -> frozenset[str]:
        return frozenset(self._keys)

    def select(self, records: Iterable[QueueRecord]) -> None:
        """Add records to the selection."""
        self._keys.update(build_key(record) for record in records)

    def deselect(self, records: Iterable[QueueRecord]) -> None:
        """Remove records from the selection."""
        self._keys.difference_update(build_key(record) for record in records)

    def toggle_row(self, row: SummaryRow) -> None:
        """Select every member of a row, or clear them if all are selected."""
        row_keys = {build_key(record) for record in row.items}
        if row_keys <= self._keys:
            self._keys -= row_keys
        else:
            self._keys |= row_keys

    def is_row_selected(self, row: SummaryRow) -> bool:
        """True when every member of the row is selected."""
        return all(build_key(record) in self._keys for record in row.items)

    def clear(self) -> None:
        self._keys.clear()

    def prune(self, records: Iterable[QueueRecord]) -> set[str]:
        """Drop keys that no longer match a record in the current list.

        Args:
            records: The current backing record list.

        Returns:
            The keys that were dropped (possibly empty).
        """
        live = {build_key(record) for record in records}
        stale = self._keys - live
        self._keys &= live
        return stale

    def resolve(self, records: Iterable[QueueRecord]) -> list[QueueRecord]:
        """Return the selected records from the list, in list order."""
        return [record for record in records if build_key(record) in self._keys]
