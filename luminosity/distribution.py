"""
Frequency distribution types and the merge algorithm used to combine them.
"""

from dataclasses import dataclass, asdict, replace
from typing import Dict, Any, Iterable, List


@dataclass(frozen=True)
class DistributionEntry:
    """One bucket of a frequency distribution."""
    id: int = 0
    label: str = ""
    count: int = 0

    def __post_init__(self):
        if self.count < 0:
            raise ValueError(f"Distribution count must be non-negative, got {self.count}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert the entry to a dictionary."""
        return asdict(self)


class DistributionMap(Dict[str, DistributionEntry]):
    """Distribution entries keyed by label."""

    def add(self, entry: DistributionEntry) -> None:
        """
        Add an entry, summing counts when the label is already present.

        The id and label of the first occurrence are kept. Entries are never
        mutated; a new summed entry replaces the stored one.
        """
        existing = self.get(entry.label)
        if existing is None:
            self[entry.label] = entry
        else:
            self[entry.label] = replace(existing, count=existing.count + entry.count)

    def to_list(self) -> "DistributionList":
        """Flatten to a list. Order is unspecified; sort before relying on it."""
        return DistributionList(self.values())


class DistributionList(List[DistributionEntry]):
    """An ordered sequence of distribution entries, as returned by a query."""

    def to_map(self) -> DistributionMap:
        """Build a label keyed map. Duplicate labels have their counts summed."""
        result = DistributionMap()
        for entry in self:
            result.add(entry)
        return result

    def collapse(self) -> "DistributionList":
        """
        Sum entries sharing a label, keeping each label at the position of its
        first occurrence.
        """
        # dicts preserve insertion order
        return DistributionList(self.to_map().values())

    def merge(self, *others: "DistributionList") -> "DistributionList":
        """Merge this list with others. See merge_distributions."""
        return merge_distributions(self, *others)

    def sorted_by_label(self) -> "DistributionList":
        """Return a copy sorted ascending by label."""
        return DistributionList(sorted(self, key=_label_key))

    def sorted_by_date(self) -> "DistributionList":
        """
        Return a copy sorted by date for lists whose labels are YYYY-MM-DD.

        ISO dates sort correctly as plain strings, so this is the label order.
        """
        return self.sorted_by_label()

    def total(self) -> int:
        """Sum of all counts."""
        return sum(entry.count for entry in self)

    def labels(self) -> List[str]:
        return [entry.label for entry in self]

    def to_dicts(self) -> List[Dict[str, Any]]:
        return [entry.to_dict() for entry in self]


def _label_key(entry: DistributionEntry) -> str:
    return entry.label


def merge_distributions(*distributions: Iterable[DistributionEntry]) -> DistributionList:
    """
    Combine distributions by summing the counts of entries sharing a label.

    The id and label of a merged bucket are copied from the first occurrence
    encountered. The result is sorted ascending by label, so the totals do not
    depend on the order of the inputs.

    Args:
        *distributions: Any number of distribution lists

    Returns:
        A new list sorted by label, empty when no lists are given
    """
    merged = DistributionMap()
    for distribution in distributions:
        for entry in distribution:
            merged.add(entry)
    return merged.to_list().sorted_by_label()
