# --- Cross-module hook catalog -----------------------------------------------
from collections import Counter
from typing import Iterable, Iterator

from hook_finder.src.hook_finder.models.hook_models import HookRecord, ModuleHooks


class HookCatalog:
    """
    The final, ordered list of hook records across all scanned modules.

    Modules are deduplicated by hook signature while they are indexed; the
    catalog only drops records that are equal in every field. Two records
    with the same signature from different modules both stay when anything
    else (class, method, source) differs.
    """

    def __init__(self, records: Iterable[HookRecord] = ()):
        self.records: list[HookRecord] = list(records)

    @classmethod
    def from_modules(cls, modules: Iterable[ModuleHooks]) -> "HookCatalog":
        # Collect everything first, then merge in module order
        candidates = [record for module in modules for record in module.hooks.values()]
        seen: set[HookRecord] = set()
        unique = []
        for record in candidates:
            if record in seen:
                continue
            seen.add(record)
            unique.append(record)
        return cls(unique)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[HookRecord]:
        return iter(self.records)

    def hooks_per_class(self) -> dict[str, int]:
        """Class name -> number of hook records, in first-seen order."""
        return dict(Counter(record.method_class_name for record in self.records))
