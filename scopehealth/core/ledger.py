from __future__ import annotations

from dataclasses import replace
from typing import Any

from scopehealth.core.models import MaintenanceRecord, MaintenanceType


class MaintenanceLedger:
    """
    Completed maintenance/calibration events per component, newest first.
    """

    def __init__(self) -> None:
        self._records: dict[str, list[MaintenanceRecord]] = {}

    def append(self, record: MaintenanceRecord) -> None:
        records = self._records.setdefault(record.component_id, [])
        records.append(record)
        # stable sort: equal dates keep insertion order
        records.sort(key=lambda r: r.date, reverse=True)

    def all(self, component_id: str) -> list[MaintenanceRecord]:
        return list(self._records.get(component_id, ()))

    def by_type(self, component_id: str, *types: MaintenanceType) -> list[MaintenanceRecord]:
        wanted = set(types)
        return [r for r in self._records.get(component_id, ()) if r.type in wanted]

    def last_of(self, component_id: str, *types: MaintenanceType) -> MaintenanceRecord | None:
        matches = self.by_type(component_id, *types)
        return matches[0] if matches else None

    def find(self, record_id: str) -> MaintenanceRecord | None:
        for records in self._records.values():
            for r in records:
                if r.id == record_id:
                    return r
        return None

    def replace(self, record_id: str, **changes: Any) -> MaintenanceRecord | None:
        """
        Swap a record for an edited copy. The component id cannot change.
        Returns the new record, or None if no record has that id.
        """
        changes.pop("component_id", None)
        for records in self._records.values():
            for i, r in enumerate(records):
                if r.id == record_id:
                    updated = replace(r, **changes)
                    records[i] = updated
                    records.sort(key=lambda x: x.date, reverse=True)
                    return updated
        return None

    def drop(self, component_id: str) -> None:
        self._records.pop(component_id, None)

    def component_ids(self) -> list[str]:
        return list(self._records)
