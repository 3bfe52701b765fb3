"""Whitelist snapshot: which vessels are exempt, looked up by identity.

The host builds a snapshot from its whitelist store and hands it to each
batch run. Refreshing means building a new snapshot; a run never sees a
snapshot change underneath it.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from parkguard.models import VesselSample


@dataclass(frozen=True)
class ExemptionEntry:
    uuid: str = ""
    mmsi: str = ""
    imo: str = ""
    name: str = ""
    reason: str = ""
    added_by: str = ""


class ExemptionSnapshot:
    """Immutable identity → ExemptionEntry lookup."""

    def __init__(self, index: Mapping[str, ExemptionEntry],
                 loaded_at: float | None = None):
        self._index = MappingProxyType(dict(index))
        self._loaded_at = time.monotonic() if loaded_at is None else loaded_at

    @classmethod
    def from_entries(cls, entries: Iterable[ExemptionEntry]) -> ExemptionSnapshot:
        index: dict[str, ExemptionEntry] = {}
        for entry in entries:
            if entry.uuid:
                index[entry.uuid] = entry
            if entry.mmsi:
                index["mmsi:" + entry.mmsi] = entry
            if entry.imo:
                index["imo:" + entry.imo] = entry
        return cls(index)

    @classmethod
    def empty(cls) -> ExemptionSnapshot:
        return cls({})

    def __len__(self) -> int:
        return len(set(map(id, self._index.values())))

    @property
    def age_seconds(self) -> float:
        return time.monotonic() - self._loaded_at

    def is_stale(self, max_age_seconds: float = 300.0) -> bool:
        return self.age_seconds > max_age_seconds

    @classmethod
    def refreshed(cls, entries: Iterable[ExemptionEntry]) -> ExemptionSnapshot:
        """Alias of ``from_entries`` for hosts swapping in a reloaded whitelist."""
        return cls.from_entries(entries)

    def lookup(self, sample: VesselSample) -> Optional[ExemptionEntry]:
        """Match by uuid, then MMSI, then IMO."""
        if sample.uuid and sample.uuid in self._index:
            return self._index[sample.uuid]
        if sample.mmsi and "mmsi:" + sample.mmsi in self._index:
            return self._index["mmsi:" + sample.mmsi]
        if sample.imo and "imo:" + sample.imo in self._index:
            return self._index["imo:" + sample.imo]
        return None

    def is_exempt(self, sample: VesselSample) -> bool:
        return self.lookup(sample) is not None
