"""Device / SIM correlation data models for cdrlink.

A DeviceLink describes one IMEI and the SIMs seen in it; a SimLink is the
mirror view of one SIM and the devices it was used in.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import List, Optional

from cdrlink.utils.date_utils import to_epoch_seconds


@dataclass
class CounterpartLink:
    """A device-SIM pairing observed ``count`` times."""

    counterpart_id: str
    count: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    id_type: str = "IMSI"   # For SIM counterparts: "IMSI" or "MSISDN" (fallback identity)


@dataclass
class ChangeEvent:
    """The tracked counterpart changed between two consecutive records."""

    timestamp: datetime
    previous_value: str
    new_value: str
    record_id: Optional[str] = None


@dataclass
class ContactedParty:
    """A counterpart contacted from a device, and through which SIMs."""

    identifier: str
    count: int = 0
    via_sims: List[str] = field(default_factory=list)


@dataclass
class DeviceLink:
    """One device (IMEI) and its SIM history."""

    device_id: str
    record_count: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    sims: List[CounterpartLink] = field(default_factory=list)
    change_events: List[ChangeEvent] = field(default_factory=list)
    contacted_parties: List[ContactedParty] = field(default_factory=list)
    usage_dates: List[date] = field(default_factory=list)

    @property
    def is_multi_linked(self) -> bool:
        return len(self.sims) > 1


@dataclass
class SimLink:
    """One SIM and its device history."""

    sim_id: str
    id_type: str = "IMSI"
    record_count: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    devices: List[CounterpartLink] = field(default_factory=list)
    change_events: List[ChangeEvent] = field(default_factory=list)

    @property
    def is_multi_linked(self) -> bool:
        return len(self.devices) > 1


@dataclass
class CorrelationResult:
    """Complete device/SIM correlation output, unfiltered."""

    devices: List[DeviceLink] = field(default_factory=list)
    sims: List[SimLink] = field(default_factory=list)

    @property
    def device_changes(self) -> List[ChangeEvent]:
        """All SIM-change events across devices, in time order."""
        events = [e for d in self.devices for e in d.change_events]
        return sorted(events, key=lambda e: to_epoch_seconds(e.timestamp))

    @property
    def sim_changes(self) -> List[ChangeEvent]:
        """All device-change events across SIMs, in time order."""
        events = [e for s in self.sims for e in s.change_events]
        return sorted(events, key=lambda e: to_epoch_seconds(e.timestamp))

    def multi_sim_devices(self) -> List[DeviceLink]:
        """Devices that carried more than one distinct SIM."""
        return [d for d in self.devices if d.is_multi_linked]

    def multi_device_sims(self) -> List[SimLink]:
        """SIMs that were used in more than one distinct device."""
        return [s for s in self.sims if s.is_multi_linked]
