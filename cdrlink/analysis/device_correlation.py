"""Device / SIM correlation for cdrlink.

Links devices (IMEI) to the SIMs (IMSI) observed in them and vice versa, and
replays each device's and each SIM's timeline to detect swaps: a SIM moved
into a different handset, or a handset fitted with a different SIM.

Pure functions — no I/O or external calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Set, Tuple

from config.defaults import CANCEL_CHECK_INTERVAL
from cdrlink.models.devices import (
    ChangeEvent,
    ContactedParty,
    CorrelationResult,
    CounterpartLink,
    DeviceLink,
    SimLink,
)
from cdrlink.models.records import InteractionRecord
from cdrlink.utils.cancellation import CancellationToken, checked, checkpoint
from cdrlink.utils.date_utils import to_epoch_seconds

logger = logging.getLogger(__name__)


@dataclass
class _LinkAccumulator:
    count: int = 0
    first_seen: Optional[datetime] = None
    last_seen: Optional[datetime] = None
    id_type: str = "IMSI"

    def observe(self, ts: Optional[datetime]) -> None:
        self.count += 1
        if ts is None:
            return
        if self.first_seen is None or to_epoch_seconds(ts) < to_epoch_seconds(self.first_seen):
            self.first_seen = ts
        if self.last_seen is None or to_epoch_seconds(ts) > to_epoch_seconds(self.last_seen):
            self.last_seen = ts


@dataclass
class _DeviceAccumulator:
    totals: _LinkAccumulator = field(default_factory=_LinkAccumulator)
    sims: Dict[str, _LinkAccumulator] = field(default_factory=dict)
    contacted: Dict[str, Tuple[int, List[str]]] = field(default_factory=dict)
    usage_dates: Set[date] = field(default_factory=set)
    # (timestamp, sim, record_id) for records carrying both a timestamp and a SIM
    history: List[Tuple[datetime, str, Optional[str]]] = field(default_factory=list)


@dataclass
class _SimAccumulator:
    totals: _LinkAccumulator = field(default_factory=_LinkAccumulator)
    devices: Dict[str, _LinkAccumulator] = field(default_factory=dict)
    history: List[Tuple[datetime, str, Optional[str]]] = field(default_factory=list)


def _sim_identity(record: InteractionRecord, fallback: bool) -> Tuple[Optional[str], str]:
    if record.sim_id:
        return record.sim_id, "IMSI"
    if fallback and record.identifier_a:
        return record.identifier_a, "MSISDN"
    return None, "IMSI"


def correlate_devices(
    records: Iterable[InteractionRecord],
    sim_fallback_to_msisdn: bool = False,
    cancel_token: Optional[CancellationToken] = None,
    check_interval: int = CANCEL_CHECK_INTERVAL,
) -> CorrelationResult:
    """Correlate devices with SIMs and detect change events in both directions.

    Args:
        records: Interaction records. Records without a timestamp still count
            toward the link maps but are excluded from change history.
        sim_fallback_to_msisdn: Use identifier_a as the SIM identity (tagged
            "MSISDN") when a record carries no sim_id.
        cancel_token: Optional token checked periodically during the scan.
        check_interval: Records between cancellation checks.

    Returns:
        CorrelationResult with every device and SIM, unfiltered.
    """
    devices: Dict[str, _DeviceAccumulator] = {}
    sims: Dict[str, _SimAccumulator] = {}

    for record in checked(records, cancel_token, check_interval):
        ts = record.timestamp
        sim, sim_type = _sim_identity(record, sim_fallback_to_msisdn)
        device = record.device_id

        if device:
            dev = devices.get(device)
            if dev is None:
                dev = devices[device] = _DeviceAccumulator()
            dev.totals.observe(ts)
            if ts is not None:
                dev.usage_dates.add(ts.date())
            if sim:
                link = dev.sims.get(sim)
                if link is None:
                    link = dev.sims[sim] = _LinkAccumulator(id_type=sim_type)
                link.observe(ts)
                if ts is not None:
                    dev.history.append((ts, sim, record.record_id))
            if record.identifier_a and record.identifier_b:
                count, via = dev.contacted.get(record.identifier_b, (0, []))
                if sim and sim not in via:
                    via.append(sim)
                dev.contacted[record.identifier_b] = (count + 1, via)

        if sim:
            acc = sims.get(sim)
            if acc is None:
                acc = sims[sim] = _SimAccumulator(totals=_LinkAccumulator(id_type=sim_type))
            acc.totals.observe(ts)
            if device:
                link = acc.devices.get(device)
                if link is None:
                    link = acc.devices[device] = _LinkAccumulator()
                link.observe(ts)
                if ts is not None:
                    acc.history.append((ts, device, record.record_id))

    checkpoint(cancel_token)

    device_links = [
        DeviceLink(
            device_id=device_id,
            record_count=dev.totals.count,
            first_seen=dev.totals.first_seen,
            last_seen=dev.totals.last_seen,
            sims=_counterparts(dev.sims),
            change_events=_change_events(dev.history),
            contacted_parties=sorted(
                (
                    ContactedParty(identifier=party, count=count, via_sims=sorted(via))
                    for party, (count, via) in dev.contacted.items()
                ),
                key=lambda p: (-p.count, p.identifier),
            ),
            usage_dates=sorted(dev.usage_dates),
        )
        for device_id, dev in devices.items()
    ]
    device_links.sort(key=lambda d: (-d.record_count, d.device_id))

    sim_links = [
        SimLink(
            sim_id=sim_id,
            id_type=acc.totals.id_type,
            record_count=acc.totals.count,
            first_seen=acc.totals.first_seen,
            last_seen=acc.totals.last_seen,
            devices=_counterparts(acc.devices),
            change_events=_change_events(acc.history),
        )
        for sim_id, acc in sims.items()
    ]
    sim_links.sort(
        key=lambda s: (-len(s.change_events), -len(s.devices), -s.record_count, s.sim_id)
    )

    result = CorrelationResult(devices=device_links, sims=sim_links)
    logger.info(
        "Device correlation: %d devices (%d multi-SIM), %d SIMs (%d multi-device)",
        len(device_links),
        len(result.multi_sim_devices()),
        len(sim_links),
        len(result.multi_device_sims()),
    )
    return result


def _counterparts(links: Dict[str, _LinkAccumulator]) -> List[CounterpartLink]:
    result = [
        CounterpartLink(
            counterpart_id=cid,
            count=acc.count,
            first_seen=acc.first_seen,
            last_seen=acc.last_seen,
            id_type=acc.id_type,
        )
        for cid, acc in links.items()
    ]
    result.sort(key=lambda c: (-c.count, c.counterpart_id))
    return result


def _change_events(history: List[Tuple[datetime, str, Optional[str]]]) -> List[ChangeEvent]:
    """Walk a timeline in time order and emit an event whenever the value changes."""
    events: List[ChangeEvent] = []
    previous: Optional[str] = None
    for ts, value, record_id in sorted(history, key=lambda h: to_epoch_seconds(h[0])):
        if previous is not None and value != previous:
            events.append(
                ChangeEvent(
                    timestamp=ts,
                    previous_value=previous,
                    new_value=value,
                    record_id=record_id,
                )
            )
        previous = value
    return events
