"""Interaction record model for cdrlink.

InteractionRecord is the normalized input contract consumed by every analysis
component. Records are immutable once built; optional fields are None when
absent, never an empty string.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from cdrlink.utils.date_utils import parse_timestamp

# Placeholder strings that CDR exports use for "no value"
_NULL_TOKENS = {"", "n/a", "na", "null", "none", "-"}


class InteractionKind(str, Enum):
    """Kind of a single interaction, from the point of view of identifier_a."""

    CALL_OUT = "call_out"
    CALL_IN = "call_in"
    SMS_OUT = "sms_out"
    SMS_IN = "sms_in"
    PRESENCE = "presence"

    @property
    def is_call(self) -> bool:
        return self in (InteractionKind.CALL_OUT, InteractionKind.CALL_IN)

    @property
    def is_sms(self) -> bool:
        return self in (InteractionKind.SMS_OUT, InteractionKind.SMS_IN)

    @property
    def is_outgoing(self) -> bool:
        return self in (InteractionKind.CALL_OUT, InteractionKind.SMS_OUT)

    @property
    def is_incoming(self) -> bool:
        return self in (InteractionKind.CALL_IN, InteractionKind.SMS_IN)

    @classmethod
    def from_usage_type(cls, usage_type: Optional[str]) -> "InteractionKind":
        """Classify a raw CDR USAGE_TYPE string.

        Recognizes operator conventions such as MOC/MTC, SMSMO/SMSMT, VOICEIN,
        "CALL OUT" and "ICCALL". Canonical kind values ("call_out", ...) are
        accepted as well. Empty values classify as presence pings.

        Args:
            usage_type: Raw usage type string.

        Returns:
            The matching InteractionKind.

        Raises:
            ValueError: If the usage type cannot be classified.
        """
        if usage_type is None or not str(usage_type).strip():
            return cls.PRESENCE
        upper = str(usage_type).strip().upper()

        for kind in cls:
            if upper == kind.value.upper():
                return kind

        # SMS checks come first: "SMS" values never contain call markers
        if "SMSMO" in upper or upper == "SMO" or ("SMS" in upper and "OUT" in upper):
            return cls.SMS_OUT
        if "SMSMT" in upper or upper == "SMT" or ("SMS" in upper and "IN" in upper):
            return cls.SMS_IN
        if (
            "MTC" in upper
            or "VOICEIN" in upper
            or "CALL IN" in upper
            or "ICCALL" in upper
            or ("CALL" in upper and "INC" in upper)
            or ("VOICE" in upper and "INCOMING" in upper)
        ):
            return cls.CALL_IN
        if (
            "MOC" in upper
            or "VOICEOUT" in upper
            or "CALL OUT" in upper
            or "OGCALL" in upper
            or "CALL" in upper
            or "VOICE" in upper
        ):
            return cls.CALL_OUT
        if "SMS" in upper:
            return cls.SMS_OUT
        if upper in ("LOC", "LOCATION", "PRESENCE", "PING", "LU", "DATA", "GPRS"):
            return cls.PRESENCE
        raise ValueError(f"Unclassifiable usage type: {usage_type!r}")


def clean_optional(value: Any) -> Optional[str]:
    """Strip a raw field value, mapping blanks and "n/a"-style placeholders to None."""
    if value is None:
        return None
    text = str(value).strip()
    if text.lower() in _NULL_TOKENS:
        return None
    return text


@dataclass(frozen=True)
class InteractionRecord:
    """A single normalized call, SMS or tower-presence record."""

    identifier_a: Optional[str]            # Record owner (MSISDN / A-party)
    timestamp: Optional[datetime]          # None when missing or unparseable
    kind: InteractionKind = InteractionKind.PRESENCE
    identifier_b: Optional[str] = None     # Counterpart (B-party); None for presence pings
    duration_seconds: int = 0
    device_id: Optional[str] = None        # IMEI
    sim_id: Optional[str] = None           # IMSI
    location_id: Optional[str] = None      # "<LAC>-<CELL>"
    address: Optional[str] = None
    source_id: str = ""                    # Batch / file the record came from
    record_id: Optional[str] = None

    @property
    def parties(self) -> tuple:
        """Non-empty endpoints of this record, identifier_a first."""
        return tuple(p for p in (self.identifier_a, self.identifier_b) if p)

    @property
    def pair(self) -> Optional[frozenset]:
        """Unordered endpoint pair, or None unless both identifiers are present."""
        if self.identifier_a and self.identifier_b:
            return frozenset((self.identifier_a, self.identifier_b))
        return None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InteractionRecord":
        """Build a record from a normalized dict (e.g., loaded from JSON).

        Accepts either the attribute names of this class or the raw CDR column
        names (APARTY, BPARTY, START_DTTIME, USAGE_TYPE, CALL_DURATION, IMEI,
        IMSI, LAC/CELL_ID, ADDRESS). Unparseable timestamps become None.

        Raises:
            ValueError: If the interaction kind cannot be classified.
        """
        def first(*keys: str) -> Any:
            for key in keys:
                if key in data and data[key] is not None:
                    return data[key]
            return None

        location_id = clean_optional(first("location_id"))
        if location_id is None:
            lac = clean_optional(first("LAC", "LACSTARTA"))
            cell = clean_optional(first("CELL_ID", "CISTARTA"))
            if lac and cell:
                location_id = f"{lac}-{cell}"

        raw_kind = first("kind", "USAGE_TYPE")
        if isinstance(raw_kind, InteractionKind):
            kind = raw_kind
        else:
            kind = InteractionKind.from_usage_type(raw_kind)

        raw_duration = first("duration_seconds", "CALL_DURATION")
        try:
            duration = max(int(float(raw_duration)), 0) if raw_duration not in (None, "") else 0
        except (TypeError, ValueError):
            duration = 0

        return cls(
            identifier_a=clean_optional(first("identifier_a", "APARTY", "MSISDN")),
            identifier_b=clean_optional(first("identifier_b", "BPARTY", "OTHER_PARTY_NUMBER")),
            timestamp=parse_timestamp(first("timestamp", "START_DTTIME", "DATE_TIME")),
            kind=kind,
            duration_seconds=duration,
            device_id=clean_optional(first("device_id", "IMEI")),
            sim_id=clean_optional(first("sim_id", "IMSI")),
            location_id=location_id,
            address=clean_optional(first("address", "ADDRESS")),
            source_id=str(first("source_id", "sourceFileId") or ""),
            record_id=clean_optional(first("record_id", "id")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dict (inverse of from_dict)."""
        return {
            "identifier_a": self.identifier_a,
            "identifier_b": self.identifier_b,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "kind": self.kind.value,
            "duration_seconds": self.duration_seconds,
            "device_id": self.device_id,
            "sim_id": self.sim_id,
            "location_id": self.location_id,
            "address": self.address,
            "source_id": self.source_id,
            "record_id": self.record_id,
        }
