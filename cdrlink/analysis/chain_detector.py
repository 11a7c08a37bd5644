"""Conversation chain detection for cdrlink.

A conversation chain is a run of interactions between one unordered pair of
identifiers in which each interaction follows the previous one within a
maximum gap. Records of other pairs never interrupt a chain; a same-pair gap
above the threshold ends it.

Pure functions — no I/O or external calls.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, FrozenSet, Iterable, List, Optional

from config.defaults import CANCEL_CHECK_INTERVAL, CHAIN_MAX_GAP_MINUTES, CHAIN_MIN_LENGTH
from cdrlink.models.chains import ChainEntry, ConversationChain
from cdrlink.models.records import InteractionRecord
from cdrlink.utils.cancellation import CancellationToken, checked, checkpoint
from cdrlink.utils.date_utils import to_epoch_seconds

logger = logging.getLogger(__name__)


def detect_chains(
    records: Iterable[InteractionRecord],
    max_gap_minutes: float = CHAIN_MAX_GAP_MINUTES,
    min_chain_length: int = CHAIN_MIN_LENGTH,
    cancel_token: Optional[CancellationToken] = None,
    check_interval: int = CANCEL_CHECK_INTERVAL,
) -> List[ConversationChain]:
    """Detect conversation chains between pairs of identifiers.

    Records are stably sorted by timestamp. Starting from each unconsumed
    record, later records of the same pair are accepted while their gap to
    the last accepted record lies within ``[0, max_gap_minutes]``. Accepted
    records are consumed only when the chain reaches ``min_chain_length``, so
    emitted chains are disjoint.

    Args:
        records: Interaction records. Records lacking either identifier or a
            timestamp are skipped.
        max_gap_minutes: Maximum gap (inclusive) between consecutive entries.
        min_chain_length: Minimum number of entries for a chain to be emitted.
        cancel_token: Optional token checked periodically during the scan.
        check_interval: Records between cancellation checks.

    Returns:
        ConversationChain list sorted by depth descending, then start time.

    Raises:
        ValueError: If ``max_gap_minutes`` is negative or ``min_chain_length`` < 2.
    """
    if max_gap_minutes < 0:
        raise ValueError(f"max_gap_minutes must be >= 0, got {max_gap_minutes}")
    if min_chain_length < 2:
        raise ValueError(f"min_chain_length must be >= 2, got {min_chain_length}")

    usable: List[InteractionRecord] = []
    skipped = 0
    for record in checked(records, cancel_token, check_interval):
        if record.pair is None or record.timestamp is None:
            skipped += 1
            continue
        usable.append(record)
    if skipped:
        logger.debug("Chain detection: skipped %d records without pair or timestamp", skipped)

    # sorted() is stable, so equal timestamps keep their input order
    usable = sorted(usable, key=lambda r: to_epoch_seconds(r.timestamp))

    # Other pairs never affect a chain, so each pair can be walked on its own
    by_pair: Dict[FrozenSet[str], List[InteractionRecord]] = defaultdict(list)
    for record in usable:
        by_pair[record.pair].append(record)

    chains: List[ConversationChain] = []
    for pair_records in by_pair.values():
        checkpoint(cancel_token)
        consumed = [False] * len(pair_records)
        for start in range(len(pair_records)):
            if consumed[start]:
                continue
            members = [start]
            last = pair_records[start].timestamp
            for j in range(start + 1, len(pair_records)):
                if consumed[j]:
                    continue
                gap = _gap_minutes(last, pair_records[j].timestamp)
                if gap > max_gap_minutes:
                    break
                if gap < 0:
                    continue
                members.append(j)
                last = pair_records[j].timestamp
            if len(members) < min_chain_length:
                continue
            for j in members:
                consumed[j] = True
            chains.append(_make_chain([pair_records[j] for j in members]))

    chains.sort(
        key=lambda c: (-c.depth, to_epoch_seconds(c.start_time), c.participants)
    )
    logger.info(
        "Chain detection: %d chains from %d usable records (max_gap=%.1f min)",
        len(chains),
        len(usable),
        max_gap_minutes,
    )
    return chains


def _make_chain(members: List[InteractionRecord]) -> ConversationChain:
    entries: List[ChainEntry] = []
    for i, record in enumerate(members):
        if record.kind.is_incoming:
            caller, receiver = record.identifier_b, record.identifier_a
        else:
            caller, receiver = record.identifier_a, record.identifier_b
        gap = None
        if i + 1 < len(members):
            gap = round(_gap_minutes(record.timestamp, members[i + 1].timestamp), 4)
        entries.append(
            ChainEntry(
                caller=caller,
                receiver=receiver,
                timestamp=record.timestamp,
                duration_seconds=record.duration_seconds,
                kind=record.kind,
                record_id=record.record_id,
                address=record.address,
                gap_to_next_minutes=gap,
            )
        )

    start, end = members[0].timestamp, members[-1].timestamp
    participants = tuple(sorted(members[0].pair))
    return ConversationChain(
        participants=participants,
        entries=entries,
        start_time=start,
        end_time=end,
        total_duration_seconds=sum(r.duration_seconds for r in members),
        timespan_minutes=round(_gap_minutes(start, end), 4),
    )


def _gap_minutes(earlier, later) -> float:
    # Epoch arithmetic tolerates a mix of naive and aware timestamps
    return (to_epoch_seconds(later) - to_epoch_seconds(earlier)) / 60.0
