"""Incremental extraction of package events from the apt history log.

Each run resumes after the newest event already in the store:

    SEEKING ──(Start-Date newer than resume point)──> RECORDING
    RECORDING ──(End-Date with batch cap reached)──> CAPPED
    SEEKING | RECORDING ──(end of input)──> DONE
    any ──(parse or store failure)──> FAILED

A transaction is buffered until its End-Date (or the next Start-Date) and
then stored as one atomic unit, so a failure never leaves a partially
recorded transaction behind. A trailing transaction without End-Date may
still be written by apt; it is left for the next run. DONE and CAPPED both
finish by recomputing the installed-identity view from every stored
operation.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from ..exceptions import SwCollectorError
from ..logging_config import get_logger
from ..persistence.base import EventStore, IdentityNamer
from .log_source import LogSource
from .models import (
    OPERATION_LABELS,
    ExtractionResult,
    ExtractionState,
    Transaction,
)
from .parser import END_DATE, START_DATE, extract_packages, extract_timestamp, split_label


class ExtractionEngine:
    """Record new history transactions into an event store."""

    def __init__(
        self,
        store: EventStore,
        history_path: Optional[Union[str, Path]],
        namer: IdentityNamer,
        count: int = 0,
        logger: Optional[logging.Logger] = None,
    ):
        self.store = store
        self.history_path = history_path
        self.namer = namer
        self.count = count
        self.logger = logger or get_logger(__name__)

        self.state = ExtractionState.SEEKING
        self._pending: Optional[Transaction] = None
        self._result: Optional[ExtractionResult] = None
        self._last_time: Optional[str] = None
        self._equal_remaining = 0

    def run(self) -> ExtractionResult:
        """Extract one batch of new transactions and merge the inventory.

        Raises:
            LogUnavailable: history log missing or unreadable
            MalformedLine, TimestampParseError: log grammar violated
            StoreFailure: any store operation failed
        """
        self.state = ExtractionState.SEEKING
        self._pending = None
        self._last_time = None
        self._equal_remaining = 0
        try:
            with LogSource(self.history_path) as source:
                self._resume()
                for number, line in source.lines():
                    self._feed(number, line)
                    if self.state is ExtractionState.CAPPED:
                        break
                if self.state is not ExtractionState.CAPPED:
                    self._defer_unfinished()
                    self.state = ExtractionState.DONE
            self.store.merge_installed(self.namer)
        except SwCollectorError:
            self.state = ExtractionState.FAILED
            if self._result is not None:
                self._result.state = self.state
            raise

        result = self._result
        assert result is not None
        result.state = self.state
        self.logger.info(
            "Extraction %s: %d new events, %d operations, %d transactions skipped",
            self.state.value,
            result.events_added,
            result.operations_added,
            result.transactions_skipped,
        )
        return result

    @property
    def result(self) -> Optional[ExtractionResult]:
        """Progress of the current or last run, also after a failure."""
        return self._result

    # ── state machine ─────────────────────────────────────────────

    def _resume(self) -> None:
        last_eid, epoch, last_time = self.store.get_last_event()
        self._result = ExtractionResult(state=self.state, last_event_id=last_eid)
        if not last_eid or last_time is None:
            # Fresh store: nothing to skip
            self.state = ExtractionState.RECORDING
            self.logger.info("Last-Event: none, epoch = %d", epoch)
            return
        self._last_time = last_time
        self._equal_remaining = self.store.count_events_at(last_time)
        self.logger.info("Last-Event: %s, eid = %d, epoch = %d", last_time, last_eid, epoch)

    def _feed(self, number: int, line: str) -> None:
        if not line:
            return
        label, value = split_label(line, number)

        if label == START_DATE:
            timestamp = extract_timestamp(value, number)
            if self._pending is not None:
                self.logger.debug(
                    "Transaction at line %d has no End-Date", self._pending.line_number
                )
                self._flush()
                if self._cap_reached():
                    return
            if self.state is ExtractionState.SEEKING and self._is_new(timestamp):
                self.state = ExtractionState.RECORDING
            if self.state is ExtractionState.RECORDING:
                self._pending = Transaction(timestamp=timestamp, line_number=number)
            else:
                self._result.transactions_skipped += 1
        elif self.state is not ExtractionState.RECORDING or self._pending is None:
            # Old transaction body, or lines before the first Start-Date
            return
        elif label in OPERATION_LABELS:
            kind = OPERATION_LABELS[label]
            entries = extract_packages(value, kind, number)
            self._pending.add(kind, entries)
            self.logger.debug("  %s: %s", label, ", ".join(e.package for e in entries))
        elif label == END_DATE:
            self._flush()
            self._cap_reached()

    def _cap_reached(self) -> bool:
        if self.count > 0 and self._result.events_added >= self.count:
            self.state = ExtractionState.CAPPED
            self.logger.info("added %d events", self._result.events_added)
            return True
        return False

    def _defer_unfinished(self) -> None:
        """Drop a trailing transaction whose End-Date is not written yet.

        Its Start-Date is newer than the last stored event, so the next run
        records it once it is complete.
        """
        if self._pending is None:
            return
        self.logger.info(
            "Transaction at line %d (%s) has no End-Date yet, deferred",
            self._pending.line_number,
            self._pending.timestamp,
        )
        self._pending = None

    def _is_new(self, timestamp: str) -> bool:
        """Resume check for a transaction seen while seeking.

        Older timestamps are always skipped. Transactions sharing the resume
        timestamp are skipped as many times as the store already holds events
        with that timestamp.
        """
        if self._last_time is None or timestamp > self._last_time:
            return True
        if timestamp == self._last_time:
            if self._equal_remaining > 0:
                self._equal_remaining -= 1
                return False
            return True
        return False

    def _flush(self) -> None:
        """Store the buffered transaction, if any."""
        transaction = self._pending
        if transaction is None:
            return
        self._pending = None
        event = self.store.record_transaction(transaction.timestamp, transaction.operations)
        result = self._result
        result.events_added += 1
        result.operations_added += len(transaction.operations)
        result.event_ids.append(event.id)
        self.logger.debug(
            "Start-Date: %s, eid = %d, epoch = %d", event.timestamp, event.id, event.epoch
        )
