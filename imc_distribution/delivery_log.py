"""Persistent delivery log keyed by distribution fingerprint.

Stands in for the idempotency store the distributor consults before posting:
``get`` answers "was this exact event identity already distributed to this
channel", ``set_if_absent`` records a success atomically. Records are kept in
a JSON file so repeated CLI runs share the same history.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import dataclass, asdict
from datetime import datetime
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass
class DeliveryRecord:
    """A successful distribution of one event identity to one channel."""
    fingerprint: str
    channel: str
    external_id: str = ""
    url: str = ""
    title: str = ""
    used_fallback: bool = False
    timestamp: str = ""

    def __post_init__(self) -> None:
        if not self.timestamp:
            self.timestamp = datetime.now().isoformat()


class IdempotencyStore(Protocol):
    def get(self, fingerprint: str) -> DeliveryRecord | None:
        ...

    def set_if_absent(self, fingerprint: str, record: DeliveryRecord) -> bool:
        ...


class DeliveryLog:
    """JSON file-backed idempotency store; in-memory when no path is given."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._lock = threading.Lock()
        self._records: dict[str, DeliveryRecord] = {}
        if path and path.exists():
            self._load()

    def _load(self) -> None:
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))  # type: ignore[union-attr]
            records = [DeliveryRecord(**rec) for rec in data.get("records", [])]
        except (json.JSONDecodeError, TypeError, AttributeError) as exc:
            logger.warning("Ignoring unreadable delivery log %s: %s", self._path, exc)
            records = []
        self._records = {r.fingerprint: r for r in records}

    def _save(self) -> None:
        if not self._path:
            return
        data = {"records": [asdict(r) for r in self._records.values()]}
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(data, indent=2), encoding="utf-8")
        os.replace(str(tmp), str(self._path))

    def get(self, fingerprint: str) -> DeliveryRecord | None:
        with self._lock:
            return self._records.get(fingerprint)

    def set_if_absent(self, fingerprint: str, record: DeliveryRecord) -> bool:
        """Store ``record`` unless the fingerprint is already present."""
        with self._lock:
            if fingerprint in self._records:
                return False
            self._records[fingerprint] = record
            try:
                self._save()
            except Exception:
                del self._records[fingerprint]
                raise
            return True

    def get_by_channel(self, channel: str) -> list[DeliveryRecord]:
        with self._lock:
            return [r for r in self._records.values() if r.channel == channel]

    @property
    def total_records(self) -> int:
        with self._lock:
            return len(self._records)

    @property
    def all_records(self) -> list[DeliveryRecord]:
        with self._lock:
            return list(self._records.values())
