from typing import Callable, List, Optional, Tuple

from paystream.core.utils import now_ms
from paystream.models.payment_schemas import PaymentDraft, PaymentMethod, PaymentRecord


# name, method, amount, minutes ago
DEMO_PAYMENTS = [
    ("Priya N.", PaymentMethod.QR, 15, 25),
    ("Aman S.", PaymentMethod.APPLE_PAY, 15, 55),
    ("Neha R.", PaymentMethod.BANK_TRANSFER, 20, 90),
]


class PaymentLedger:
    """Append-only in-memory store of payment confirmations"""

    def __init__(self, max_limit: int = 200, clock: Callable[[], int] = now_ms):
        self.max_limit = max_limit
        self._clock = clock
        self._entries: List[Tuple[int, PaymentRecord]] = []
        self._last_ts = 0

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, draft: PaymentDraft) -> PaymentRecord:
        """
        Stamp a validated payment with its creation time and store it.

        Timestamps never go backwards, even if the wall clock does.

        Args:
            draft: Validated payment without a timestamp

        Returns:
            The stored record
        """
        ts = max(self._clock(), self._last_ts)
        record = PaymentRecord(ts=ts, **draft.model_dump())
        self._store(record)
        return record

    def restore(self, record: PaymentRecord) -> PaymentRecord:
        """Store a record that already carries its timestamp"""
        self._store(record)
        return record

    def recent(self, limit: Optional[int] = None) -> List[PaymentRecord]:
        """
        Most recent payments first.

        Args:
            limit: Maximum number of records; clamped to max_limit,
                None means max_limit

        Returns:
            Records sorted by timestamp descending, later insertions first on ties
        """
        if limit is None or limit > self.max_limit:
            limit = self.max_limit
        limit = max(limit, 0)
        ordered = sorted(self._entries, key=lambda entry: (entry[1].ts, entry[0]), reverse=True)
        return [record for _, record in ordered[:limit]]

    def _store(self, record: PaymentRecord):
        self._entries.append((len(self._entries), record))
        self._last_ts = max(self._last_ts, record.ts)


def seed_demo_payments(ledger: PaymentLedger, now: Optional[int] = None):
    """Load the sample payments shown on a fresh install"""
    now = now_ms() if now is None else now
    for name, method, amount, minutes_ago in DEMO_PAYMENTS:
        ledger.restore(PaymentRecord(
            name=name,
            method=method,
            amount=amount,
            ts=now - minutes_ago * 60_000,
        ))
