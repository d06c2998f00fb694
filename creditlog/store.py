from typing import Dict, List, Optional

from creditlog.models import (
    CorrelationKey,
    MessageKind,
    Record,
    ReferenceMessage,
    TransactionMessage,
)


class RecordStore:
    """
    Per-batch holder of decoded messages, indexed for the join step.

    Reference messages are keyed by (sender code, seller number) and a later
    message with the same key replaces the earlier one. Transactions are kept
    in arrival order, one list per kind.

    The store is written during decoding and read once during enrichment; it
    is not meant to be mutated from several threads at once.
    """

    TRANSACTION_ORDER = (
        MessageKind.ASSESSMENT_REQUEST,
        MessageKind.COVER_REQUEST,
        MessageKind.COVER_UPDATE,
    )

    def __init__(self):
        self.references: Dict[CorrelationKey, ReferenceMessage] = {}
        self.transactions: Dict[MessageKind, List[TransactionMessage]] = {
            kind: [] for kind in self.TRANSACTION_ORDER
        }

    def reset(self) -> None:
        """Drops everything collected by a previous batch."""
        self.references.clear()
        for messages in self.transactions.values():
            messages.clear()

    def put_reference(self, record: ReferenceMessage) -> None:
        self.references[record.key] = record

    def add_transaction(self, record: TransactionMessage) -> None:
        if record.kind not in self.transactions:
            raise ValueError(f"{record.kind.value} is not a transaction message kind")
        self.transactions[record.kind].append(record)

    def add(self, record: Record) -> None:
        """Routes a decoded record to the reference index or a transaction list."""
        if isinstance(record, ReferenceMessage):
            self.put_reference(record)
        else:
            self.add_transaction(record)

    def lookup_reference(self, key: CorrelationKey) -> Optional[ReferenceMessage]:
        return self.references.get(key)

    def all_transactions(self) -> List[TransactionMessage]:
        """
        All transactions: every MSG02 first, then MSG05, then MSG07, each in
        the order it was added.
        """
        combined: List[TransactionMessage] = []
        for kind in self.TRANSACTION_ORDER:
            combined.extend(self.transactions[kind])
        return combined

    def __len__(self) -> int:
        return len(self.references) + sum(len(m) for m in self.transactions.values())
