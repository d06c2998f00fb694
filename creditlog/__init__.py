"""
CreditLog: decode factoring credit messages (MSG01/02/05/07) from XML documents,
join each credit request with its seller reference, and export an enriched
credit log with USD amounts and handler assignment.
"""

from .builder import MessageBuilder
from .enricher import build_rows, enrich
from .exporter import Exporter
from .models import MessageKind, NormalizedRow, ReferenceMessage, TransactionMessage
from .parser import CreditLogParser, decode, decode_document
from .pipeline import BatchResult, process_batch
from .rates import Unavailable, UnavailableReason, fetch_rates, to_usd
from .rules import ClassificationRules, Handler, classify, load_rules
from .store import RecordStore

__all__ = [
    "CreditLogParser",
    "decode",
    "decode_document",
    "MessageKind",
    "ReferenceMessage",
    "TransactionMessage",
    "NormalizedRow",
    "MessageBuilder",
    "RecordStore",
    "build_rows",
    "enrich",
    "fetch_rates",
    "to_usd",
    "Unavailable",
    "UnavailableReason",
    "ClassificationRules",
    "Handler",
    "classify",
    "load_rules",
    "process_batch",
    "BatchResult",
    "Exporter",
]
