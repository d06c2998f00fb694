"""
Batch processing: decode a set of documents, collect their messages and turn
the transactions into enriched credit log rows.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from creditlog.config import get_settings
from creditlog.encoding import DEFAULT_FALLBACK_ENCODING
from creditlog.enricher import build_rows
from creditlog.exceptions import DecodeError
from creditlog.logger import setup_logger
from creditlog.models import NormalizedRow
from creditlog.parser import DocumentResult, decode_document
from creditlog.rates import RateTable
from creditlog.rules import ClassificationRules
from creditlog.store import RecordStore

logger = setup_logger(__name__)

Document = Tuple[str, bytes]


@dataclass
class BatchResult:
    """
    Everything one processing run produced.

    Attributes:
        rows: The enriched rows, sorted by date received.
        errors: Decoding errors of all documents, for diagnostics.
        store: The decoded messages the rows were built from.
        documents: Per-document decoding outcome in input order.
    """

    rows: List[NormalizedRow] = field(default_factory=list)
    errors: List[DecodeError] = field(default_factory=list)
    store: RecordStore = field(default_factory=RecordStore)
    documents: List[DocumentResult] = field(default_factory=list)


def read_documents(paths: Iterable[Union[str, Path]]) -> List[Document]:
    """Reads each file as raw bytes, named by its file name."""
    documents = []
    for path in paths:
        path = Path(path)
        documents.append((path.name, path.read_bytes()))
    return documents


def decode_documents(
    documents: Sequence[Document],
    max_workers: int = 1,
    fallback_encoding: str = DEFAULT_FALLBACK_ENCODING,
) -> List[DocumentResult]:
    """
    Decodes documents independently, in parallel when max_workers > 1.

    Decoding shares no state between documents. Results are returned in input
    order once every document has finished.
    """
    if max_workers <= 1 or len(documents) <= 1:
        return [decode_document(data, name, fallback_encoding) for name, data in documents]

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [
            executor.submit(decode_document, data, name, fallback_encoding)
            for name, data in documents
        ]
        return [future.result() for future in futures]


def process_batch(
    documents: Sequence[Document],
    rates: Optional[RateTable] = None,
    rules: Optional[ClassificationRules] = None,
    store: Optional[RecordStore] = None,
    max_workers: Optional[int] = None,
    fallback_encoding: Optional[str] = None,
) -> BatchResult:
    """
    Runs one batch from raw documents to sorted rows.

    The rate table is an input: fetch it beforehand (see
    ``creditlog.rates.fetch_rates``) and pass None when it is unavailable.
    A passed-in store is reset first, so nothing from an earlier batch leaks
    into this one.
    """
    settings = get_settings()
    if max_workers is None:
        max_workers = settings.max_workers
    if fallback_encoding is None:
        fallback_encoding = settings.fallback_encoding

    store = store if store is not None else RecordStore()
    store.reset()

    results = decode_documents(documents, max_workers, fallback_encoding)

    batch = BatchResult(store=store, documents=results)
    for result in results:
        for record in result.records:
            store.add(record)
        batch.errors.extend(result.errors)

    batch.rows = build_rows(store, rates, rules)
    logger.info(
        f"Processed {len(documents)} document(s): {len(batch.rows)} row(s), "
        f"{len(store.references)} reference message(s), {len(batch.errors)} error(s)"
    )
    return batch
