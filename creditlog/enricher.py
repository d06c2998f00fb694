from typing import Dict, List, Optional, Tuple

from creditlog.logger import setup_logger
from creditlog.models import MessageKind, NormalizedRow, ReferenceMessage, TransactionMessage
from creditlog.rates import Conversion, RateTable, Unavailable, UnavailableReason, to_usd
from creditlog.regions import country_code_from_factor, region_name
from creditlog.rules import ClassificationRules, classify, DEFAULT_RULES
from creditlog.store import RecordStore

logger = setup_logger(__name__)

# Per kind: (amount, currency, term) attribute names on the details payload.
PAYMENT_FIELDS: Dict[MessageKind, Tuple[str, str, str]] = {
    MessageKind.ASSESSMENT_REQUEST: ("amount", "currency", "net_pmt_terms"),
    MessageKind.COVER_REQUEST: ("amount", "currency", "net_pmt_terms"),
    MessageKind.COVER_UPDATE: ("new_amount", "currency", "long_credit_period_days"),
}

# MSG07 buyers carry no DirectContact flag.
_CONTACT_KINDS = {MessageKind.ASSESSMENT_REQUEST, MessageKind.COVER_REQUEST}


def format_value(value: object) -> str:
    """Renders a decoded value as a table cell."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_conversion(conversion: Conversion) -> str:
    if conversion is None:
        return ""
    if isinstance(conversion, Unavailable):
        return conversion.placeholder
    return f"{conversion:.2f}"


def classification_amount(conversion: Conversion) -> object:
    """
    The amount a handler is chosen on. When only the exchange rate was
    missing, the unconverted amount is used as is.
    """
    if isinstance(conversion, Unavailable) and conversion.reason is UnavailableReason.RATE_NOT_FOUND:
        return conversion.amount
    return conversion


def payment_fields(message: TransactionMessage) -> Tuple[object, Optional[str], object]:
    """
    Selects the requested amount, its currency and the term from the block
    that holds them for this message kind.
    """
    amount_attr, currency_attr, term_attr = PAYMENT_FIELDS[message.kind]
    details = message.details
    return (
        getattr(details, amount_attr),
        getattr(details, currency_attr),
        getattr(details, term_attr),
    )


def enrich(
    message: TransactionMessage,
    reference: Optional[ReferenceMessage],
    rates: Optional[RateTable],
    rules: ClassificationRules = DEFAULT_RULES,
) -> NormalizedRow:
    """
    Builds the output row for one transaction.

    The partner country is taken from the first two characters of the export
    factor code; the seller country is reported as the partner country.
    """
    amount, currency, term = payment_fields(message)
    partner = message.export_factor
    country_code = country_code_from_factor(partner.factor_code)
    partner_country = region_name(country_code)

    conversion = to_usd(amount, currency, rates)
    handler = classify(country_code, classification_amount(conversion), partner.factor_name, rules)

    contact_allowed = "No"
    if message.kind in _CONTACT_KINDS and message.buyer.direct_contact == 1:
        contact_allowed = "Yes"

    date_time = message.msg_info.date_time

    return NormalizedRow(
        request_date=message.request_date or "",
        date_received=date_time[:10] if date_time else "",
        buyer_name=message.buyer.buyer_name or "",
        buyer_country=message.buyer.country or "",
        seller_name=message.seller.seller_name or "",
        seller_country=partner_country,
        partner_name=partner.factor_name or "",
        partner_country=partner_country,
        message_type=message.kind.digit,
        amount_requested=format_value(amount),
        currency=currency or "",
        term=format_value(term),
        contact_allowed=contact_allowed,
        incoming_comment=message.msg_text,
        handler=rules.label(handler),
        industry_product=(reference.seller_details.business_product or "") if reference else "",
        partner_code=partner.factor_code or "",
        amount_usd=format_conversion(conversion),
    )


def build_rows(
    store: RecordStore,
    rates: Optional[RateTable],
    rules: Optional[ClassificationRules] = None,
) -> List[NormalizedRow]:
    """
    Joins every stored transaction with its reference message and returns
    the enriched rows sorted by date received.

    Args:
        store: The decoded messages of the batch.
        rates: The batch's rate table, or None if it could not be fetched.
        rules: Classification table; the built-in table when omitted.

    Returns:
        List[NormalizedRow]: One row per transaction. Rows with the same date
        keep the store's iteration order.
    """
    rules = rules or DEFAULT_RULES
    rows = []
    unmatched = 0
    for message in store.all_transactions():
        reference = store.lookup_reference(message.key)
        if reference is None:
            unmatched += 1
        rows.append(enrich(message, reference, rates, rules))

    if unmatched:
        logger.info(f"{unmatched} of {len(rows)} transaction(s) have no matching MSG01")

    rows.sort(key=lambda row: row.date_received)
    return rows
