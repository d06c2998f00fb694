import math
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

from lxml import etree

from creditlog.encoding import DEFAULT_FALLBACK_ENCODING, decode_bytes, strip_declaration
from creditlog.exceptions import DecodeError, MalformedInput, MissingSection
from creditlog.logger import setup_logger
from creditlog.models import (
    AssessmentDetails,
    Buyer,
    CoverDetails,
    CoverUpdateDetails,
    FactorRef,
    MessageInfo,
    MessageKind,
    Number,
    Record,
    ReferenceMessage,
    Seller,
    SellerDetails,
    SellerRef,
    TransactionMessage,
)

logger = setup_logger(__name__)

Fragment = Union[bytes, str, Any]

# Blocks every decoder needs before it reads a single leaf.
_ENVELOPE_SECTIONS = ("MsgInfo", "EF", "IF", "Seller")

REQUIRED_SECTIONS: Dict[MessageKind, tuple] = {
    MessageKind.REFERENCE: _ENVELOPE_SECTIONS + ("SellerDetails",),
    MessageKind.ASSESSMENT_REQUEST: _ENVELOPE_SECTIONS + ("Buyer", "PrelCreditAssessDetails"),
    MessageKind.COVER_REQUEST: _ENVELOPE_SECTIONS + ("Buyer", "CreditCoverDetails"),
    MessageKind.COVER_UPDATE: _ENVELOPE_SECTIONS
    + ("Buyer", "CurrentCreditCoverDetails", "NewCreditCoverDetails"),
}

_number_pattern = re.compile(r"\A[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?\Z")
_integer_pattern = re.compile(r"\A[+-]?\d+\Z")


def _local_name(element: Any) -> Optional[str]:
    tag = element.tag
    if not isinstance(tag, str):
        return None  # comments and processing instructions
    return tag.split("}", 1)[1] if "}" in tag else tag


def _find(element: Any, name: str) -> Any:
    """
    Returns the first descendant of `element` with the given local name,
    regardless of namespace, or None.
    """
    if element is None:
        return None
    nodes = element.xpath(f".//*[local-name()='{name}']")
    return nodes[0] if nodes else None


def _get_text_from(element: Any, name: str) -> Optional[str]:
    node = _find(element, name)
    if node is None:
        return None
    text = "".join(node.itertext()).strip()
    return text if text else None


def to_number(text: Optional[str]) -> Optional[Number]:
    """
    Numeric-or-null conversion used for every numeric leaf.

    Empty or absent text gives None. Text that is not a plain decimal number
    also gives None instead of raising.
    """
    if text is None:
        return None
    text = text.strip()
    if not text or not _number_pattern.match(text):
        return None
    if _integer_pattern.match(text):
        return int(text)
    value = float(text)
    return value if math.isfinite(value) else None


def _get_number_from(element: Any, name: str) -> Optional[Number]:
    return to_number(_get_text_from(element, name))


def _get_mapping_from(element: Any, name: str) -> Dict[str, str]:
    """
    Flattens an optional free-form block (bank details, own risk) into a
    mapping of child tag to text. An absent block yields an empty mapping.
    """
    node = _find(element, name)
    if node is None:
        return {}
    mapping = {}
    for child in node:
        child_name = _local_name(child)
        if child_name is None:
            continue
        mapping[child_name] = "".join(child.itertext()).strip()
    return mapping


def _parse_xml(text: Union[bytes, str]) -> Any:
    parser = etree.XMLParser(resolve_entities=False, no_network=True)
    try:
        if isinstance(text, str):
            return etree.fromstring(strip_declaration(text).encode("utf-8"), parser)
        return etree.fromstring(text, parser)
    except (etree.XMLSyntaxError, ValueError) as e:
        raise MalformedInput(f"Failed to parse XML: {e}") from e


def _message_root(kind: MessageKind, fragment: Fragment) -> Any:
    if isinstance(fragment, (bytes, str)):
        fragment = _parse_xml(fragment)
    if _local_name(fragment) == kind.value:
        return fragment
    root = _find(fragment, kind.value)
    if root is None:
        raise MissingSection(kind.value, kind.value)
    return root


def _validate_sections(kind: MessageKind, root: Any) -> Dict[str, Any]:
    sections = {}
    for name in REQUIRED_SECTIONS[kind]:
        node = _find(root, name)
        if node is None:
            raise MissingSection(name, kind.value)
        sections[name] = node
    return sections


def _parse_msg_info(el: Any) -> MessageInfo:
    return MessageInfo(
        sender_code=_get_text_from(el, "SenderCode"),
        receiver_code=_get_text_from(el, "ReceiverCode"),
        created_by=_get_text_from(el, "CreatedBy"),
        sequence_nr=_get_number_from(el, "SequenceNr"),
        date_time=_get_text_from(el, "DateTime"),
        status=_get_number_from(el, "Status"),
    )


def _parse_factor(el: Any) -> FactorRef:
    return FactorRef(
        factor_code=_get_text_from(el, "FactorCode"),
        factor_name=_get_text_from(el, "FactorName"),
    )


def _parse_seller_ref(el: Any) -> SellerRef:
    return SellerRef(
        seller_nr=_get_text_from(el, "SellerNr"),
        seller_name=_get_text_from(el, "SellerName"),
    )


def _decode_reference(root: Any, sections: Dict[str, Any]) -> ReferenceMessage:
    seller_el = sections["Seller"]
    details_el = sections["SellerDetails"]
    return ReferenceMessage(
        msg_info=_parse_msg_info(sections["MsgInfo"]),
        export_factor=_parse_factor(sections["EF"]),
        import_factor=_parse_factor(sections["IF"]),
        msg_date=_get_text_from(root, "MsgDate"),
        msg_function=_get_number_from(root, "MsgFunction"),
        fact_agreem_signed=_get_text_from(root, "FactAgreemSigned"),
        seller=Seller(
            seller_nr=_get_text_from(seller_el, "SellerNr"),
            seller_name=_get_text_from(seller_el, "SellerName"),
            name_cont=_get_text_from(seller_el, "NameCont"),
            street=_get_text_from(seller_el, "Street"),
            city=_get_text_from(seller_el, "City"),
            state=_get_text_from(seller_el, "State"),
            postcode=_get_text_from(seller_el, "Postcode"),
            country=_get_text_from(seller_el, "Country"),
        ),
        seller_details=SellerDetails(
            business_product=_get_text_from(details_el, "BusinessProduct"),
            net_pmt_terms=_get_number_from(details_el, "NetPmtTerms"),
            discount1_days=_get_number_from(details_el, "Discount1Days"),
            discount2_days=_get_number_from(details_el, "Discount2Days"),
            grace_period=_get_number_from(details_el, "GracePeriod"),
            inv_currency=_get_text_from(details_el, "InvCurrency1"),
            charge_back_perc=_get_number_from(details_el, "ChargeBackPerc"),
            charge_back_amt=_get_number_from(details_el, "ChargeBackAmt"),
            charge_back_currency=_get_text_from(details_el, "ChargeBackCurrency"),
            exp_tot_seller_turnover=_get_number_from(details_el, "ExpTotSellerTurnover"),
            exp_nr_buyers=_get_number_from(details_el, "ExpNrBuyers"),
            exp_nr_invoices=_get_number_from(details_el, "ExpNrInvoices"),
            exp_nr_credit_notes=_get_number_from(details_el, "ExpNrCreditNotes"),
            exp_turnover=_get_number_from(details_el, "ExpTurnover"),
            exp_other_turnover=_get_number_from(details_el, "ExpOtherTurnover"),
            other_factors=_get_number_from(details_el, "OtherFactors"),
            service_required=_get_number_from(details_el, "ServiceRequired"),
        ),
        bank_details=_get_mapping_from(root, "BankDetailsSeller"),
        msg_text=_get_text_from(root, "MsgText") or "",
    )


def _transaction(
    kind: MessageKind, root: Any, sections: Dict[str, Any], buyer: Buyer, details: Any, **extra: Any
) -> TransactionMessage:
    return TransactionMessage(
        kind=kind,
        msg_info=_parse_msg_info(sections["MsgInfo"]),
        export_factor=_parse_factor(sections["EF"]),
        import_factor=_parse_factor(sections["IF"]),
        request_date=_get_text_from(root, "RequestDate"),
        request_nr=_get_text_from(root, "RequestNr"),
        msg_function=_get_number_from(root, "MsgFunction"),
        seller=_parse_seller_ref(sections["Seller"]),
        buyer=buyer,
        details=details,
        msg_text=_get_text_from(root, "MsgText") or "",
        **extra,
    )


def _decode_assessment(root: Any, sections: Dict[str, Any]) -> TransactionMessage:
    buyer_el = sections["Buyer"]
    details_el = sections["PrelCreditAssessDetails"]
    buyer = Buyer(
        buyer_nr=_get_text_from(buyer_el, "BuyerNr"),
        buyer_name=_get_text_from(buyer_el, "BuyerName"),
        street=_get_text_from(buyer_el, "Street"),
        city=_get_text_from(buyer_el, "City"),
        state=_get_text_from(buyer_el, "State"),
        postcode=_get_text_from(buyer_el, "Postcode"),
        country=_get_text_from(buyer_el, "Country"),
        direct_contact=_get_number_from(buyer_el, "DirectContact"),
    )
    details = AssessmentDetails(
        amount=_get_number_from(details_el, "AmtCreditAssessReq"),
        currency=_get_text_from(details_el, "Currency"),
        net_pmt_terms=_get_number_from(details_el, "NetPmtTerms"),
        discount1_days=_get_number_from(details_el, "Discount1Days"),
        discount2_days=_get_number_from(details_el, "Discount2Days"),
    )
    return _transaction(
        MessageKind.ASSESSMENT_REQUEST,
        root,
        sections,
        buyer,
        details,
        bank_details=_get_mapping_from(root, "BankDetailsBuyer"),
    )


def _decode_cover_request(root: Any, sections: Dict[str, Any]) -> TransactionMessage:
    buyer_el = sections["Buyer"]
    details_el = sections["CreditCoverDetails"]
    buyer = Buyer(
        company_reg_nr=_get_number_from(buyer_el, "BuyerCompanyRegNr"),
        buyer_nr=_get_text_from(buyer_el, "BuyerNr"),
        buyer_name=_get_text_from(buyer_el, "BuyerName"),
        street=_get_text_from(buyer_el, "Street"),
        city=_get_text_from(buyer_el, "City"),
        postcode=_get_text_from(buyer_el, "Postcode"),
        country=_get_text_from(buyer_el, "Country"),
        direct_contact=_get_number_from(buyer_el, "DirectContact"),
        telephone=_get_text_from(buyer_el, "Telephone"),
    )
    details = CoverDetails(
        request=_get_number_from(details_el, "Request"),
        amount=_get_number_from(details_el, "NewCreditCoverAmt"),
        currency=_get_text_from(details_el, "Currency"),
        own_risk_amt=_get_number_from(details_el, "OwnRiskAmt"),
        own_risk_perc=_get_number_from(details_el, "OwnRiskPerc"),
        net_pmt_terms=_get_number_from(details_el, "NetPmtTerms"),
        discount1_days=_get_number_from(details_el, "Discount1Days"),
        discount1_perc=_get_number_from(details_el, "Discount1Perc"),
        discount2_days=_get_number_from(details_el, "Discount2Days"),
        discount2_perc=_get_number_from(details_el, "Discount2Perc"),
        order_nr=_get_number_from(details_el, "OrderNr"),
    )
    return _transaction(
        MessageKind.COVER_REQUEST,
        root,
        sections,
        buyer,
        details,
        bank_details=_get_mapping_from(root, "BankDetailsBuyer"),
    )


def _decode_cover_update(root: Any, sections: Dict[str, Any]) -> TransactionMessage:
    buyer_el = sections["Buyer"]
    current_el = sections["CurrentCreditCoverDetails"]
    new_el = sections["NewCreditCoverDetails"]
    buyer = Buyer(
        buyer_nr=_get_text_from(buyer_el, "BuyerNr"),
        buyer_name=_get_text_from(buyer_el, "BuyerName"),
    )
    details = CoverUpdateDetails(
        current_amount=_get_number_from(current_el, "CurrentCreditCoverAmt"),
        currency=_get_text_from(current_el, "Currency"),
        request=_get_number_from(new_el, "Request"),
        new_amount=_get_number_from(new_el, "NewCreditCoverAmt"),
        valid_from=_get_text_from(new_el, "ValidFrom"),
        long_credit_period_days=_get_number_from(new_el, "LongCreditPeriodDays"),
    )
    return _transaction(
        MessageKind.COVER_UPDATE,
        root,
        sections,
        buyer,
        details,
        own_risk=_get_mapping_from(root, "OwnRiskNewCreditCover"),
    )


_DECODERS: Dict[MessageKind, Callable[[Any, Dict[str, Any]], Record]] = {
    MessageKind.REFERENCE: _decode_reference,
    MessageKind.ASSESSMENT_REQUEST: _decode_assessment,
    MessageKind.COVER_REQUEST: _decode_cover_request,
    MessageKind.COVER_UPDATE: _decode_cover_update,
}


def decode(kind: Union[MessageKind, str], fragment: Fragment) -> Record:
    """
    Decodes a single message fragment into a typed record.

    Args:
        kind: The message kind (MessageKind or its tag, e.g. "MSG05").
        fragment: An lxml element, or the raw XML of the fragment as bytes/str.

    Raises:
        MalformedInput: If raw input is not well-formed XML.
        MissingSection: If the message element or one of its required blocks
            is absent. Checked before any field is read.
    """
    kind = MessageKind(kind)
    root = _message_root(kind, fragment)
    sections = _validate_sections(kind, root)
    return _DECODERS[kind](root, sections)


@dataclass
class DocumentResult:
    """
    Outcome of decoding one uploaded document.

    Attributes:
        source (str): Name of the document, used in diagnostics.
        records (List[Record]): Successfully decoded messages in document order.
        errors (List[DecodeError]): One entry per fragment (or document) that failed.
        encoding (Optional[str]): The encoding the document was read with.
    """

    source: str
    records: List[Record] = field(default_factory=list)
    errors: List[DecodeError] = field(default_factory=list)
    encoding: Optional[str] = None


class CreditLogParser:
    """
    Reads one raw XML document and decodes every MSG01/02/05/07 element in it.

    Elements of any other kind are ignored. A failing fragment is logged and
    reported on the result without stopping the remaining fragments.
    """

    KNOWN_KINDS = {kind.value: kind for kind in MessageKind}

    def __init__(
        self,
        message_data: bytes,
        source: str = "<document>",
        fallback_encoding: str = DEFAULT_FALLBACK_ENCODING,
    ):
        self.source = source
        self.tree = None
        self.error: Optional[MalformedInput] = None

        text, self.encoding = decode_bytes(message_data, fallback_encoding)
        try:
            self.tree = _parse_xml(text)
        except MalformedInput as e:
            e.details["source"] = source
            self.error = e

    def iter_fragments(self) -> Iterator[tuple]:
        """
        Yields (kind, element) pairs for every recognised message element in
        document order.
        """
        if self.tree is None:
            return
        for element in self.tree.iter():
            kind = self.KNOWN_KINDS.get(_local_name(element))
            if kind is not None:
                yield kind, element

    def parse(self) -> DocumentResult:
        result = DocumentResult(source=self.source, encoding=self.encoding)
        if self.error is not None:
            logger.error(f"XML parsing error in {self.source}: {self.error}")
            result.errors.append(self.error)
            return result

        for kind, element in self.iter_fragments():
            try:
                result.records.append(decode(kind, element))
            except DecodeError as e:
                e.details["source"] = self.source
                logger.error(f"Error parsing {kind.value} from file {self.source}: {e}")
                result.errors.append(e)

        logger.debug(
            f"{self.source}: decoded {len(result.records)} message(s), "
            f"{len(result.errors)} error(s)"
        )
        return result


def decode_document(
    data: bytes, source: str = "<document>", fallback_encoding: str = DEFAULT_FALLBACK_ENCODING
) -> DocumentResult:
    """
    Convenience wrapper: decode every message in one raw document.
    """
    return CreditLogParser(data, source, fallback_encoding).parse()
