from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple, Union

Number = Union[int, float]
CorrelationKey = Tuple[Optional[str], Optional[str]]


class MessageKind(str, Enum):
    """
    The four recognised message schemas, named after their XML root element.
    """

    REFERENCE = "MSG01"
    ASSESSMENT_REQUEST = "MSG02"
    COVER_REQUEST = "MSG05"
    COVER_UPDATE = "MSG07"

    @property
    def digit(self) -> str:
        return self.value[-1]


@dataclass(frozen=True)
class MessageInfo:
    """
    The MsgInfo envelope carried by every message kind.
    """

    sender_code: Optional[str] = None
    receiver_code: Optional[str] = None
    created_by: Optional[str] = None
    sequence_nr: Optional[Number] = None
    date_time: Optional[str] = None
    status: Optional[Number] = None


@dataclass(frozen=True)
class FactorRef:
    """
    An EF (export factor, the partner) or IF (import factor) block.
    """

    factor_code: Optional[str] = None
    factor_name: Optional[str] = None


@dataclass(frozen=True)
class SellerRef:
    seller_nr: Optional[str] = None
    seller_name: Optional[str] = None


@dataclass(frozen=True)
class Seller(SellerRef):
    """
    Full seller block as sent in MSG01, including the postal address.
    """

    name_cont: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None


@dataclass(frozen=True)
class SellerDetails:
    """
    Business terms of the factoring relationship (MSG01 SellerDetails).

    Attributes:
        business_product (Optional[str]):
            Free-text industry / product classification of the seller.
        net_pmt_terms (Optional[Number]):
            Net payment terms in days.
        inv_currency (Optional[str]):
            Primary invoicing currency (InvCurrency1).
        exp_* (Optional[Number]):
            Expected yearly volumes declared by the seller.
    """

    business_product: Optional[str] = None
    net_pmt_terms: Optional[Number] = None
    discount1_days: Optional[Number] = None
    discount2_days: Optional[Number] = None
    grace_period: Optional[Number] = None
    inv_currency: Optional[str] = None
    charge_back_perc: Optional[Number] = None
    charge_back_amt: Optional[Number] = None
    charge_back_currency: Optional[str] = None
    exp_tot_seller_turnover: Optional[Number] = None
    exp_nr_buyers: Optional[Number] = None
    exp_nr_invoices: Optional[Number] = None
    exp_nr_credit_notes: Optional[Number] = None
    exp_turnover: Optional[Number] = None
    exp_other_turnover: Optional[Number] = None
    other_factors: Optional[Number] = None
    service_required: Optional[Number] = None


@dataclass(frozen=True)
class Buyer:
    """
    Buyer block. Each transaction kind defines a different subset of these
    fields; the ones a kind does not define stay None.
    """

    buyer_nr: Optional[str] = None
    buyer_name: Optional[str] = None
    company_reg_nr: Optional[Number] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None
    direct_contact: Optional[Number] = None
    telephone: Optional[str] = None


@dataclass(frozen=True)
class AssessmentDetails:
    """
    MSG02 PrelCreditAssessDetails: preliminary credit assessment request.
    """

    amount: Optional[Number] = None
    currency: Optional[str] = None
    net_pmt_terms: Optional[Number] = None
    discount1_days: Optional[Number] = None
    discount2_days: Optional[Number] = None


@dataclass(frozen=True)
class CoverDetails:
    """
    MSG05 CreditCoverDetails: formal request for a credit cover.
    """

    request: Optional[Number] = None
    amount: Optional[Number] = None
    currency: Optional[str] = None
    own_risk_amt: Optional[Number] = None
    own_risk_perc: Optional[Number] = None
    net_pmt_terms: Optional[Number] = None
    discount1_days: Optional[Number] = None
    discount1_perc: Optional[Number] = None
    discount2_days: Optional[Number] = None
    discount2_perc: Optional[Number] = None
    order_nr: Optional[Number] = None


@dataclass(frozen=True)
class CoverUpdateDetails:
    """
    MSG07 credit cover update. Merges the CurrentCreditCoverDetails and
    NewCreditCoverDetails blocks; the currency comes from the current block.
    """

    current_amount: Optional[Number] = None
    currency: Optional[str] = None
    request: Optional[Number] = None
    new_amount: Optional[Number] = None
    valid_from: Optional[str] = None
    long_credit_period_days: Optional[Number] = None


TransactionDetails = Union[AssessmentDetails, CoverDetails, CoverUpdateDetails]


@dataclass(frozen=True)
class ReferenceMessage:
    """
    Structured representation of an MSG01 seller reference message.

    One instance describes a seller and its factoring relationship. Transactions
    are joined to it on the (sender code, seller number) correlation key.
    """

    msg_info: MessageInfo
    export_factor: FactorRef
    import_factor: FactorRef
    seller: Seller
    seller_details: SellerDetails
    msg_date: Optional[str] = None
    msg_function: Optional[Number] = None
    fact_agreem_signed: Optional[str] = None
    bank_details: Dict[str, str] = field(default_factory=dict)
    msg_text: str = ""

    kind = MessageKind.REFERENCE

    @property
    def key(self) -> CorrelationKey:
        return (self.msg_info.sender_code, self.seller.seller_nr)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


@dataclass(frozen=True)
class TransactionMessage:
    """
    A credit request or update (MSG02, MSG05 or MSG07).

    The message kind is the discriminator for ``details``: AssessmentDetails for
    MSG02, CoverDetails for MSG05 and CoverUpdateDetails for MSG07. Everything
    else is the shared envelope.
    """

    kind: MessageKind
    msg_info: MessageInfo
    export_factor: FactorRef
    import_factor: FactorRef
    seller: SellerRef
    buyer: Buyer
    details: TransactionDetails
    request_date: Optional[str] = None
    request_nr: Optional[str] = None
    msg_function: Optional[Number] = None
    bank_details: Dict[str, str] = field(default_factory=dict)
    own_risk: Dict[str, str] = field(default_factory=dict)
    msg_text: str = ""

    @property
    def key(self) -> CorrelationKey:
        return (self.msg_info.sender_code, self.seller.seller_nr)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


Record = Union[ReferenceMessage, TransactionMessage]


@dataclass
class NormalizedRow:
    """
    One output line of the credit log, built from a single transaction.

    Field order is the column order of the exported table. ``amount_usd`` is
    not one of the table columns; it holds the converted amount or the
    human-readable placeholder explaining why no conversion was possible.
    """

    request_date: str = ""
    date_received: str = ""
    reminder: str = "No"
    new_account: str = "No"
    cancellation: str = "No"
    buyer_name: str = ""
    buyer_country: str = ""
    seller_name: str = ""
    seller_country: str = ""
    partner_name: str = ""
    partner_country: str = ""
    message_type: str = ""
    amount_requested: str = ""
    currency: str = ""
    term: str = ""
    contact_allowed: str = "No"
    function_code: str = ""
    amount_approved: str = ""
    expiration_date: str = ""
    insurance: str = ""
    response_date: str = ""
    compliance_date: str = ""
    rate: str = ""
    incoming_comment: str = ""
    credit_comment: str = ""
    reviewer_comment: str = ""
    days_to_respond: str = ""
    handler: str = ""
    assignee: str = ""
    industry_product: str = ""
    partner_code: str = ""
    amount_usd: str = ""

    def to_dict(self) -> dict:
        return asdict(self)
