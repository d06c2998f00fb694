from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import BaseModel, ConfigDict

from creditlog.models import NormalizedRow, Record, ReferenceMessage

Number = Union[int, float]


class PydanticMessageInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sender_code: Optional[str] = None
    receiver_code: Optional[str] = None
    created_by: Optional[str] = None
    sequence_nr: Optional[Number] = None
    date_time: Optional[str] = None
    status: Optional[Number] = None


class PydanticFactorRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    factor_code: Optional[str] = None
    factor_name: Optional[str] = None


class PydanticSeller(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    seller_nr: Optional[str] = None
    seller_name: Optional[str] = None
    name_cont: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postcode: Optional[str] = None
    country: Optional[str] = None


class PydanticBuyer(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


class PydanticMessage(BaseModel):
    """Fields shared by every message kind."""

    model_config = ConfigDict(from_attributes=True)

    kind: str
    msg_info: PydanticMessageInfo
    export_factor: PydanticFactorRef
    import_factor: PydanticFactorRef
    seller: PydanticSeller
    msg_function: Optional[Number] = None
    bank_details: Dict[str, str] = {}
    msg_text: str = ""


class PydanticReferenceMessage(PydanticMessage):
    msg_date: Optional[str] = None
    fact_agreem_signed: Optional[str] = None
    seller_details: Dict[str, Any] = {}


class PydanticTransactionMessage(PydanticMessage):
    request_date: Optional[str] = None
    request_nr: Optional[str] = None
    buyer: PydanticBuyer
    details: Dict[str, Any] = {}
    own_risk: Dict[str, str] = {}


class PydanticNormalizedRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

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


def from_dataclass(msg: Record) -> PydanticMessage:
    """
    Converts a decoded message dataclass into its Pydantic equivalent.
    """
    if isinstance(msg, ReferenceMessage):
        return PydanticReferenceMessage.model_validate(msg.to_dict())
    return PydanticTransactionMessage.model_validate(msg.to_dict())


def rows_to_pydantic(rows: Sequence[NormalizedRow]) -> List[PydanticNormalizedRow]:
    return [PydanticNormalizedRow.model_validate(row) for row in rows]
