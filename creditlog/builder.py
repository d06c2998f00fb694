from dataclasses import fields
from typing import Any, Dict, List, Tuple, Type, Union

from creditlog.models import (
    AssessmentDetails,
    Buyer,
    CoverDetails,
    CoverUpdateDetails,
    FactorRef,
    MessageInfo,
    MessageKind,
    Record,
    ReferenceMessage,
    Seller,
    SellerDetails,
    SellerRef,
    TransactionMessage,
)


class MessageBuilder:
    """
    A factory for programmatically building typed credit messages.
    """

    _BLOCKS: Dict[MessageKind, List[Tuple[str, Type]]] = {
        MessageKind.REFERENCE: [
            ("msg_info", MessageInfo),
            ("export_factor", FactorRef),
            ("seller", Seller),
            ("seller_details", SellerDetails),
        ],
        MessageKind.ASSESSMENT_REQUEST: [
            ("msg_info", MessageInfo),
            ("export_factor", FactorRef),
            ("seller", SellerRef),
            ("buyer", Buyer),
            ("details", AssessmentDetails),
        ],
        MessageKind.COVER_REQUEST: [
            ("msg_info", MessageInfo),
            ("export_factor", FactorRef),
            ("seller", SellerRef),
            ("buyer", Buyer),
            ("details", CoverDetails),
        ],
        MessageKind.COVER_UPDATE: [
            ("msg_info", MessageInfo),
            ("export_factor", FactorRef),
            ("seller", SellerRef),
            ("buyer", Buyer),
            ("details", CoverUpdateDetails),
        ],
    }

    @staticmethod
    def build(kind: Union[MessageKind, str], **kwargs: Any) -> Record:
        """
        Constructs a message of the given kind from flat keyword arguments.

        Args:
            kind (MessageKind | str): The target kind, e.g. "MSG05".
            **kwargs: Field values. Each name is matched against the record's
                own fields first, then against its blocks in order (message
                info, export factor, seller, buyer/seller details, payment
                details). Names prefixed with ``import_`` fill the IF block.

        Returns:
            Record: A ReferenceMessage for MSG01, otherwise a TransactionMessage.

        Note:
            Keyword arguments that match no field are silently discarded.
        """
        kind = MessageKind(kind)
        blocks = MessageBuilder._BLOCKS[kind]
        target_class = ReferenceMessage if kind is MessageKind.REFERENCE else TransactionMessage

        block_names = {name for name, _ in blocks} | {"import_factor", "kind"}
        top_level = {f.name for f in fields(target_class)} - block_names

        block_values: Dict[str, Dict[str, Any]] = {name: {} for name, _ in blocks}
        import_values: Dict[str, Any] = {}
        record_values: Dict[str, Any] = {}

        factor_fields = {f.name for f in fields(FactorRef)}
        for key, value in kwargs.items():
            if key in top_level:
                record_values[key] = value
                continue
            if key.startswith("import_") and key[len("import_"):] in factor_fields:
                import_values[key[len("import_"):]] = value
                continue
            for name, block_class in blocks:
                if key in {f.name for f in fields(block_class)}:
                    block_values[name][key] = value
                    break

        for name, block_class in blocks:
            record_values[name] = block_class(**block_values[name])
        record_values["import_factor"] = FactorRef(**import_values)

        if target_class is TransactionMessage:
            record_values["kind"] = kind
        return target_class(**record_values)
