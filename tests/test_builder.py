from creditlog.builder import MessageBuilder
from creditlog.models import (
    AssessmentDetails,
    CoverDetails,
    CoverUpdateDetails,
    MessageKind,
    ReferenceMessage,
    TransactionMessage,
)


def test_build_reference_message():
    msg = MessageBuilder.build(
        "MSG01",
        sender_code="TR0123",
        date_time="2024-03-01T09:15:00",
        factor_code="TR0123",
        factor_name="Anadolu Faktoring",
        import_factor_code="US0456",
        seller_nr="S-100",
        seller_name="Bosphorus Textiles",
        country="TR",
        business_product="Textiles",
        msg_text="hello",
    )

    assert isinstance(msg, ReferenceMessage)
    assert msg.kind is MessageKind.REFERENCE
    assert msg.key == ("TR0123", "S-100")
    assert msg.msg_info.date_time == "2024-03-01T09:15:00"
    assert msg.export_factor.factor_name == "Anadolu Faktoring"
    assert msg.import_factor.factor_code == "US0456"
    assert msg.seller.country == "TR"
    assert msg.seller_details.business_product == "Textiles"
    assert msg.msg_text == "hello"


def test_build_transactions_picks_details_type():
    assert isinstance(MessageBuilder.build("MSG02").details, AssessmentDetails)
    assert isinstance(MessageBuilder.build("MSG05").details, CoverDetails)
    assert isinstance(MessageBuilder.build(MessageKind.COVER_UPDATE).details, CoverUpdateDetails)


def test_build_assessment_request():
    msg = MessageBuilder.build(
        "MSG02",
        sender_code="TR0123",
        seller_nr="S-100",
        buyer_name="Hudson Retail LLC",
        country="US",
        direct_contact=1,
        amount=250000,
        currency="EUR",
        net_pmt_terms=90,
        request_date="2024-03-04",
    )

    assert isinstance(msg, TransactionMessage)
    assert msg.kind is MessageKind.ASSESSMENT_REQUEST
    assert msg.key == ("TR0123", "S-100")
    assert msg.buyer.country == "US"
    assert msg.buyer.direct_contact == 1
    assert msg.details == AssessmentDetails(amount=250000, currency="EUR", net_pmt_terms=90)
    assert msg.request_date == "2024-03-04"


def test_build_cover_update():
    msg = MessageBuilder.build(
        "MSG07", new_amount=750000, currency="INR", long_credit_period_days=150
    )
    assert msg.details.new_amount == 750000
    assert msg.details.currency == "INR"
    assert msg.details.long_credit_period_days == 150


def test_build_ignores_unknown_kwargs():
    msg = MessageBuilder.build("MSG05", buyer_name="Acme", favourite_colour="blue")
    assert msg.buyer.buyer_name == "Acme"
    assert not hasattr(msg, "favourite_colour")


def test_build_defaults_are_empty():
    msg = MessageBuilder.build("MSG02")
    assert msg.key == (None, None)
    assert msg.bank_details == {}
    assert msg.msg_text == ""
