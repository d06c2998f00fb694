from conftest import MOCK_MSG01, MOCK_MSG02, MOCK_MSG05, MOCK_MSG07
from creditlog.builder import MessageBuilder
from creditlog.enricher import (
    build_rows,
    classification_amount,
    enrich,
    format_conversion,
    format_value,
    payment_fields,
)
from creditlog.exporter import Exporter
from creditlog.parser import decode
from creditlog.rates import Unavailable, UnavailableReason
from creditlog.regions import country_code_from_factor, region_name
from creditlog.rules import ClassificationRules
from creditlog.store import RecordStore

RATES = {"USD": 1, "EUR": 0.5, "INR": 80.0}


def loaded_store(*fragments):
    store = RecordStore()
    for kind, xml in fragments:
        store.add(decode(kind, xml))
    return store


def test_assessment_request_row():
    reference = decode("MSG01", MOCK_MSG01)
    row = enrich(decode("MSG02", MOCK_MSG02), reference, RATES)

    assert row.request_date == "2024-03-04"
    assert row.date_received == "2024-03-05"
    assert row.buyer_name == "Hudson Retail LLC"
    assert row.buyer_country == "US"
    assert row.seller_name == "Bosphorus Textiles"
    assert row.partner_name == "Anadolu Faktoring"
    assert row.partner_country == "Türkiye"
    assert row.seller_country == "Türkiye"
    assert row.message_type == "2"
    assert row.amount_requested == "250000"
    assert row.currency == "EUR"
    assert row.term == "90"
    assert row.contact_allowed == "Yes"
    assert row.incoming_comment == "Please assess"
    assert row.industry_product == "Textiles / Apparel"
    assert row.partner_code == "TR0123"
    # 250000 EUR at 0.5 per USD is exactly on the threshold
    assert row.amount_usd == "500000.00"
    assert row.handler == "lux"


def test_manual_columns_keep_their_defaults():
    row = enrich(decode("MSG02", MOCK_MSG02), None, RATES)

    assert (row.reminder, row.new_account, row.cancellation) == ("No", "No", "No")
    for name in (
        "function_code",
        "amount_approved",
        "expiration_date",
        "insurance",
        "response_date",
        "compliance_date",
        "rate",
        "credit_comment",
        "reviewer_comment",
        "days_to_respond",
        "assignee",
    ):
        assert getattr(row, name) == "", name


def test_cover_request_row():
    row = enrich(decode("MSG05", MOCK_MSG05), None, RATES)

    assert row.message_type == "5"
    assert row.amount_requested == "800000"
    assert row.currency == "USD"
    assert row.term == "120"
    # DirectContact is 0
    assert row.contact_allowed == "No"
    assert row.amount_usd == "800000.00"
    # TR is a direct country
    assert row.handler == "trey"
    assert row.industry_product == ""


def test_cover_update_uses_new_amount_and_long_credit_period():
    row = enrich(decode("MSG07", MOCK_MSG07), None, RATES)

    assert row.message_type == "7"
    assert row.amount_requested == "60000000"
    assert row.currency == "INR"
    assert row.term == "150"
    assert row.contact_allowed == "No"
    assert row.partner_country == "India"
    assert row.buyer_country == ""
    assert row.amount_usd == "750000.00"
    assert row.handler == "trey"


def test_cover_update_never_allows_contact():
    message = MessageBuilder.build(
        "MSG07", sender_code="IN0042", factor_code="IN0042", direct_contact=1, new_amount=1
    )
    assert enrich(message, None, RATES).contact_allowed == "No"


def test_payment_fields_per_kind():
    assert payment_fields(decode("MSG02", MOCK_MSG02)) == (250000, "EUR", 90)
    assert payment_fields(decode("MSG05", MOCK_MSG05)) == (800000, "USD", 120)
    assert payment_fields(decode("MSG07", MOCK_MSG07)) == (60000000, "INR", 150)


def test_row_without_rates_is_unclassifiable():
    row = enrich(decode("MSG02", MOCK_MSG02), None, None)
    assert row.amount_usd == "Failed to fetch rates"
    assert row.handler == "N/A"


def test_row_with_unknown_currency():
    message = MessageBuilder.build(
        "MSG02", factor_code="TR0123", amount=1000, currency="ZZZ", request_date="2024-01-01"
    )
    row = enrich(message, None, RATES)
    assert row.amount_usd == "1000.00 ZZZ (No Rate)"
    # Classified on the unconverted amount
    assert row.handler == "lux"


def test_missing_rate_classifies_on_raw_amount():
    message = MessageBuilder.build(
        "MSG02", factor_code="IN0123", factor_name="Bharat Factors", amount=600000, currency="ZZZ"
    )
    row = enrich(message, None, {"USD": 1, "EUR": 0.9})

    assert row.amount_usd == "600000.00 ZZZ (No Rate)"
    assert row.handler == "trey"


def test_missing_rate_large_amount_elsewhere_goes_to_handler_c():
    message = MessageBuilder.build(
        "MSG05", factor_code="US0456", factor_name="Other Bank", amount=600000, currency="ZZZ"
    )
    assert enrich(message, None, RATES).handler == "bost"


def test_classification_amount():
    assert classification_amount(250.5) == 250.5
    assert classification_amount(None) is None
    missing_rate = Unavailable(UnavailableReason.RATE_NOT_FOUND, "7.00 ZZZ (No Rate)", 7)
    assert classification_amount(missing_rate) == 7
    no_rates = Unavailable(UnavailableReason.RATES_UNAVAILABLE, "Failed to fetch rates")
    assert classification_amount(no_rates) is no_rates


def test_row_without_amount():
    message = MessageBuilder.build("MSG05", factor_code="DE0001", currency="EUR")
    row = enrich(message, None, RATES)
    assert row.amount_requested == ""
    assert row.amount_usd == ""
    assert row.handler == "N/A"
    assert row.partner_country == "Germany"


def test_custom_rule_labels():
    rules = ClassificationRules(labels={"HandlerA": "desk-1"})
    row = enrich(decode("MSG02", MOCK_MSG02), None, RATES, rules)
    assert row.handler == "desk-1"


def test_build_rows_joins_references_and_sorts_by_date_received():
    store = loaded_store(
        ("MSG02", MOCK_MSG02),
        ("MSG07", MOCK_MSG07),
        ("MSG05", MOCK_MSG05),
        ("MSG01", MOCK_MSG01),
    )

    rows = build_rows(store, RATES)

    assert [row.date_received for row in rows] == ["2024-03-02", "2024-03-03", "2024-03-05"]
    assert [row.message_type for row in rows] == ["5", "7", "2"]
    # MSG02 and MSG05 share the key (TR0123, S-100); MSG07 has no reference
    assert [row.industry_product for row in rows] == [
        "Textiles / Apparel",
        "",
        "Textiles / Apparel",
    ]


def test_build_rows_sort_is_stable():
    store = RecordStore()
    for kind, buyer in [("MSG05", "third"), ("MSG02", "first"), ("MSG02", "second")]:
        store.add(
            MessageBuilder.build(kind, buyer_name=buyer, date_time="2024-06-01T10:00:00")
        )
    store.add(MessageBuilder.build("MSG07", buyer_name="earliest", date_time="2024-05-31T23:59:59"))

    rows = build_rows(store, None)

    assert [row.buyer_name for row in rows] == ["earliest", "first", "second", "third"]


def test_build_rows_empty_store():
    assert build_rows(RecordStore(), RATES) == []


def test_format_value():
    assert format_value(None) == ""
    assert format_value(60) == "60"
    assert format_value(60.0) == "60"
    assert format_value(2.5) == "2.5"
    assert format_value("x") == "x"


def test_format_conversion():
    assert format_conversion(None) == ""
    assert format_conversion(100) == "100.00"
    assert format_conversion(1 / 3) == "0.33"
    assert (
        format_conversion(Unavailable(UnavailableReason.CURRENCY_UNKNOWN, "N/A")) == "N/A"
    )


def test_region_helpers():
    assert country_code_from_factor("tr0123") == "TR"
    assert country_code_from_factor(None) == ""
    assert region_name("US") == "United States"
    assert region_name("tr") == "Türkiye"
    assert region_name("QQ") == "QQ"
    assert region_name("") == ""


def test_rows_export_as_tsv():
    store = loaded_store(("MSG01", MOCK_MSG01), ("MSG02", MOCK_MSG02))
    text = Exporter.to_tsv(build_rows(store, RATES), include_header=False)

    cells = text.rstrip("\n").split("\t")
    assert len(cells) == len(Exporter.COLUMNS)
    assert cells[0] == "2024-03-04"
    assert cells[-1] == "TR0123"
