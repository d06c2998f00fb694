import pytest
from lxml import etree

from creditlog.config import reset_settings

MOCK_MSG01 = b"""<MSG01>
    <MsgInfo>
        <SenderCode>TR0123</SenderCode>
        <ReceiverCode>US0456</ReceiverCode>
        <CreatedBy>ANKARA01</CreatedBy>
        <SequenceNr>17</SequenceNr>
        <DateTime>2024-03-01T09:15:00</DateTime>
        <Status>1</Status>
    </MsgInfo>
    <EF>
        <FactorCode>TR0123</FactorCode>
        <FactorName>Anadolu Faktoring</FactorName>
    </EF>
    <IF>
        <FactorCode>US0456</FactorCode>
        <FactorName>Credit Partners Inc</FactorName>
    </IF>
    <MsgDate>2024-03-01</MsgDate>
    <MsgFunction>1</MsgFunction>
    <FactAgreemSigned>2024-02-15</FactAgreemSigned>
    <Seller>
        <SellerNr>S-100</SellerNr>
        <SellerName>Bosphorus Textiles</SellerName>
        <NameCont></NameCont>
        <Street>Ataturk Cd. 5</Street>
        <City>Istanbul</City>
        <State></State>
        <Postcode>34000</Postcode>
        <Country>TR</Country>
    </Seller>
    <SellerDetails>
        <BusinessProduct>Textiles / Apparel</BusinessProduct>
        <NetPmtTerms>60</NetPmtTerms>
        <Discount1Days></Discount1Days>
        <Discount2Days></Discount2Days>
        <GracePeriod>10</GracePeriod>
        <InvCurrency1>EUR</InvCurrency1>
        <ChargeBackPerc>2.5</ChargeBackPerc>
        <ChargeBackAmt>1000</ChargeBackAmt>
        <ChargeBackCurrency>EUR</ChargeBackCurrency>
        <ExpTotSellerTurnover>5000000</ExpTotSellerTurnover>
        <ExpNrBuyers>12</ExpNrBuyers>
        <ExpNrInvoices>400</ExpNrInvoices>
        <ExpNrCreditNotes></ExpNrCreditNotes>
        <ExpTurnover>2000000</ExpTurnover>
        <ExpOtherTurnover>0</ExpOtherTurnover>
        <OtherFactors>0</OtherFactors>
        <ServiceRequired>3</ServiceRequired>
    </SellerDetails>
    <BankDetailsSeller>
        <BankName>Ziraat Bankasi</BankName>
        <IBAN>TR330006100519786457841326</IBAN>
    </BankDetailsSeller>
    <MsgText>New seller onboarding</MsgText>
</MSG01>"""

MOCK_MSG02 = b"""<MSG02>
    <MsgInfo>
        <SenderCode>TR0123</SenderCode>
        <ReceiverCode>US0456</ReceiverCode>
        <CreatedBy>ANKARA01</CreatedBy>
        <SequenceNr>18</SequenceNr>
        <DateTime>2024-03-05T11:00:00</DateTime>
        <Status>1</Status>
    </MsgInfo>
    <EF>
        <FactorCode>TR0123</FactorCode>
        <FactorName>Anadolu Faktoring</FactorName>
    </EF>
    <IF>
        <FactorCode>US0456</FactorCode>
        <FactorName>Credit Partners Inc</FactorName>
    </IF>
    <RequestDate>2024-03-04</RequestDate>
    <RequestNr>R-2001</RequestNr>
    <MsgFunction>2</MsgFunction>
    <Seller>
        <SellerNr>S-100</SellerNr>
        <SellerName>Bosphorus Textiles</SellerName>
    </Seller>
    <Buyer>
        <BuyerNr>B-77</BuyerNr>
        <BuyerName>Hudson Retail LLC</BuyerName>
        <Street>12 Main St</Street>
        <City>New York</City>
        <State>NY</State>
        <Postcode>10001</Postcode>
        <Country>US</Country>
        <DirectContact>1</DirectContact>
    </Buyer>
    <PrelCreditAssessDetails>
        <AmtCreditAssessReq>250000</AmtCreditAssessReq>
        <Currency>EUR</Currency>
        <NetPmtTerms>90</NetPmtTerms>
        <Discount1Days></Discount1Days>
        <Discount2Days></Discount2Days>
    </PrelCreditAssessDetails>
    <MsgText>Please assess</MsgText>
</MSG02>"""

MOCK_MSG05 = b"""<MSG05>
    <MsgInfo>
        <SenderCode>TR0123</SenderCode>
        <ReceiverCode>US0456</ReceiverCode>
        <CreatedBy>ANKARA01</CreatedBy>
        <SequenceNr>19</SequenceNr>
        <DateTime>2024-03-02T08:30:00</DateTime>
        <Status>1</Status>
    </MsgInfo>
    <EF>
        <FactorCode>TR0123</FactorCode>
        <FactorName>Anadolu Faktoring</FactorName>
    </EF>
    <IF>
        <FactorCode>US0456</FactorCode>
        <FactorName>Credit Partners Inc</FactorName>
    </IF>
    <RequestDate>2024-03-01</RequestDate>
    <RequestNr>R-2002</RequestNr>
    <MsgFunction>5</MsgFunction>
    <Seller>
        <SellerNr>S-100</SellerNr>
        <SellerName>Bosphorus Textiles</SellerName>
    </Seller>
    <Buyer>
        <BuyerCompanyRegNr>445566</BuyerCompanyRegNr>
        <BuyerNr>B-78</BuyerNr>
        <BuyerName>Lakeside Foods Inc</BuyerName>
        <Street>500 Lake Shore Dr</Street>
        <City>Chicago</City>
        <Postcode>60611</Postcode>
        <Country>US</Country>
        <DirectContact>0</DirectContact>
        <Telephone></Telephone>
    </Buyer>
    <BankDetailsBuyer/>
    <CreditCoverDetails>
        <Request>1</Request>
        <NewCreditCoverAmt>800000</NewCreditCoverAmt>
        <Currency>USD</Currency>
        <OwnRiskAmt>0</OwnRiskAmt>
        <OwnRiskPerc>10</OwnRiskPerc>
        <NetPmtTerms>120</NetPmtTerms>
        <Discount1Days></Discount1Days>
        <Discount1Perc></Discount1Perc>
        <Discount2Days></Discount2Days>
        <Discount2Perc></Discount2Perc>
        <OrderNr></OrderNr>
    </CreditCoverDetails>
</MSG05>"""

MOCK_MSG07 = b"""<MSG07>
    <MsgInfo>
        <SenderCode>IN0042</SenderCode>
        <ReceiverCode>US0456</ReceiverCode>
        <CreatedBy>MUMBAI02</CreatedBy>
        <SequenceNr>3</SequenceNr>
        <DateTime>2024-03-03T16:45:00</DateTime>
        <Status>1</Status>
    </MsgInfo>
    <EF>
        <FactorCode>IN0042</FactorCode>
        <FactorName>Bharat Factors Ltd</FactorName>
    </EF>
    <IF>
        <FactorCode>US0456</FactorCode>
        <FactorName>Credit Partners Inc</FactorName>
    </IF>
    <RequestDate>2024-03-03</RequestDate>
    <RequestNr>R-3001</RequestNr>
    <MsgFunction>7</MsgFunction>
    <Seller>
        <SellerNr>S-900</SellerNr>
        <SellerName>Deccan Steel Pvt</SellerName>
    </Seller>
    <Buyer>
        <BuyerNr>B-12</BuyerNr>
        <BuyerName>Gulf Coast Machinery</BuyerName>
    </Buyer>
    <CurrentCreditCoverDetails>
        <CurrentCreditCoverAmt>400000</CurrentCreditCoverAmt>
        <Currency>INR</Currency>
    </CurrentCreditCoverDetails>
    <NewCreditCoverDetails>
        <Request>2</Request>
        <NewCreditCoverAmt>60000000</NewCreditCoverAmt>
        <ValidFrom>2024-04-01</ValidFrom>
        <LongCreditPeriodDays>150</LongCreditPeriodDays>
    </NewCreditCoverDetails>
    <MsgText></MsgText>
</MSG07>"""

SAMPLES = {
    "MSG01": MOCK_MSG01,
    "MSG02": MOCK_MSG02,
    "MSG05": MOCK_MSG05,
    "MSG07": MOCK_MSG07,
}


def wrap(*fragments: bytes) -> bytes:
    """Builds an upload document holding several message fragments."""
    body = b"\n".join(fragments)
    return b'<?xml version="1.0" encoding="UTF-8"?>\n<Messages>\n' + body + b"\n</Messages>"


def without(xml: bytes, section: str):
    """Returns the parsed fragment with the first <section> element removed."""
    root = etree.fromstring(xml)
    node = root.find(f".//{section}")
    node.getparent().remove(node)
    return root


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch):
    monkeypatch.delenv("CREDITLOG_RULES_PATH", raising=False)
    reset_settings()
    yield
    reset_settings()
