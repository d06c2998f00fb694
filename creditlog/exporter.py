import json
import re
from typing import Dict, List, Sequence, TextIO

from creditlog.models import NormalizedRow


class Exporter:
    """
    Utility to export credit log rows as tab-separated values or JSON.
    """

    # Column headers of the credit log, in output order.
    COLUMNS: Dict[str, str] = {
        "request_date": "Request Date",
        "date_received": "Date Received",
        "reminder": "Reminder (Yes/No)",
        "new_account": "New Acct / Name Address Change (Yes/No)",
        "cancellation": "Cancellation (Yes/No)",
        "buyer_name": "Buyer",
        "buyer_country": "Buyer Country",
        "seller_name": "Seller",
        "seller_country": "Seller Country",
        "partner_name": "Partner",
        "partner_country": "Partner Country",
        "message_type": "2,5,7",
        "amount_requested": "Amount Req",
        "currency": "Currency",
        "term": "Term",
        "contact_allowed": "Contact Allowed (Yes/No)",
        "function_code": "3, 6, 8",
        "amount_approved": "Amt Appr",
        "expiration_date": "Msg 3 Expiration Date",
        "insurance": "Insurance (Yes/No)",
        "response_date": "Response Date",
        "compliance_date": "OFAC Date",
        "rate": "Rate",
        "incoming_comment": "Incoming Comments",
        "credit_comment": "Credit Comments",
        "reviewer_comment": "AE Comments",
        "days_to_respond": "# Days to Respond",
        "handler": "Credit Manager",
        "assignee": "AE/CSO",
        "industry_product": "Industry / Product",
        "partner_code": "Client Code",
    }
    USD_COLUMN = ("amount_usd", "Amount Req (USD)")

    _cell_breaks = re.compile(r"\r\n|[\t\r\n]")

    @staticmethod
    def sanitize(value: object) -> str:
        """
        Replaces tabs and line breaks inside a cell with single spaces so the
        cell cannot break the TSV layout.
        """
        return Exporter._cell_breaks.sub(" ", "" if value is None else str(value))

    @staticmethod
    def columns(include_usd: bool = False) -> List[str]:
        names = list(Exporter.COLUMNS)
        if include_usd:
            names.append(Exporter.USD_COLUMN[0])
        return names

    @staticmethod
    def headers(include_usd: bool = False) -> List[str]:
        titles = list(Exporter.COLUMNS.values())
        if include_usd:
            titles.append(Exporter.USD_COLUMN[1])
        return titles

    @staticmethod
    def to_tsv(
        rows: Sequence[NormalizedRow], include_header: bool = True, include_usd: bool = False
    ) -> str:
        """
        Renders rows as TSV text, one line per row, each line ending in a newline.
        """
        lines = []
        if include_header:
            lines.append("\t".join(Exporter.headers(include_usd)))
        names = Exporter.columns(include_usd)
        for row in rows:
            lines.append("\t".join(Exporter.sanitize(getattr(row, name)) for name in names))
        return "".join(line + "\n" for line in lines)

    @staticmethod
    def write_tsv(
        rows: Sequence[NormalizedRow],
        stream: TextIO,
        include_header: bool = True,
        include_usd: bool = False,
    ) -> None:
        stream.write(Exporter.to_tsv(rows, include_header, include_usd))

    @staticmethod
    def export_tsv(
        rows: Sequence[NormalizedRow],
        path: str,
        include_header: bool = True,
        include_usd: bool = False,
    ):
        """
        Saves rows to a UTF-8 TSV file.
        """
        with open(path, "w", encoding="utf-8", newline="") as f:
            Exporter.write_tsv(rows, f, include_header, include_usd)

    @staticmethod
    def to_json(rows: Sequence[NormalizedRow]) -> str:
        """
        Serializes rows through their Pydantic models.
        """
        from creditlog.integrations.pydantic import rows_to_pydantic

        return json.dumps([row.model_dump() for row in rows_to_pydantic(rows)], indent=2, ensure_ascii=False)

    @staticmethod
    def export_json(rows: Sequence[NormalizedRow], path: str):
        with open(path, "w", encoding="utf-8") as f:
            f.write(Exporter.to_json(rows))
