import argparse
import json
import sys

from creditlog.config import get_settings
from creditlog.exceptions import ConfigurationError, CreditLogError
from creditlog.exporter import Exporter
from creditlog.integrations.pydantic import from_dataclass
from creditlog.logger import setup_logger
from creditlog.parser import decode_document
from creditlog.pipeline import process_batch, read_documents
from creditlog.rates import fetch_rates
from creditlog.rules import load_rules


def handle_process(args):
    """Handles the 'process' subcommand: builds the credit log from a batch of files."""
    settings = get_settings()
    try:
        rules = load_rules(args.rules or settings.rules_path)
        documents = read_documents(args.files)

        rates = None
        if not args.no_rates:
            rates = fetch_rates(settings.rates_url, settings.rates_timeout)

        batch = process_batch(documents, rates=rates, rules=rules)

        if args.format == "json":
            output = Exporter.to_json(batch.rows) + "\n"
        else:
            output = Exporter.to_tsv(
                batch.rows, include_header=not args.no_header, include_usd=args.with_usd
            )

        if args.output:
            with open(args.output, "w", encoding="utf-8", newline="") as f:
                f.write(output)
            print(f"Wrote {len(batch.rows)} row(s) to {args.output}", file=sys.stderr)
        else:
            sys.stdout.write(output)

        for error in batch.errors:
            print(f"Skipped: {error.details.get('source', '?')}: {error}", file=sys.stderr)

    except (CreditLogError, OSError) as e:
        print(f"Error processing files: {e}", file=sys.stderr)
        sys.exit(1)


def handle_parse(args):
    """Handles the 'parse' subcommand: Outputs a JSON dump of every message in a file."""
    try:
        with open(args.file, "rb") as f:
            raw_data = f.read()

        result = decode_document(raw_data, args.file, get_settings().fallback_encoding)
        messages = [from_dataclass(record).model_dump() for record in result.records]
        print(json.dumps(messages, indent=2, ensure_ascii=False))

        if result.errors:
            for err in result.errors:
                print(f"  - {err}", file=sys.stderr)
            sys.exit(1)

    except (CreditLogError, OSError) as e:
        print(f"Error parsing file: {e}", file=sys.stderr)
        sys.exit(1)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="creditlog",
        description="CreditLog CLI - Build a credit request log from factoring XML messages.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # Subcommand: process
    process_parser = subparsers.add_parser(
        "process", help="Decode a batch of files and output the enriched credit log."
    )
    process_parser.add_argument("files", nargs="+", help="XML files containing MSG01/02/05/07 messages.")
    process_parser.add_argument("--output", "-o", help="Write to this file instead of stdout.")
    process_parser.add_argument("--format", choices=["tsv", "json"], default="tsv")
    process_parser.add_argument("--no-header", action="store_true", help="Omit the TSV header row.")
    process_parser.add_argument(
        "--with-usd", action="store_true", help="Append the converted 'Amount Req (USD)' column."
    )
    process_parser.add_argument(
        "--no-rates", action="store_true", help="Skip fetching exchange rates."
    )
    process_parser.add_argument("--rules", help="YAML file with the classification rule table.")
    process_parser.set_defaults(func=handle_process)

    # Subcommand: parse
    parse_parser = subparsers.add_parser("parse", help="Decode a file and output its messages as JSON.")
    parse_parser.add_argument("file", help="Path to the XML file.")
    parse_parser.set_defaults(func=handle_parse)

    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}", file=sys.stderr)
        sys.exit(1)
    setup_logger("creditlog", settings.log_level)

    args.func(args)


if __name__ == "__main__":
    main()
