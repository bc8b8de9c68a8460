"""Command line front end: render documents, spell amounts, compute totals."""

import argparse
import json
import logging
import sys
from pathlib import Path

from .amounts import amount_to_words_fr, currency_name, to_millimes
from .config import get_settings
from .exceptions import DocumentError, InvalidDocumentError, RenderError
from .kinds import DocumentKind, classify
from .logging_utils import setup_logger
from .models import parse_decimal
from .templates import FILENAME_PREFIXES, GENERATORS, load_document, pdf_filename
from .totals import compute_totals

logger = logging.getLogger(__name__)

KIND_CHOICES = {
    "quote": DocumentKind.QUOTE,
    "invoice": DocumentKind.INVOICE,
    "credit-note": DocumentKind.CREDIT_NOTE,
    "delivery": DocumentKind.DELIVERY_NOTE,
    "purchase-order": DocumentKind.PURCHASE_ORDER,
    "reception": DocumentKind.RECEPTION,
    "purchase-invoice": DocumentKind.PURCHASE_INVOICE,
    "purchase-return": DocumentKind.PURCHASE_RETURN,
}


def read_json(path):
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise InvalidDocumentError(f"Cannot read {path}: {e.strerror}") from e
    except json.JSONDecodeError as e:
        raise InvalidDocumentError(f"{path} is not valid JSON: {e}") from e


def cmd_render(args, settings):
    data = read_json(args.input)
    company = read_json(args.company)
    document = load_document(data)
    kind = KIND_CHOICES[args.kind] if args.kind else classify(document.document_type)

    pdf = GENERATORS[kind](document, company, settings=settings, with_stamp=not args.no_stamp)

    output = Path(args.output) if args.output else Path(pdf_filename(FILENAME_PREFIXES[kind], document))
    try:
        output.write_bytes(pdf)
    except OSError as e:
        raise RenderError(document.numero, f"cannot write {output}: {e.strerror}") from e
    logger.info("Wrote %s (%d bytes)", output, len(pdf))
    print(output)
    return 0


def cmd_words(args, settings):
    code = args.currency or settings.document.default_currency
    amount = parse_decimal(args.amount, default=None)
    if amount is None:
        raise InvalidDocumentError(f"Not an amount: {args.amount}")
    amount = to_millimes(amount)
    print(amount_to_words_fr(amount, currency_name(code)))
    return 0


def cmd_totals(args, settings):
    document = load_document(read_json(args.input))
    kind = KIND_CHOICES[args.kind] if args.kind else classify(document.document_type)
    totals = compute_totals(document, kind, settings.tax)
    print(json.dumps(totals.as_dict(), indent=2, ensure_ascii=False))
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        prog="erp-documents",
        description="Commercial document PDF generator (devis, factures, avoirs, bons)")
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                        help="Override the configured logging level")
    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", help="Render a document to PDF")
    render.add_argument("input", help="Document JSON file")
    render.add_argument("--company", required=True, help="Company JSON file")
    render.add_argument("--kind", choices=sorted(KIND_CHOICES),
                        help="Document kind; inferred from documentType when omitted")
    render.add_argument("--no-stamp", action="store_true", help="Leave out the company stamp")
    render.add_argument("--output", "-o", help="Output PDF path")
    render.set_defaults(func=cmd_render)

    words = sub.add_parser("words", help="Spell out an amount in French")
    words.add_argument("amount", help="Amount, e.g. 1250.500")
    words.add_argument("--currency", help="Currency code (default from settings)")
    words.set_defaults(func=cmd_words)

    totals = sub.add_parser("totals", help="Compute document totals as JSON")
    totals.add_argument("input", help="Document JSON file")
    totals.add_argument("--kind", choices=sorted(KIND_CHOICES))
    totals.set_defaults(func=cmd_totals)

    return parser


def main(argv=None):
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logger(args.log_level or settings.logging.level, settings.logging.file)

    try:
        return args.func(args, settings)
    except DocumentError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
