"""Command-line front end for the master plan documents API.

    masterplan check DOC-001
    masterplan add --doc-id DOC-001 --doc-type Policy --title "Site plan" \
        --revision 1.0 --year 2024 --owner Ops --status Draft --file plan.pdf
    masterplan list --search policy --page 2
    masterplan show 12
    masterplan download DOC-001 --out ./downloads
"""
import argparse
import logging
import os
import sys

from .api import DEFAULT_API_URL, ClientError, MasterPlanClient
from .forms import AddDocumentForm
from .listing import PAGE_SIZE, DocumentListing

COLUMNS = (
    ("doc_id", "Document ID", 14),
    ("doc_title", "Title", 28),
    ("doc_type", "Type", 14),
    ("revision_no", "Rev", 6),
    ("year", "Year", 6),
    ("owner", "Owner", 14),
    ("status", "Status", 10),
    ("is_uploaded", "File", 5),
)


def _cell(value, width: int) -> str:
    if isinstance(value, bool):
        text = "yes" if value else "-"
    else:
        text = "" if value is None else str(value)
    if len(text) > width:
        text = text[: width - 1] + "…"
    return text.ljust(width)


def _print_table(rows: list[dict]) -> None:
    print("  ".join(_cell(label, w) for _, label, w in COLUMNS))
    print("  ".join("-" * w for _, _, w in COLUMNS))
    for row in rows:
        print("  ".join(_cell(row.get(key), w) for key, _, w in COLUMNS))


def cmd_check(client: MasterPlanClient, args) -> int:
    exists = client.check_doc_id_exists(args.doc_id)
    print(f"{args.doc_id}: {'already exists' if exists else 'available'}")
    return 1 if exists else 0


def cmd_add(client: MasterPlanClient, args) -> int:
    form = AddDocumentForm(client)
    form.update(
        doc_id=args.doc_id,
        doc_type=args.doc_type,
        doc_title=args.title,
        revision_no=args.revision,
        year=args.year,
        quarter=args.quarter,
        owner=args.owner,
        status=args.status,
        doc_status=args.doc_status,
    )
    form.blur_doc_id()
    if not form.choose_file(args.file):
        print(f"✗ {form.result.message}", file=sys.stderr)
        return 1
    if not form.can_submit:
        for name, message in form.errors.items():
            print(f"✗ {name}: {message}", file=sys.stderr)
        return 1
    result = form.submit()
    if result.type == "error":
        print(f"✗ {result.message}", file=sys.stderr)
        return 1
    print(f"✓ {result.message}")
    return 0


def cmd_list(client: MasterPlanClient, args) -> int:
    listing = DocumentListing(client, page_size=args.page_size)
    listing.refresh()
    listing.search(args.search)
    rows = listing.page(args.page - 1)
    _print_table(rows)
    print()
    print(f"{listing.summary()} (page {listing.page_index + 1} of {listing.page_count})")
    return 0


def cmd_show(client: MasterPlanClient, args) -> int:
    doc = client.get_document(args.id)
    width = max(len(k) for k in doc)
    for key, value in doc.items():
        print(f"{key.ljust(width)}  {'' if value is None else value}")
    return 0


def cmd_download(client: MasterPlanClient, args) -> int:
    listing = DocumentListing(client)
    listing.refresh()
    doc = next((d for d in listing.documents if d.get("doc_id") == args.doc_id), None)
    if doc is None:
        print(f"✗ Document {args.doc_id} not found", file=sys.stderr)
        return 1
    if not listing.is_downloadable(doc):
        print(f"✗ Document {args.doc_id} has no attached file", file=sys.stderr)
        return 1
    path = listing.download(doc, args.out)
    print(f"✓ saved {path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="masterplan", description="Master plan document registry client")
    parser.add_argument(
        "--api-url",
        default=os.getenv("MASTERPLAN_API_URL", DEFAULT_API_URL),
        help="API base URL (env MASTERPLAN_API_URL)",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("check", help="check whether a document ID is taken")
    p.add_argument("doc_id")
    p.set_defaults(func=cmd_check)

    p = sub.add_parser("add", help="upload a file and register its document")
    p.add_argument("--doc-id", required=True)
    p.add_argument("--doc-type", required=True)
    p.add_argument("--title", required=True)
    p.add_argument("--revision", required=True)
    p.add_argument("--year", type=int, required=True)
    p.add_argument("--quarter")
    p.add_argument("--owner", required=True)
    p.add_argument("--status", required=True)
    p.add_argument("--doc-status", default="Open")
    p.add_argument("--file", required=True)
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("list", help="list documents")
    p.add_argument("--search", default="")
    p.add_argument("--page", type=int, default=1)
    p.add_argument("--page-size", type=int, default=PAGE_SIZE)
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="show one document by numeric id")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("download", help="download the file attached to a document")
    p.add_argument("doc_id")
    p.add_argument("--out", default=".")
    p.set_defaults(func=cmd_download)
    return parser


def main(argv: list[str] | None = None, client: MasterPlanClient | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    own_client = client is None
    client = client or MasterPlanClient(args.api_url)
    try:
        return args.func(client, args)
    except ClientError as e:
        print(f"✗ {e.message}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 1
    finally:
        if own_client:
            client.close()


if __name__ == "__main__":
    sys.exit(main())
