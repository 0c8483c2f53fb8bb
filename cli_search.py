"""Terminal client that reuses the in-process search logic."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Iterable

from product_search.config import settings
from product_search.search_service import SearchService
from product_search.filters import SortKey
from product_search.fuzzy import FuzzyMatcher

GREEN = "\033[92m"
RED = "\033[91m"
RESET = "\033[0m"


def build_service(catalog_path: Path | None) -> SearchService:
    service = SearchService(matcher=FuzzyMatcher(threshold=settings.fuzzy_threshold))
    service.reload(str(catalog_path) if catalog_path else None)
    return service


def interactive_shell(service: SearchService, args: argparse.Namespace) -> None:
    print("Interactive product search. Type 'exit' to quit.")
    while True:
        try:
            query = input("> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            return
        if query.lower() in {"exit", "quit"}:
            return
        response = service.search(query, **search_options(args))
        pretty_print_response(query, response)


def search_options(args: argparse.Namespace) -> dict:
    return {
        "sort": args.sort,
        "page": args.page,
        "page_size": args.page_size,
        "brand": args.brand,
        "category": args.category,
        "min_price": args.min_price,
        "max_price": args.max_price,
    }


def _format_price(price: object) -> str:
    return f"${price:.2f}" if isinstance(price, (int, float)) else "-"


def pretty_print_response(query: str, payload: dict) -> None:
    items = payload.get("items", [])
    took = float(payload.get("took_ms", 0))
    color = GREEN if took < 200 else RED
    took_label = f"{color}{took:.1f} ms{RESET}"
    parsed = payload.get("parsed", {})
    print(
        f"Query: {query!r} | parsed: {parsed.get('formatted')!r} | "
        f"results: {payload.get('totalResults', 0)} | page {payload.get('currentPage')} | "
        f"more: {payload.get('hasMore')} | took: {took_label}"
    )
    for idx, item in enumerate(items, start=1):
        print(f"  {idx:02d}. {item.get('id')} | {_format_price(item.get('price'))} | {item.get('name')}")


def batch_mode(service: SearchService, file_path: Path, args: argparse.Namespace) -> None:
    with file_path.open("r", encoding="utf-8") as fh:
        for line in fh:
            query = line.strip()
            if not query:
                continue
            response = service.search(query, **search_options(args))
            pretty_print_response(query, response)


def main(argv: Iterable[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="CLI client for the product query search")
    parser.add_argument("query", nargs="?", help="Query string. If omitted, starts REPL mode.")
    parser.add_argument("--batch", type=Path, help="File with queries to execute line by line")
    parser.add_argument("--catalog", type=Path, help="Catalog JSON file (defaults to CATALOG_PATH)")
    parser.add_argument("--sort", choices=[key.value for key in SortKey], help="Explicit sort key")
    parser.add_argument("--page", type=int, default=1)
    parser.add_argument("--page-size", type=int, default=settings.page_size)
    parser.add_argument("--brand", help="Only products of this brand")
    parser.add_argument("--category", help="Only products in this category")
    parser.add_argument("--min-price", type=float)
    parser.add_argument("--max-price", type=float)
    args = parser.parse_args(list(argv) if argv is not None else None)

    service = build_service(args.catalog)
    if args.batch:
        batch_mode(service, args.batch, args)
        return 0
    if args.query is not None:
        response = service.search(args.query, **search_options(args))
        pretty_print_response(args.query, response)
        return 0
    interactive_shell(service, args)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
