"""Entry point and scheduler for Stockwatch."""

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parents[1] / ".env")

from apscheduler.schedulers.blocking import BlockingScheduler

from stockwatch import config
from stockwatch.checker import CheckOrchestrator
from stockwatch.errors import DuplicateProduct, ProductNotFound
from stockwatch.fetchers import ContentFetcher, load_channels
from stockwatch.notifiers import RestockNotifier
from stockwatch.scheduler import BatchScheduler
from stockwatch.storage import ProductStore

logger = logging.getLogger(__name__)


def setup_logging() -> None:
    level = getattr(logging, config.get_log_level(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build_checker(store: ProductStore, notifier: RestockNotifier) -> CheckOrchestrator:
    """Wire fetcher, classifier and notifier from environment settings."""
    fetcher = ContentFetcher(
        channels=load_channels(config.get_channels_file(), config.use_browser_fallback()),
        direct_timeout=config.get_direct_timeout(),
        min_content_length=config.get_min_content_length(),
    )
    return CheckOrchestrator(store, fetcher, notifier)


def _print_product(product) -> None:
    checked = product.last_checked_at.strftime("%Y-%m-%d %H:%M") if product.last_checked_at else "never"
    confidence = product.confidence.value if product.confidence else "-"
    print(
        f"[{product.id}] {product.name} ({product.brand}) "
        f"{product.status.value} / {confidence} - checked {checked}"
    )
    print(f"     {product.url}")
    if product.evidence_phrases:
        print(f"     evidence: {', '.join(product.evidence_phrases)}")


def cmd_run(store: ProductStore, notifier: RestockNotifier, args) -> int:
    """Warm-up sweep shortly after start, then periodic sweeps until interrupted."""
    scheduler = BatchScheduler(
        store,
        build_checker(store, notifier),
        interval_minutes=config.get_check_interval_minutes(),
        pacing_seconds=config.get_pacing_seconds(),
        warmup_seconds=config.get_warmup_seconds(),
        scheduler=BlockingScheduler(),
    )
    logger.info("🚀 Stockwatch started, tracking %d products", len(store.get_all()))
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down")
    return 0


def cmd_add(store: ProductStore, notifier: RestockNotifier, args) -> int:
    try:
        product = store.add_product(args.name, args.brand, args.url)
    except DuplicateProduct as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Added product {product.id}: {product.name}")
    if args.check:
        _print_product(build_checker(store, notifier).check_product(product))
    return 0


def cmd_remove(store: ProductStore, notifier: RestockNotifier, args) -> int:
    if not store.delete_product(args.id):
        print(f"Error: product {args.id} not found", file=sys.stderr)
        return 1
    print(f"Removed product {args.id}")
    return 0


def cmd_list(store: ProductStore, notifier: RestockNotifier, args) -> int:
    products = store.get_all()
    if not products:
        print("No products tracked yet.")
    for product in products:
        _print_product(product)
    return 0


def cmd_history(store: ProductStore, notifier: RestockNotifier, args) -> int:
    for record in store.get_history(args.id, limit=args.limit):
        confidence = record.confidence.value if record.confidence else "-"
        print(
            f"{record.checked_at:%Y-%m-%d %H:%M:%S}  {record.status.value:<12} {confidence:<6} "
            f"{', '.join(record.evidence_phrases)}"
        )
    return 0


def cmd_check(store: ProductStore, notifier: RestockNotifier, args) -> int:
    try:
        product = build_checker(store, notifier).check_product_by_id(args.id)
    except ProductNotFound as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    _print_product(product)
    return 0


def cmd_check_all(store: ProductStore, notifier: RestockNotifier, args) -> int:
    scheduler = BatchScheduler(
        store,
        build_checker(store, notifier),
        pacing_seconds=config.get_pacing_seconds(),
    )
    summary = scheduler.run_sweep()
    if summary is None or summary.aborted:
        return 1
    print(
        f"{summary.total} checked: {summary.in_stock} in stock, {summary.out_of_stock} out of stock, "
        f"{summary.errors} errors, {len(summary.failed_ids)} failed"
    )
    return 0


def cmd_stats(store: ProductStore, notifier: RestockNotifier, args) -> int:
    for key, value in store.get_stats().items():
        print(f"{key:<14}{value}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stockwatch", description="Track product pages and alert on restocks.")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("run", help="run sweeps on a schedule").set_defaults(func=cmd_run)

    p = sub.add_parser("add", help="track a product page")
    p.add_argument("name")
    p.add_argument("brand")
    p.add_argument("url")
    p.add_argument("--check", action="store_true", help="check it right away")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("remove", help="stop tracking a product")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_remove)

    sub.add_parser("list", help="show tracked products").set_defaults(func=cmd_list)

    p = sub.add_parser("history", help="show recent checks of a product")
    p.add_argument("id", type=int)
    p.add_argument("--limit", type=int, default=20)
    p.set_defaults(func=cmd_history)

    p = sub.add_parser("check", help="check one product now")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_check)

    sub.add_parser("check-all", help="check every product now").set_defaults(func=cmd_check_all)
    sub.add_parser("stats", help="count products per status").set_defaults(func=cmd_stats)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging()

    store = ProductStore(config.get_db_path())
    store.init_db()
    notifier = RestockNotifier()
    try:
        return args.func(store, notifier, args)
    finally:
        notifier.close()


if __name__ == "__main__":
    sys.exit(main())
