"""
Command line tools for the site catalog

Commands:
    migrate   Run Alembic migrations to head
    seed      Load products for one site from a CSV file
    code      Print the product code of a product

Usage:
    site-catalog migrate
    site-catalog seed --site-id 23 --csv datasets/products.csv
    site-catalog code --site-id 23 --product-id 7

CSV columns for ``seed``: name, description, price, member_price, inventory,
category. Empty category leaves the product unlinked; unknown categories are
created as top-level categories of the site.
"""

import argparse
import csv
import logging
import re
import sys
import time
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from sitecatalog.config import settings
from sitecatalog.db.database import build_engine, init_db
from sitecatalog.exceptions import CatalogError, ValidationError
from sitecatalog.logging_setup import configure_logging
from sitecatalog.store import CatalogStore

logger = logging.getLogger(__name__)


def parse_price(price_str: str) -> Optional[int]:
    """Parse a price string to whole currency units; None when empty"""
    if not price_str:
        return None

    # Remove currency symbols and whitespace
    price_str = re.sub(r'[^\d.,]', '', str(price_str).strip())
    if not price_str:
        return None

    if ',' in price_str and '.' in price_str:
        # Could be "1,234.56" or "1.234,56"
        if price_str.rindex(',') > price_str.rindex('.'):
            price_str = price_str.replace('.', '').replace(',', '.')
        else:
            price_str = price_str.replace(',', '')
    elif ',' in price_str:
        parts = price_str.split(',')
        if len(parts) == 2 and len(parts[1]) <= 2:
            price_str = price_str.replace(',', '.')
        else:
            price_str = price_str.replace(',', '')

    try:
        return int(Decimal(price_str).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        raise ValidationError(f"Unparseable price: {price_str!r}") from None


def load_csv(file_path: str) -> List[Dict[str, str]]:
    """Load CSV file and return list of stripped rows"""
    logger.info(f"Reading CSV file: {file_path}")
    start_time = time.time()
    with open(file_path, 'r', encoding='utf-8', newline='') as f:
        reader = csv.DictReader(f)
        rows = [{k: (v.strip() if v else '') for k, v in row.items()} for row in reader]
    logger.info(f"Loaded {len(rows):,} rows from CSV in {time.time() - start_time:.2f}s")
    return rows


def map_row(row: Dict[str, str]) -> Dict[str, object]:
    """Map one CSV row to product fields"""
    name = row.get('name', '')
    if not name:
        raise ValidationError("name is required")
    product = {
        'name': name[:255],
        'description': row.get('description') or None,
        'price': parse_price(row.get('price', '')) or 0,
        'member_price': parse_price(row.get('member_price', '')),
    }
    inventory = row.get('inventory', '')
    if inventory:
        if not inventory.isdigit():
            raise ValidationError(f"inventory must be a non-negative integer, got {inventory!r}")
        product['inventory'] = int(inventory)
    return product


def seed_rows(store: CatalogStore, rows: List[Dict[str, str]], actor: int = 0) -> Dict[str, int]:
    """Create one product per row; each row is its own transaction"""
    categories = {c.name: c.category_id for c in store.categories.list_categories() if c.parent_id is None}
    stats = {'created': 0, 'failed': 0, 'categories_created': 0}

    for line, row in enumerate(rows, start=2):
        try:
            product = map_row(row)
            category_name = row.get('category', '')
            with store.transaction():
                category_id = categories.get(category_name) if category_name else None
                if category_name and category_id is None:
                    category_id = store.categories.create({'name': category_name[:255]}, actor)
                product_id = store.products.create(product, actor)
                if category_id is not None:
                    store.product_categories.assign(product_id, category_id, actor)
        except ValidationError as e:
            logger.warning(f"Skipping CSV line {line}: {e}")
            stats['failed'] += 1
            continue

        if category_name and category_name not in categories:
            categories[category_name] = category_id
            stats['categories_created'] += 1
        stats['created'] += 1
        logger.debug(f"Created product {store.product_coding(product_id)} from line {line}")

    return stats


def _open_session(database_url: Optional[str]) -> Session:
    return sessionmaker(autoflush=False, bind=build_engine(database_url))()


def cmd_migrate(args) -> int:
    init_db(args.database_url, max_retries=args.max_retries, retry_delay=args.retry_delay)
    return 0


def cmd_seed(args) -> int:
    rows = load_csv(args.csv)
    if not rows:
        logger.error(f"CSV file is empty: {args.csv}")
        return 1
    if args.count is not None:
        rows = rows[:args.count]

    db = _open_session(args.database_url)
    try:
        store = CatalogStore.for_site(db, args.site_id)
        logger.info(f"Seeding {len(rows)} products for site {args.site_id} on shard {store.shard}")
        stats = seed_rows(store, rows, actor=args.actor)
    finally:
        db.close()

    logger.info(
        f"Seeding finished: {stats['created']} created, {stats['failed']} failed, "
        f"{stats['categories_created']} new categories"
    )
    return 0 if stats['failed'] == 0 else 1


def cmd_code(args) -> int:
    db = _open_session(args.database_url)
    try:
        store = CatalogStore.for_site(db, args.site_id)
        print(store.product_coding(args.product_id))
    finally:
        db.close()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='site-catalog',
        description='Sharded site catalog tools',
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument('--database-url', default=None, help='Database URL (default: DATABASE_URL)')
    parser.add_argument('--log-level', default=None, help='Log level (default: LOG_LEVEL)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    migrate = subparsers.add_parser('migrate', help='Run migrations to head')
    migrate.add_argument('--max-retries', type=int, default=30, help='Database connection attempts')
    migrate.add_argument('--retry-delay', type=float, default=2, help='Delay between attempts (seconds)')
    migrate.set_defaults(func=cmd_migrate)

    seed = subparsers.add_parser('seed', help='Load products from a CSV file')
    seed.add_argument('--site-id', type=int, required=True, help='Site that owns the products')
    seed.add_argument('--csv', required=True, help='Path to CSV file')
    seed.add_argument('--count', type=int, default=None, help='Only load the first N rows')
    seed.add_argument('--actor', type=int, default=0, help='Acting user id (0 = system)')
    seed.set_defaults(func=cmd_seed)

    code = subparsers.add_parser('code', help='Print a product code')
    code.add_argument('--site-id', type=int, required=True)
    code.add_argument('--product-id', type=int, required=True)
    code.set_defaults(func=cmd_code)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    logger.debug(f"{settings.app_name} {args.command}")
    try:
        return args.func(args)
    except CatalogError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
