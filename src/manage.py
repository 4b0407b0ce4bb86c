"""Checkout stock database management CLI.

Creates, drops and seeds the stock level table behind the SQL stock store.
The target database comes from CHECKOUT_STOCK_DATABASE_URI unless --uri is
given.

Usage:
    python src/manage.py setup-stock-db                 # Create the stock table
    python src/manage.py drop-stock-db                  # Drop the stock table
    python src/manage.py set-stock PRODUCT_ID 25 --variant VARIANT_ID
"""

import argparse
import sys

from checkout.config import get_settings
from checkout.inventory.stock.sqlalchemy_adapter import SqlAlchemyStockStore
from checkout.utils.logging import configure_logging


def _store(uri=None):
    uri = uri or get_settings().stock_database_uri
    if not uri:
        print("No stock database configured. Set CHECKOUT_STOCK_DATABASE_URI or pass --uri.")
        sys.exit(1)
    return SqlAlchemyStockStore(uri)


def setup_stock_db(uri=None):
    store = _store(uri)
    print("Creating stock schema...")
    store.create_schema()
    print("Done.")


def drop_stock_db(uri=None):
    store = _store(uri)
    print("Dropping stock schema...")
    store.drop_schema()
    print("Done.")


def set_stock(product_id, quantity, variant_id=None, uri=None):
    store = _store(uri)
    store.set_level(product_id, variant_id, quantity)
    print(f"Stock for {product_id}/{variant_id or '-'} set to {quantity}.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Checkout stock database management")
    parser.add_argument("--uri", help="SQLAlchemy database URI (default: CHECKOUT_STOCK_DATABASE_URI)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-stock-db", help="Create the stock level table")
    subparsers.add_parser("drop-stock-db", help="Drop the stock level table")

    set_parser = subparsers.add_parser("set-stock", help="Overwrite the stock level of a product or variant")
    set_parser.add_argument("product_id")
    set_parser.add_argument("quantity", type=int)
    set_parser.add_argument("--variant", dest="variant_id", default=None)

    args = parser.parse_args(argv)
    configure_logging(log_dir=None)

    if args.command == "setup-stock-db":
        setup_stock_db(args.uri)
    elif args.command == "drop-stock-db":
        drop_stock_db(args.uri)
    elif args.command == "set-stock":
        if args.quantity < 0:
            parser.error("quantity must not be negative")
        set_stock(args.product_id, args.quantity, args.variant_id, args.uri)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
