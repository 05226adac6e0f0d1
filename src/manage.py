"""PrintStream management CLI.

Creates and drops the storefront database schema and refreshes the catalogue
mirror from the fulfillment provider.

Usage:
    python src/manage.py setup-db          # Create all tables
    python src/manage.py drop-db           # Drop all tables
    python src/manage.py sync-catalogue    # Pull products from the provider
"""

import argparse
import sys


def setup_database():
    """Create the storefront database schema."""
    from storefront.domain import storefront
    from storefront.utils.db import setup_db

    print("Initializing storefront domain...")
    storefront.init()
    print("Creating storefront database schema...")
    setup_db(storefront)
    print("Done.")


def drop_database():
    """Drop the storefront database schema."""
    from storefront.domain import storefront
    from storefront.utils.db import drop_db

    print("Initializing storefront domain...")
    storefront.init()
    print("Dropping storefront database schema...")
    drop_db(storefront)
    print("Done.")


def sync_catalogue():
    """Refresh the catalogue mirror from the configured provider."""
    from storefront.catalogue.sync import sync_catalogue as run_sync
    from storefront.domain import storefront

    storefront.init()
    with storefront.domain_context():
        summary = run_sync()
    print(f"Synced {summary['synced']} products, withdrew {summary['withdrawn']}.")


def main():
    parser = argparse.ArgumentParser(description="PrintStream management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("sync-catalogue", help="Refresh the catalogue mirror from the provider")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "sync-catalogue":
        sync_catalogue()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
