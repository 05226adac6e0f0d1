"""Storefront bounded context: catalogue mirror, carts, and order reconciliation.

Orders are reconciled across three systems of record: the local database,
the payment processor, and the print-on-demand fulfillment provider.
"""

from protean.domain import Domain

from storefront.utils.logging import configure_logging, get_logger

# Configure logging for the application
configure_logging(log_file_prefix="printstream")

# Get logger for this module
logger = get_logger(__name__)

# Domain Composition Root
storefront = Domain(name="storefront")
