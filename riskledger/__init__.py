"""Financial ledger and risk compliance engine for trading accounts."""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
