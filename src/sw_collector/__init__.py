"""
sw-collector - incremental software inventory from package manager history

Extracts install, upgrade, remove and purge events from the apt history log
into an event store and maintains the derived list of installed software
identities for remote attestation.
"""

__version__ = "0.2.0"

from .history import ExtractionEngine, ExtractionResult, ExtractionState, LogSource
from .inventory import InventoryLister
from .remote import Failed, NeedMore, RestClient, Success

__all__ = [
    "ExtractionEngine",
    "ExtractionResult",
    "ExtractionState",
    "InventoryLister",
    "LogSource",
    "RestClient",
    "Success",
    "NeedMore",
    "Failed",
]
