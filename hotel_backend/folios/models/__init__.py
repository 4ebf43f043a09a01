from .folio import Folio
from .folio_item import FolioItem
from .folio_payment import FolioPayment
from .close_override import FolioCloseOverride
from .sequence import DocumentSequence

__all__ = [
    "Folio",
    "FolioItem",
    "FolioPayment",
    "FolioCloseOverride",
    "DocumentSequence",
]
