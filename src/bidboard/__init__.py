"""Construction bid pipeline: line-item pricing, estimate status tracking and AI assistance."""

from .config import Config, load_config
from .errors import AIServiceError, BidBoardError, InvalidStatus, InvalidValue, NotFound
from .models import DRAFT, LOST, STATUSES, SUBMITTED, WON, Customer, Estimate, LineItem
from .pricing import PriceBreakdown, grand_total, price_breakdown, subtotal
from .store import EstimateStore

__all__ = [
    "Config",
    "load_config",
    "AIServiceError",
    "BidBoardError",
    "InvalidStatus",
    "InvalidValue",
    "NotFound",
    "DRAFT",
    "SUBMITTED",
    "WON",
    "LOST",
    "STATUSES",
    "Customer",
    "Estimate",
    "LineItem",
    "PriceBreakdown",
    "grand_total",
    "price_breakdown",
    "subtotal",
    "EstimateStore",
]
