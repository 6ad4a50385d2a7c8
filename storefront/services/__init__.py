"""Service layer modules."""

from .notifier import ChangeFeed, ChangeNotifier, LoggingChangeNotifier, NotifierGroup, RateChange
from .price_projector import DisplayPrice, calculation_example, format_dual_price, format_price, project
from .rate_admin import (
    RateValidationError,
    activate_exchange_rate,
    list_exchange_rate_history,
    validate_exchange_rates,
)
from .rate_cache import CacheEntry, RateCache
from .synchronizer import (
    RateSynchronizer,
    RefreshOutcome,
    get_synchronizer,
    init_synchronizer,
    read_server_snapshot,
)
from .ticker import APSchedulerTicker, Ticker
