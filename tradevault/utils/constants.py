"""Canonical trade vocabulary and the lookup tables used to normalize sources."""

from types import MappingProxyType

ASSET_TYPES = ("stock", "crypto", "forex", "futures", "options")
DIRECTIONS = ("long", "short")

DEFAULT_ASSET_TYPE = "stock"
DEFAULT_DIRECTION = "long"

# Fractional digits kept on every stored pnl
PNL_DECIMALS = 8

# Provenance tags for non-broker sources
SOURCE_MANUAL = "manual"
SOURCE_CSV = "csv_import"

# Loose column/field names -> canonical field names
FIELD_ALIASES = MappingProxyType({
    "ticker": "symbol",
    "name": "symbol",
    "instrument": "symbol",
    "type": "asset_type",
    "class": "asset_type",
    "side": "direction",
    "action": "direction",
    "entry": "entry_price",
    "open": "entry_price",
    "open_price": "entry_price",
    "exit": "exit_price",
    "close": "exit_price",
    "close_price": "exit_price",
    "qty": "quantity",
    "size": "quantity",
    "units": "quantity",
    "shares": "quantity",
    "lots": "quantity",
    "entry_time": "entry_date",
    "open_date": "entry_date",
    "exit_time": "exit_date",
    "close_date": "exit_date",
    "sl": "stop_loss",
    "stoploss": "stop_loss",
    "tp": "take_profit",
    "takeprofit": "take_profit",
    "fee": "commission",
    "fees": "commission",
    "note": "notes",
    "comment": "notes",
})

DIRECTION_WORDS = MappingProxyType({
    "buy": "long",
    "b": "long",
    "long": "long",
    "sell": "short",
    "s": "short",
    "short": "short",
})

ASSET_TYPE_WORDS = MappingProxyType({
    "equities": "stock",
    "equity": "stock",
    "shares": "stock",
    "fx": "forex",
    "currency": "forex",
    "coin": "crypto",
    "cryptocurrency": "crypto",
    "future": "futures",
    "option": "options",
})

NUMERIC_FIELDS = ("entry_price", "exit_price", "quantity")
OPTIONAL_NUMERIC_FIELDS = ("stop_loss", "take_profit")
TEXT_FIELDS = ("entry_date", "exit_date", "strategy", "notes", "market_conditions")

# Columns offered in the downloadable CSV template
TEMPLATE_COLUMNS = (
    "symbol",
    "asset_type",
    "direction",
    "entry_price",
    "exit_price",
    "quantity",
    "entry_date",
    "exit_date",
    "strategy",
    "commission",
)

CSV_TEMPLATE = "\n".join([
    ",".join(TEMPLATE_COLUMNS),
    "AAPL,stock,long,178.50,182.30,100,2025-01-10,2025-01-10,Breakout,2.00",
])
