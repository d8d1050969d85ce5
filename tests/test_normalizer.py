"""Tests for field-name normalization and the alias tables."""

import pytest

from tradevault.services.coercion import coerce_row
from tradevault.services.normalizer import canonical_key, normalize_fields, slugify_key
from tradevault.utils.constants import ASSET_TYPE_WORDS, DIRECTION_WORDS, FIELD_ALIASES


@pytest.mark.parametrize("raw, slug", [
    ("Symbol", "symbol"),
    ("  Entry Price ", "entry_price"),
    ("Open\tPrice", "open_price"),
    ("Fee ($)", "fee_"),
    ("P&L", "pl"),
    ("qty2", "qty"),
])
def test_slugify_key(raw, slug):
    assert slugify_key(raw) == slug


@pytest.mark.parametrize("raw, canonical", [
    ("Ticker", "symbol"),
    ("instrument", "symbol"),
    ("Side", "direction"),
    ("action", "direction"),
    ("Close Price", "exit_price"),
    ("Shares", "quantity"),
    ("lots", "quantity"),
    ("SL", "stop_loss"),
    ("TakeProfit", "take_profit"),
    ("Fees", "commission"),
    ("Comment", "notes"),
    ("close_date", "exit_date"),
])
def test_canonical_key_aliases(raw, canonical):
    assert canonical_key(raw) == canonical


def test_unknown_keys_pass_through_as_slug():
    assert normalize_fields({"Market Conditions": "choppy", "Setup Grade": "A"}) == {
        "market_conditions": "choppy",
        "setup_grade": "A",
    }


def test_values_are_untouched():
    raw = {"Qty": " 1,000 ", "Entry": "$12.50"}
    assert normalize_fields(raw) == {"quantity": " 1,000 ", "entry_price": "$12.50"}


def test_later_key_wins_on_collision():
    assert normalize_fields({"symbol": "AAPL", "ticker": "MSFT"}) == {"symbol": "MSFT"}


def test_alias_rows_normalize_identically():
    aliased = {"ticker": "aapl", "side": "sell", "qty": "10", "entry": "1", "exit": "2"}
    canonical = {"symbol": "aapl", "direction": "sell", "quantity": "10",
                 "entry_price": "1", "exit_price": "2"}

    assert normalize_fields(aliased) == normalize_fields(canonical)
    assert coerce_row(normalize_fields(aliased)) == coerce_row(normalize_fields(canonical))


def test_empty_row_is_fine():
    assert normalize_fields({}) == {}


@pytest.mark.parametrize("table", [FIELD_ALIASES, DIRECTION_WORDS, ASSET_TYPE_WORDS])
def test_lookup_tables_are_read_only(table):
    with pytest.raises(TypeError):
        table["new"] = "value"
