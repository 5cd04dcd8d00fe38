"""Unit tests for option symbol parsing and the canonical symbol form."""

import pytest
from datetime import date

from legsync.models.symbols import (
    canonical_symbol,
    clean_strike,
    normalize_symbol_text,
    parse_option_symbol,
)


class TestParseOptionSymbol:
    def test_occ_symbol(self):
        parsed = parse_option_symbol("CRM 260227P00160000")
        assert parsed.ticker == "CRM"
        assert parsed.expiry == date(2026, 2, 27)
        assert parsed.strike == 160.0
        assert parsed.option_type == "P"
        assert parsed.symbol == "CRM 27FEB26 160 P"

    def test_occ_with_padding_and_fractional_strike(self):
        parsed = parse_option_symbol("AAPL  250321C00172500")
        assert parsed.strike == 172.5
        assert parsed.symbol == "AAPL 21MAR25 172.5 C"

    def test_occ_with_prefix(self):
        parsed = parse_option_symbol("OPT CRM 260227P00160000")
        assert parsed.ticker == "CRM"

    def test_statement_symbol_case_insensitive(self):
        parsed = parse_option_symbol("crm 27feb26 160 p")
        assert parsed.symbol == "CRM 27FEB26 160 P"

    @pytest.mark.parametrize("text", [
        None, "", "AAPL", "CRM 261327P00160000", "CRM 30FEB26 160 P", "CRM 27XYZ26 160 P",
    ])
    def test_unparseable(self, text):
        assert parse_option_symbol(text) is None


class TestCanonicalSymbol:
    def test_same_contract_same_symbol(self):
        from_occ = parse_option_symbol("CRM 260227P00160000").symbol
        from_statement = parse_option_symbol("CRM 27FEB26 160.00 P").symbol
        from_fields = canonical_symbol("crm", date(2026, 2, 27), 160, "put")
        assert from_occ == from_statement == from_fields == "CRM 27FEB26 160 P"

    @pytest.mark.parametrize("strike, expected", [
        (160.0, "160"),
        (72.50, "72.5"),
        (0.125, "0.125"),
        (100.00001, "100"),
    ])
    def test_clean_strike(self, strike, expected):
        assert clean_strike(strike) == expected


class TestNormalizeSymbolText:
    def test_option_symbol_canonicalized(self):
        assert normalize_symbol_text("crm 260227p00160000") == "CRM 27FEB26 160 P"

    def test_other_text_trimmed_and_upper_cased(self):
        assert normalize_symbol_text("  weird   text ") == "WEIRD TEXT"
