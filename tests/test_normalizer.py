"""Unit tests for display/storage normalization and lenient field coercion."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.crm.records.coercion import (
    PageParams,
    coerce_positive_int,
    parse_closing_date,
    parse_page_params,
    split_full_name,
    stringify_figure,
)
from src.crm.records.enums import AccountStatus, EmployeeCount, Geo
from src.crm.records.normalizer import to_display, to_storage


# ── Normalizer ───────────────────────────────────────────────────────────────


class TestNormalizer:
    @pytest.mark.parametrize(
        "canonical, display",
        [
            ("ACTIVE_DEAL", "ACTIVE DEAL"),
            ("DO_NOT_CALL", "DO NOT CALL"),
            ("GOLD", "GOLD"),
            ("1-10", "1-10"),
        ],
    )
    def test_to_display(self, canonical, display):
        assert to_display(canonical) == display

    @pytest.mark.parametrize(
        "display, canonical",
        [
            ("Active Deal", "ACTIVE_DEAL"),
            ("  do   not call ", "DO_NOT_CALL"),
            ("north america", "NORTH_AMERICA"),
            ("ACTIVE_DEAL", "ACTIVE_DEAL"),
        ],
    )
    def test_to_storage(self, display, canonical):
        assert to_storage(display) == canonical

    @pytest.mark.parametrize("empty", [None, "", "   "])
    def test_absent_storage_values_are_none(self, empty):
        assert to_storage(empty) is None

    def test_absent_display_values_are_none(self):
        assert to_display(None) is None
        assert to_display("") is None

    def test_storage_of_display_is_identity_on_canonical(self):
        for member in AccountStatus:
            assert to_storage(to_display(member.value)) == member.value

    def test_from_display_accepts_either_form(self):
        assert AccountStatus.from_display("Active deal") is AccountStatus.ACTIVE_DEAL
        assert AccountStatus.from_display("ACTIVE_DEAL") is AccountStatus.ACTIVE_DEAL
        assert EmployeeCount.from_display("500+") is EmployeeCount.XLARGE
        assert Geo.from_display(Geo.EMEA) is Geo.EMEA

    def test_from_display_rejects_unknown(self):
        with pytest.raises(ValueError, match="not a valid AccountStatus"):
            AccountStatus.from_display("Churned")

    def test_from_display_rejects_non_strings(self):
        with pytest.raises(ValueError):
            AccountStatus.from_display(3)

    def test_display_property(self):
        assert AccountStatus.DO_NOT_CALL.display == "DO NOT CALL"


# ── Coercion ─────────────────────────────────────────────────────────────────


class TestSplitFullName:
    def test_first_and_rest(self):
        assert split_full_name("Jane Van Doe") == ("Jane", "Van Doe")

    def test_single_word(self):
        assert split_full_name("Cher") == ("Cher", "")

    def test_explicit_parts_win(self):
        assert split_full_name("Jane Doe", None, "Smith") == ("Jane", "Smith")
        assert split_full_name("Jane Doe", "Janet", None) == ("Janet", "Doe")

    def test_no_name(self):
        assert split_full_name(None) == ("", "")


class TestParseClosingDate:
    def test_date_only_pins_midday_utc(self):
        assert parse_closing_date("2024-06-30") == datetime(2024, 6, 30, 12, tzinfo=timezone.utc)

    def test_full_timestamp_with_z(self):
        assert parse_closing_date("2024-06-30T09:15:00Z") == datetime(
            2024, 6, 30, 9, 15, tzinfo=timezone.utc
        )

    def test_naive_timestamp_is_utc(self):
        parsed = parse_closing_date("2024-06-30T09:15:00")
        assert parsed.tzinfo == timezone.utc

    def test_date_object(self):
        assert parse_closing_date(date(2024, 1, 2)).hour == 12

    @pytest.mark.parametrize("junk", ["", None, "next quarter", "2024-13-45", 12345])
    def test_unparseable_is_none(self, junk):
        assert parse_closing_date(junk) is None


class TestStringifyFigure:
    @pytest.mark.parametrize(
        "raw, stored",
        [
            (50000, "50000"),
            (50000.0, "50000"),
            (0.75, "0.75"),
            ("75%", "75%"),
            (" 1200 ", "1200"),
            ("", None),
            (None, None),
            (True, None),
        ],
    )
    def test_figures(self, raw, stored):
        assert stringify_figure(raw) == stored


class TestPageParams:
    def test_defaults(self):
        assert parse_page_params(None, None) == PageParams(page=1, limit=10)

    def test_garbage_falls_back(self):
        assert parse_page_params("x", "0") == PageParams(page=1, limit=10)

    def test_limit_is_capped(self):
        assert parse_page_params("3", "500", max_limit=100).limit == 100

    def test_huge_page_keeps_offset_in_bigint_range(self):
        params = parse_page_params("99999999999999999999", "10")
        assert params.offset <= 2**63 - 1
        assert params.offset + params.limit > 2**63 - 1

    def test_offset_and_total_pages(self):
        params = PageParams(page=3, limit=10)
        assert params.offset == 20
        assert params.total_pages(21) == 3
        assert params.total_pages(0) == 0

    @pytest.mark.parametrize("raw, expected", [("7", 7), (" 2 ", 2), ("-1", 5), ("1.5", 5)])
    def test_coerce_positive_int(self, raw, expected):
        assert coerce_positive_int(raw, 5) == expected
