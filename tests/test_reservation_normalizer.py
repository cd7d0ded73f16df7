"""
Tests for the Reservation Normalizer

Tests cover:
- Checkout convention for booked/free records (end - 1 day)
- Inclusive convention for option/blocked records
- Dropping malformed, unknown-status and degenerate records
- Output grouping and ordering
- Property extraction
"""

import pytest
from datetime import date

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from chalet_availability.models.reservation import Status, Property
from chalet_availability.services.reservation_normalizer import (
    normalize,
    normalize_feed,
    normalize_records,
    extract_properties,
    group_by_property,
    parse_day,
    NormalizationReport,
)


def record(start, end, status, **extra):
    return {"start": start, "end": end, "status": status, **extra}


class TestEndpointConventions:
    """Status-specific end day adjustment"""

    def test_booked_end_is_checkout_day(self):
        """booked 11-10..11-13 occupies 11-10..11-12"""
        [r] = normalize_records("P1", [record("2025-11-10", "2025-11-13", "booked")])

        assert r.status == Status.CONFIRMED
        assert r.start_day == date(2025, 11, 10)
        assert r.end_day == date(2025, 11, 12)

    def test_booked_single_day_keeps_start(self):
        """start == end keeps the single day"""
        [r] = normalize_records("P1", [record("2025-11-10", "2025-11-10", "booked")])

        assert r.start_day == date(2025, 11, 10)
        assert r.end_day == date(2025, 11, 10)

    def test_booked_one_night(self):
        """One night: checkout the next day, occupies only the first day"""
        [r] = normalize_records("P1", [record("2025-11-10", "2025-11-11", "booked")])

        assert r.end_day == date(2025, 11, 10)

    def test_free_uses_checkout_convention(self):
        [r] = normalize_records("P1", [record("2025-11-01", "2025-11-08", "free", price_total=4000)])

        assert r.status == Status.FREE
        assert r.end_day == date(2025, 11, 7)
        assert r.price == 4000

    @pytest.mark.parametrize("code,expected", [
        ("option", Status.OPTION),
        ("blocked", Status.BLOCKED),
    ])
    def test_option_and_blocked_are_inclusive(self, code, expected):
        [r] = normalize_records("P1", [record("2025-11-20", "2025-11-22", code)])

        assert r.status == expected
        assert r.end_day == date(2025, 11, 22)

    def test_status_codes_are_case_insensitive(self):
        [r] = normalize_records("P1", [record("2025-11-20", "2025-11-22", " Option ")])

        assert r.status == Status.OPTION

    def test_legacy_price_key(self):
        """price_total_eur is read as the price"""
        [r] = normalize_records("P1", [record("2025-11-01", "2025-11-08", "free", price_total_eur=7500)])

        assert r.price == 7500

    def test_datetime_strings_use_calendar_day(self):
        [r] = normalize_records("P1", [record("2025-11-10T15:00:00", "2025-11-13T10:00:00", "booked")])

        assert r.start_day == date(2025, 11, 10)
        assert r.end_day == date(2025, 11, 12)


class TestDroppedRecords:
    """Malformed records are skipped without failing the batch"""

    def test_unknown_status_is_dropped(self):
        report = NormalizationReport()
        result = normalize_records("P1", [
            record("2025-11-10", "2025-11-13", "maintenance"),
            record("2025-11-20", "2025-11-22", "option"),
        ], report)

        assert len(result) == 1
        assert result[0].status == Status.OPTION
        assert report.accepted == 1
        assert report.dropped["unknown_status"] == 1

    def test_unparseable_date_is_dropped(self):
        report = NormalizationReport()
        result = normalize_records("P1", [record("2025-13-45", "2025-11-13", "booked")], report)

        assert result == []
        assert report.dropped["invalid_date"] == 1

    def test_missing_field_is_dropped(self):
        report = NormalizationReport()
        result = normalize_records("P1", [{"start": "2025-11-10", "status": "booked"}], report)

        assert result == []
        assert report.dropped["invalid_record"] == 1

    def test_non_numeric_price_is_dropped(self):
        report = NormalizationReport()
        result = normalize_records("P1", [record("2025-11-01", "2025-11-08", "free", price_total="cheap")], report)

        assert result == []
        assert report.dropped["invalid_record"] == 1

    @pytest.mark.parametrize("item", [None, "garbage", 42, ["2025-11-10", "2025-11-13", "booked"]])
    def test_non_object_record_is_dropped(self, item):
        report = NormalizationReport()
        result = normalize_records("P1", [item, record("2025-11-20", "2025-11-22", "option")], report)

        assert [r.status for r in result] == [Status.OPTION]
        assert report.dropped["invalid_record"] == 1

    def test_non_object_record_keeps_rest_of_feed(self):
        result = normalize([
            {"id": "P1", "label": "Chalet Bleu", "records": ["garbage", record("2025-11-10", "2025-11-13", "booked")]},
            {"id": "P2", "label": "Alpage", "records": [None]},
        ])

        assert [(r.property_id, r.status) for r in result] == [("P1", Status.CONFIRMED)]

    @pytest.mark.parametrize("price", [float("nan"), float("inf"), float("-inf"), "NaN"])
    def test_non_finite_price_is_dropped(self, price):
        report = NormalizationReport()
        result = normalize_records("P1", [record("2025-11-01", "2025-11-08", "free", price_total=price)], report)

        assert result == []
        assert report.dropped["invalid_record"] == 1

    def test_inverted_option_is_dropped(self):
        report = NormalizationReport()
        result = normalize_records("P1", [record("2025-11-22", "2025-11-20", "option")], report)

        assert result == []
        assert report.dropped["degenerate_range"] == 1

    def test_inverted_booking_is_dropped(self):
        """End before start stays empty after the checkout adjustment"""
        report = NormalizationReport()
        result = normalize_records("P1", [record("2025-11-10", "2025-11-09", "booked")], report)

        assert result == []
        assert report.dropped["degenerate_range"] == 1

    def test_drop_is_logged(self, caplog):
        with caplog.at_level("WARNING"):
            normalize_records("P1", [record("2025-11-10", "2025-11-13", "maintenance")])

        assert "unknown status 'maintenance'" in caplog.text

    def test_every_reservation_has_ordered_bounds(self):
        records = [
            record("2025-11-10", "2025-11-13", "booked"),
            record("2025-11-10", "2025-11-10", "booked"),
            record("2025-11-10", "2025-11-11", "free"),
            record("2025-11-10", "2025-11-09", "free"),
            record("2025-11-20", "2025-11-20", "option"),
            record("2025-11-20", "2025-11-19", "blocked"),
        ]
        result = normalize_records("P1", records)

        assert len(result) == 4
        assert all(r.start_day <= r.end_day for r in result)


class TestNormalizeFeed:
    """Whole-feed normalization"""

    FEED = [
        {
            "id": "P2",
            "label": "Chalet Bleu",
            "records": [
                record("2025-12-01", "2025-12-05", "booked"),
                record("2025-11-01", "2025-11-05", "option"),
            ],
        },
        {
            "id": "P1",
            "label": "Alpage",
            "weeks": [
                record("2025-11-20", "2025-11-22", "option"),
                record("2025-11-10", "2025-11-13", "booked"),
                record("2025-11-10", "2025-11-12", "blocked"),
            ],
        },
    ]

    def test_grouped_by_property_in_feed_order(self):
        result = normalize(self.FEED)

        assert [r.property_id for r in result] == ["P2", "P2", "P1", "P1", "P1"]

    def test_sorted_by_start_with_stable_ties(self):
        result = [r for r in normalize(self.FEED) if r.property_id == "P1"]

        assert [r.start_day for r in result] == [
            date(2025, 11, 10), date(2025, 11, 10), date(2025, 11, 20)
        ]
        # Same start: booked came first in the feed
        assert result[0].status == Status.CONFIRMED
        assert result[1].status == Status.BLOCKED

    def test_properties_sorted_by_name(self):
        feed = normalize_feed(self.FEED)

        assert feed.properties == [
            Property(id="P1", display_name="Alpage"),
            Property(id="P2", display_name="Chalet Bleu"),
        ]
        assert feed.report.accepted == 5
        assert feed.report.dropped_total == 0

    def test_property_without_id_is_skipped(self):
        feed = normalize_feed([{"label": "Ghost", "records": [record("2025-11-01", "2025-11-02", "booked")]}])

        assert feed.properties == []
        assert feed.reservations == []

    def test_missing_label_falls_back_to_id(self):
        props = extract_properties([{"id": "lot-7", "records": []}])

        assert props == [Property(id="lot-7", display_name="lot-7")]

    def test_numeric_ids_become_strings(self):
        [r] = normalize([{"id": 12, "label": "Douze", "records": [record("2025-11-01", "2025-11-03", "option")]}])

        assert r.property_id == "12"

    def test_empty_feed(self):
        assert normalize([]) == []

    def test_normalize_is_repeatable(self):
        assert normalize(self.FEED) == normalize(self.FEED)

    def test_group_by_property(self):
        groups = group_by_property(normalize(self.FEED))

        assert list(groups) == ["P2", "P1"]
        assert len(groups["P1"]) == 3


class TestParseDay:

    def test_iso_date(self):
        assert parse_day("2025-11-10") == date(2025, 11, 10)

    def test_empty_and_garbage(self):
        assert parse_day("") is None
        assert parse_day(None) is None
        assert parse_day("next tuesday") is None
