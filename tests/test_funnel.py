"""Funnel rates, low-volume flags and event coverage."""

from __future__ import annotations

from datetime import datetime, timezone

from bizvalue.engine.funnel import STEP_NAMES, build_funnel, low_volume_warnings, summarize_events


def test_visitor_to_registered_rates() -> None:
    funnel = build_funnel({"visitor": 1000, "registered": 50})
    visitor, registered = funnel.steps[0], funnel.steps[1]

    assert (visitor.conversion_rate, visitor.drop_off, visitor.drop_off_rate) == (100, 0, 0)
    assert visitor.sample_size == 1000
    assert registered.conversion_rate == 5
    assert registered.drop_off == 950
    assert registered.drop_off_rate == 95
    assert registered.sample_size == 1000
    assert registered.is_low_volume is False


def test_steps_follow_canonical_order() -> None:
    funnel = build_funnel({"message_sent": 3, "visitor": 10, "bogus": 99})

    assert [s.step for s in funnel.steps] == STEP_NAMES
    assert funnel.step("bogus") is None
    assert funnel.step("message_sent").count == 3


def test_absent_previous_step_gives_zero_rates() -> None:
    funnel = build_funnel({"visitor": 100, "nda_requested": 5})
    nda_requested = funnel.step("nda_requested")

    assert funnel.step("listing_viewed").count == 0
    assert nda_requested.conversion_rate == 0
    assert nda_requested.drop_off_rate == 0
    assert nda_requested.drop_off == -5


def test_low_volume_flag_uses_previous_count() -> None:
    funnel = build_funnel({"visitor": 500, "registered": 19, "listing_viewed": 40, "nda_requested": 20})

    assert funnel.step("registered").is_low_volume is False
    assert funnel.step("listing_viewed").is_low_volume is True
    assert funnel.step("nda_requested").is_low_volume is False
    # nda_signed onward see 20 and then zeros
    assert funnel.step("nda_signed").is_low_volume is False
    assert funnel.step("enquiry_sent").is_low_volume is True
    assert low_volume_warnings(funnel) == 4


def test_threshold_is_configurable() -> None:
    funnel = build_funnel({"visitor": 100, "registered": 40}, low_volume_threshold=50)
    assert funnel.step("registered").is_low_volume is False
    assert funnel.step("listing_viewed").is_low_volume is True


def test_conversion_and_drop_off_sum_to_hundred() -> None:
    counts = {"visitor": 997, "registered": 331, "listing_viewed": 211, "nda_requested": 67,
              "nda_signed": 29, "enquiry_sent": 13, "deal_room_created": 7, "message_sent": 3}
    for s in build_funnel(counts).steps[1:]:
        assert abs(s.conversion_rate + s.drop_off_rate - 100) <= 1


def test_accepts_step_records_and_string_counts() -> None:
    rows = [{"step": "visitor", "count": "1,000"}, {"step": "registered", "count": "50"}, {"step": "nope", "count": 3}]
    funnel = build_funnel(rows, period="7d", is_estimated=True)

    assert funnel.period == "7d"
    assert funnel.is_estimated is True
    assert funnel.step("registered").count == 50
    # Thousands separators are not valid integer text
    assert funnel.step("visitor").count == 0


def test_summarize_events_window_days_and_sessions() -> None:
    now = datetime(2026, 10, 19, 12, tzinfo=timezone.utc)
    rows = [
        {"created_at": "2026-10-18T10:00:00Z", "session_id": "a"},
        {"created_at": "2026-10-18T11:00:00+00:00", "session_id": "a"},
        {"created_at": "2026-10-10T09:00:00", "session_id": "b"},
        {"created_at": "2026-10-17T00:00:00Z", "session_id": ""},
        {"created_at": "not a date", "session_id": "c"},
        {"created_at": "2026-08-01T00:00:00Z", "session_id": "d"},
        {"session_id": "e"},
    ]
    cov = summarize_events(rows, now=now)

    assert cov.events == 4
    assert cov.coverage_days == 3
    assert cov.sessions == 2


def test_summarize_events_empty() -> None:
    cov = summarize_events([])
    assert (cov.coverage_days, cov.sessions, cov.events) == (0, 0, 0)
