from __future__ import annotations

from demorec.analytics import MatchAnalytics, chat_team_label, demo_info_document, most_common_duration
from demorec.events import ParticipantState
from demorec.rec.interpolate import FrameRateDetector


def test_most_common_duration_rounds_to_tenths() -> None:
    assert most_common_duration([]) == 15.0
    assert most_common_duration([20.01, 19.98, 15.0]) == 20.0
    # Ties go to the value seen first.
    assert most_common_duration([12.0, 15.0]) == 12.0


def test_freeze_times_substitute_halftime_rounds() -> None:
    analytics = MatchAnalytics()
    analytics.record_freeze_time(1, 20.0, halftime=False)
    analytics.record_freeze_time(3, 20.04, halftime=False)
    analytics.record_freeze_time(2, 7.5, halftime=True)
    document = analytics.freeze_times_document()
    assert document.rounds == {"round1": 20.0, "round2": 20.0, "round3": 20.04}
    assert document.halftime_rounds == [2]
    assert document.most_common == 20.0


def test_c4_holder_detection() -> None:
    analytics = MatchAnalytics()
    ct = ParticipantState(name="ct", team="CT", inventory=["c4"])
    carrier = ParticipantState(name="carrier", team="T", inventory=["knife", "weapon_c4"])
    assert analytics.record_c4_holder(2, [ct, carrier]) == "carrier"
    assert analytics.record_c4_holder(3, [ct]) is None
    assert [(entry.round, entry.player_name) for entry in analytics.c4_document()] == [(2, "carrier")]


def test_roster_first_sighting_wins() -> None:
    analytics = MatchAnalytics()
    assert analytics.register_participant(ParticipantState(name="p", user_id=7))
    assert not analytics.register_participant(ParticipantState(name="p", user_id=8, crosshair_code="CSGO-xxx"))
    info = analytics.roster_document()["p"]
    assert info.steamid == 7
    assert info.crosshair_code == "N/A"


def test_chat_team_labels_and_round_discard() -> None:
    assert chat_team_label("T") == "T"
    assert chat_team_label("SPECTATOR") == "Spectator"
    assert chat_team_label(None) == "Unknown"

    analytics = MatchAnalytics()
    analytics.record_chat(round_number=1, time=1.0, sender="a", team="CT", message="hi", team_only=False)
    analytics.record_chat(round_number=2, time=2.0, sender="b", team=None, message="gg", team_only=True)
    analytics.discard_round(2)
    assert [(entry.round, entry.team) for entry in analytics.chat_document()] == [(1, "CT")]
    analytics.reset_rounds()
    assert analytics.chat_document() == []


def test_demo_info_document() -> None:
    detector = FrameRateDetector(128.0, max_samples=4)
    for tick in range(0, 10, 2):
        detector.observe(tick)
    report = detector.report
    assert report is not None
    info = demo_info_document(report)
    assert info.interpolated
    assert info.original_frame_rate == 64.0
    assert info.interpolation_ratio == 2.0
    assert info.detection_complete
