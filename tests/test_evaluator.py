import json

from fitscore.services.classifier import FitCategory
from fitscore.services.evaluator import FitEvaluator, decode_size_chart, status_label


PROFILE = {"chest": 90.0, "waist": 80.0, "hip": 95.0, "inseam": 80.0}

CHART = {
    "S": {"size": "S", "chest": 85.0, "waist": 76.0, "hip": 90.0},
    "M": {"size": "M", "chest": 91.0, "waist": 86.0, "hip": 96.0},
    "L": {"size": "L", "chest": 91.0, "waist": 81.0, "hip": 96.0, "inseam": 81.0},
}


def test_evaluate_recommended_size():
    ev = FitEvaluator().evaluate_size(PROFILE, CHART, "M", "normal", "Good", recommended=True)
    # chest +1 perfect, waist +6 loose, hip +1 perfect
    assert [c.key for c in ev.comparisons] == ["chest", "waist", "hip"]
    assert [v.category for v in ev.verdicts] == [FitCategory.PERFECT, FitCategory.LOOSE, FitCategory.PERFECT]
    assert ev.overall_confidence == "Loose"
    assert ev.overall_fit == "loose"
    assert ev.recommended


def test_missing_size_falls_back_to_external_confidence():
    ev = FitEvaluator().evaluate_size(PROFILE, CHART, "XXL", "normal", "Perfect")
    assert ev.comparisons == ()
    assert ev.overall_confidence == "Perfect"
    assert ev.overall_fit == "unknown"


def test_empty_profile_falls_back():
    ev = FitEvaluator().evaluate_size({}, CHART, "M", "normal", "Good")
    assert ev.overall_confidence == "Good"


def test_compare_sizes_keeps_chart_order_and_flags_recommended():
    evs = FitEvaluator().compare_sizes(PROFILE, CHART, "normal", "Good", recommended_size="L")
    assert [e.size for e in evs] == ["S", "M", "L"]
    assert [e.recommended for e in evs] == [False, False, True]
    assert [e.overall_confidence for e in evs] == ["Tight", "Loose", "Perfect"]


def test_fabric_changes_outcome():
    stretchy = FitEvaluator().evaluate_size(PROFILE, CHART, "S", "stretchy", "Good")
    # chest -5 is still tight on stretch fabric, waist -4 and hip -5
    assert stretchy.overall_confidence == "Tight"
    rigid = FitEvaluator().evaluate_size(PROFILE, CHART, "L", "rigid", "Good")
    # every +1 is under rigid's +2 minimum
    assert rigid.overall_confidence == "Tight"


def test_comparison_presentation_fields():
    ev = FitEvaluator().evaluate_size({"inseam": 80.0, "chest": 90.0}, {"M": {"inseam": 78.0, "chest": 90.0}}, "M", "normal", "Good")
    inseam, chest = ev.comparisons
    assert inseam.status == "Short"
    assert chest.status == "Perfect"
    assert chest.display_range == (85, 95)


def test_status_label_for_lengths():
    assert status_label(FitCategory.LOOSE, "leg_length") == "Long"
    assert status_label(FitCategory.TIGHT, "arm_length") == "Short"
    assert status_label(FitCategory.PERFECT, "inseam") == "Perfect"
    assert status_label(FitCategory.TIGHT, "waist") == "Tight"


def test_decode_size_chart_accepts_json_string():
    assert decode_size_chart(json.dumps(CHART)) == CHART


def test_decode_size_chart_is_lenient():
    assert decode_size_chart("{not json") == {}
    assert decode_size_chart(None) == {}
    assert decode_size_chart([1, 2]) == {}
    assert decode_size_chart({"M": {"chest": 90}, "note": "cm"}) == {"M": {"chest": 90}}
