import pytest

from hazardmon.scoring import (
    severity_from_category,
    severity_from_fatalities,
    severity_from_magnitude,
    severity_rank,
)


@pytest.mark.parametrize(
    "mag, expected",
    [
        (9.1, "critical"), (7, "critical"), (6.99, "high"), (6, "high"),
        (5.99, "medium"), (5, "medium"), (4.99, "low"), (0, "low"), (-1, "low"),
        ("7.2", "critical"), (None, "low"), ("n/a", "low"), (float("nan"), "low"),
    ],
)
def test_magnitude_thresholds(mag, expected):
    assert severity_from_magnitude(mag) == expected


def test_magnitude_is_monotonic_and_never_info():
    mags = [x / 10 for x in range(0, 100)]
    ranks = [severity_rank(severity_from_magnitude(m)) for m in mags]
    assert ranks == sorted(ranks)
    assert "info" not in {severity_from_magnitude(m) for m in mags}


@pytest.mark.parametrize(
    "fatalities, expected",
    [
        (250, "critical"), (100, "critical"), (99, "high"), (20, "high"),
        (19, "medium"), (15, "medium"), ("15", "medium"), (5, "medium"),
        (4, "low"), (0, "low"), (None, "low"), ("", "low"),
    ],
)
def test_fatality_thresholds(fatalities, expected):
    assert severity_from_fatalities(fatalities) == expected


def test_category_fallback():
    assert severity_from_category("conflict") == "high"
    assert severity_from_category("violence") == "high"
    for cat in ["earthquake", "weather", "disaster", "political", "health", "info", "user_report"]:
        assert severity_from_category(cat) == "medium"


def test_rank_order():
    ranks = [severity_rank(s) for s in ["critical", "high", "medium", "low", "info"]]
    assert ranks == sorted(ranks, reverse=True)
    assert len(set(ranks)) == 5
