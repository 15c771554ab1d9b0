from datetime import timedelta

import pytest

from bounded_runner import TimeUnit
from bounded_runner.execution.units import unit_aliases


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("ms", TimeUnit.MILLISECONDS),
        ("MILLISECONDS", TimeUnit.MILLISECONDS),
        (" Seconds ", TimeUnit.SECONDS),
        ("min", TimeUnit.MINUTES),
        ("ns", TimeUnit.NANOSECONDS),
        (TimeUnit.DAYS, TimeUnit.DAYS),
    ],
)
def test_parse_accepts_names_and_aliases(raw, expected) -> None:
    assert TimeUnit.parse(raw) is expected


@pytest.mark.parametrize("raw", ["fortnight", "", 5, None])
def test_parse_rejects_unknown_units(raw) -> None:
    with pytest.raises(ValueError, match="Unsupported time unit"):
        TimeUnit.parse(raw)


def test_conversions() -> None:
    assert TimeUnit.MILLISECONDS.to_seconds(250) == pytest.approx(0.25)
    assert TimeUnit.MINUTES.to_seconds(2) == 120.0
    assert TimeUnit.HOURS.to_timedelta(1) == timedelta(hours=1)


def test_str_is_the_unit_name() -> None:
    assert str(TimeUnit.MILLISECONDS) == "MILLISECONDS"
    assert f"{100} {TimeUnit.SECONDS}" == "100 SECONDS"


def test_every_unit_has_aliases() -> None:
    for unit in TimeUnit:
        assert unit_aliases(unit)
    assert unit_aliases(TimeUnit.SECONDS) == ["s", "sec", "second", "seconds"]
