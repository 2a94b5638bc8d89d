from datetime import datetime

import pytest

from hiring_reality.core.experience import (
    classify_user_type,
    detect_domain,
    detect_seniority,
    has_progression,
    is_career_switch,
    months_between,
    parse_date,
    parse_years,
    role_months,
    seniority_gap,
    title_level,
    total_years,
)
from hiring_reality.models import ExperienceEntry


def role(position, start, end="Present"):
    return ExperienceEntry(position=position, start_date=start, end_date=end)


@pytest.mark.parametrize("value,expected", [
    ("2022-01", datetime(2022, 1, 1)),
    ("2022-01-15", datetime(2022, 1, 15)),
    ("01/2022", datetime(2022, 1, 1)),
    ("Jan 2022", datetime(2022, 1, 1)),
    ("Sept 2021", datetime(2021, 9, 1)),
    ("March 2020", datetime(2020, 3, 1)),
    ("2019", datetime(2019, 1, 1)),
])
def test_parse_date_formats(value, expected):
    assert parse_date(value) == expected


def test_parse_date_present_and_garbage(now):
    assert parse_date("Present", now) == now
    assert parse_date("present") is None
    assert parse_date("sometime last year") is None
    assert parse_date(None) is None


def test_thirty_day_months():
    assert months_between(datetime(2024, 1, 1), datetime(2024, 1, 31)) == 1.0


def test_role_months_unreadable_dates(now):
    assert role_months(role("Dev", "whenever"), now) is None
    assert total_years([role("Dev", "whenever"), role("Dev", "2024-06")], now) == pytest.approx(365 / 30 / 12)


@pytest.mark.parametrize("experience,expected", [
    ([], "fresher"),
    ([role("Developer", "2025-01")], "fresher"),
    ([role("Developer", "2024-06")], "junior"),
    ([role("Developer", "2022-06")], "mid"),
    ([role("Developer", "2019-01")], "senior"),
    ([role("Senior Developer", "2025-01")], "senior"),
])
def test_detect_seniority(now, experience, expected):
    assert detect_seniority(experience, now) == expected


def test_seniority_gap():
    assert seniority_gap("mid", "mid") == 0
    assert seniority_gap("junior", "mid") == 1
    assert seniority_gap("fresher", "lead") == 4
    # Unknown levels sit at mid
    assert seniority_gap("wizard", "senior") == 1


def test_title_level_and_progression():
    assert title_level("Software Engineering Intern") == 0
    assert title_level("Senior Engineer") == 4
    assert title_level("Engineer") == 3

    assert has_progression([role("Senior Engineer", "2023-01"), role("Intern", "2021-01", "2021-06")])
    assert not has_progression([role("Intern", "2023-01"), role("Lead Engineer", "2019-01", "2022-01")])
    assert not has_progression([role("Engineer", "2023-01")])


def test_parse_years():
    assert parse_years("3-5 years") == 3
    assert parse_years("8+ years") == 8
    assert parse_years("") == 0


def test_domains_and_career_switch():
    assert detect_domain("Backend Developer") == "tech"
    assert detect_domain("Sales Executive") == "sales"
    assert detect_domain("Chef") == "general"

    assert is_career_switch("Sales Executive", "Data Scientist")
    assert not is_career_switch("Frontend Developer", "Backend Developer")
    assert not is_career_switch("Chef", "Data Scientist")
    assert not is_career_switch("", "Data Scientist")


@pytest.mark.parametrize("experience,target,expected", [
    ([], "Software Engineer", "fresher"),
    ([role("Developer", "2024-01")], "Software Engineer", "1-3yrs"),
    ([role("Developer", "2020-01")], "Software Engineer", "3-5yrs"),
    ([role("Sales Executive", "2020-01")], "Data Scientist", "switcher"),
])
def test_classify_user_type(now, experience, target, expected):
    assert classify_user_type(experience, target, now) == expected
