"""
Compteurs mensuels, échéances DSN, calculateurs d'heures et de jours,
aides d'affichage.
"""
import calendar as std_calendar
import json
from datetime import date

import pytest

import calc
from calc import DayKind, Deadline, MonthCounts, SUNDAY


class TestMonthCounts:

    @pytest.mark.parametrize("year, month, expected", [
        (2025, 1, MonthCounts(business_days=22, workable_days=27)),
        (2025, 2, MonthCounts(business_days=20, workable_days=24)),
        (2025, 3, MonthCounts(business_days=21, workable_days=26)),
        (2025, 5, MonthCounts(business_days=19, workable_days=27)),
    ])
    def test_known_months(self, year, month, expected):
        assert calc.month_counts(year, month) == expected

    def test_month_without_holidays_counts_weekdays(self):
        """Sans jour férié, ouvrés = jours du lundi au vendredi."""
        for year in (2024, 2025, 2026):
            for month in (2, 3, 9, 10):
                assert calc.holidays_in_month(year, month) == []
                weekdays = sum(1 for d in calc.month_days(year, month) if d.weekday() < 5)
                assert calc.month_counts(year, month).business_days == weekdays

    def test_custom_rest_days_and_non_working_day(self):
        counts = calc.month_counts(2025, 2, rest_days={SUNDAY}, non_working_day=calc.MONDAY)
        assert counts.business_days == 24
        assert counts.workable_days == 24

    def test_invalid_month(self):
        with pytest.raises(ValueError):
            calc.month_counts(2025, 0)


class TestDsnDeadlines:

    def test_january_2025(self):
        """Le 5 janvier 2025 est un dimanche : échéance le lundi 6."""
        assert calc.dsn_deadlines(2025, 1) == [
            Deadline(6, 'DSN entreprises +50 salariés', 'dsn', 'high'),
            Deadline(15, 'DSN entreprises -50 salariés', 'dsn', 'high'),
        ]

    def test_holiday_moves_deadline(self):
        """15 août 2025 (vendredi, férié) -> lundi 18."""
        assert [d.day_of_month for d in calc.dsn_deadlines(2025, 8)] == [5, 18]

    def test_deadline_always_business_day(self):
        for year in (2025, 2026):
            for month in range(1, 13):
                for deadline in calc.dsn_deadlines(year, month):
                    assert calc.is_business_day(date(year, month, deadline.day_of_month))

    def test_dsn_deadline_single_day(self):
        assert calc.dsn_deadline(2025, 4, 5) == date(2025, 4, 7)
        assert calc.dsn_deadline(2025, 4, 15) == date(2025, 4, 15)

    def test_company_rest_days_do_not_move_deadlines(self):
        """Samedi 5 avril 2025 : reporté au lundi 7 même si le samedi est travaillé."""
        overview = calc.year_overview(2025, rest_days={SUNDAY})
        assert [d.day_of_month for d in overview[3]['deadlines']] == [7, 15]
        assert overview[3]['business_days'] == calc.month_counts(2025, 4, {SUNDAY}).business_days
        exported = json.loads(calc.serialize_month(2025, 4, rest_days={SUNDAY}))
        assert [d['date'] for d in exported['deadlines']] == ['2025-04-07', '2025-04-15']


class TestYearOverview:

    def test_twelve_months(self):
        overview = calc.year_overview(2025)
        assert [m['month'] for m in overview] == list(range(1, 13))
        assert overview[0]['name'] == 'janvier'
        assert overview[4]['business_days'] == 19
        assert len(overview[4]['holidays']) == 3
        assert overview[5]['deadlines'][1].day_of_month == 16

    def test_holidays_cover_the_year(self):
        overview = calc.year_overview(2026)
        assert sum(len(m['holidays']) for m in overview) == 11


class TestWorkedCalculators:

    @pytest.mark.parametrize("weekly, expected", [
        (35, 151.67),
        (39, 169.0),
        (0, 0.0),
    ])
    def test_theoretical_monthly_hours(self, weekly, expected):
        assert calc.theoretical_monthly_hours(weekly) == expected

    def test_hours_summary(self):
        summary = calc.hours_summary(35, 7)
        assert summary.theoretical_hours == 151.67
        assert summary.worked_hours == 144.67
        assert summary.paid_ratio == pytest.approx(0.9538, abs=1e-4)

    def test_hours_summary_never_negative(self):
        summary = calc.hours_summary(35, 200)
        assert summary.worked_hours == 0.0
        assert summary.paid_ratio == 0.0

    def test_hours_summary_zero_contract(self):
        assert calc.hours_summary(0).paid_ratio == 0.0

    def test_negative_hours_rejected(self):
        with pytest.raises(ValueError):
            calc.hours_summary(35, -1)
        with pytest.raises(ValueError):
            calc.theoretical_monthly_hours(-35)

    def test_days_summary_working(self):
        summary = calc.days_summary(2025, 1, absent_days=2)
        assert summary.theoretical_days == 22
        assert summary.worked_days == 20
        assert summary.paid_ratio == pytest.approx(0.9091, abs=1e-4)

    def test_days_summary_other_kinds(self):
        assert calc.days_summary(2025, 1, 0, DayKind.BUSINESS).theoretical_days == 27
        assert calc.days_summary(2025, 1, 0, DayKind.CALENDAR).theoretical_days == 31
        assert calc.days_summary(2025, 1, 0, DayKind.CALENDAR).paid_ratio == 1.0

    def test_days_summary_absences_capped(self):
        assert calc.days_summary(2025, 2, absent_days=40).worked_days == 0


class TestDisplayHelpers:

    def test_month_grid(self):
        grid = calc.month_grid(2025, 1)
        assert len(grid) == 5
        assert grid[0][:2] == [None, None]
        assert grid[0][2] == date(2025, 1, 1)
        assert grid[-1][4] == date(2025, 1, 31)
        assert grid[-1][5] is None
        assert all(len(week) == 7 for week in grid)

    def test_month_names(self):
        assert calc.get_month_name(8) == 'août'
        assert calc.get_month_name(12) == 'décembre'

    def test_format_day_fr(self):
        assert calc.format_day_fr(date(2025, 1, 1)) == 'mercredi 1'
        assert calc.format_day_fr(date(2025, 6, 9)) == 'lundi 9'

    def test_month_days(self):
        days = calc.month_days(2024, 2)
        assert len(days) == std_calendar.monthrange(2024, 2)[1] == 29

    def test_serialize_month(self):
        data = json.loads(calc.serialize_month(2025, 5))
        assert data['month'] == {'year': 2025, 'month': 5, 'name': 'mai'}
        assert data['settings'] == {'rest_days': ['SAT', 'SUN'], 'non_working_day': 'SUN'}
        assert data['counts'] == {'business_days': 19, 'workable_days': 27}
        assert [h['date'] for h in data['holidays']] == ['2025-05-01', '2025-05-08', '2025-05-29']
        assert [d['date'] for d in data['deadlines']] == ['2025-05-05', '2025-05-15']

    def test_serialize_keeps_accents(self):
        assert 'Fête du Travail' in calc.serialize_month(2025, 5)
