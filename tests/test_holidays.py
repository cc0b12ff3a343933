"""
Jours fériés : calcul de Pâques, table annuelle, recoupement avec le
paquet `holidays`.
"""
from datetime import date

import holidays
import pytest

import calc


class TestEasterSunday:

    @pytest.mark.parametrize("year, expected", [
        (1818, date(1818, 3, 22)),
        (2000, date(2000, 4, 23)),
        (2008, date(2008, 3, 23)),
        (2011, date(2011, 4, 24)),
        (2019, date(2019, 4, 21)),
        (2024, date(2024, 3, 31)),
        (2025, date(2025, 4, 20)),
        (2026, date(2026, 4, 5)),
        (2038, date(2038, 4, 25)),
    ])
    def test_published_dates(self, year, expected):
        assert calc.easter_sunday(year) == expected

    def test_always_a_sunday(self):
        for year in range(1900, 2100):
            assert calc.easter_sunday(year).weekday() == calc.SUNDAY

    def test_julian_years_rejected(self):
        with pytest.raises(ValueError):
            calc.easter_sunday(1500)


class TestFrenchHolidays:

    def test_2025_table(self):
        """Table 2025 identique au calendrier publié."""
        assert calc.french_holidays(2025) == {
            '2025-01-01': "Jour de l'An",
            '2025-04-21': 'Lundi de Pâques',
            '2025-05-01': 'Fête du Travail',
            '2025-05-08': 'Victoire 1945',
            '2025-05-29': 'Ascension',
            '2025-06-09': 'Lundi de Pentecôte',
            '2025-07-14': 'Fête Nationale',
            '2025-08-15': 'Assomption',
            '2025-11-01': 'Toussaint',
            '2025-11-11': 'Armistice',
            '2025-12-25': 'Noël',
        }

    def test_keys_in_date_order(self):
        keys = list(calc.french_holidays(2026))
        assert keys == sorted(keys)
        assert len(keys) == 11

    def test_returned_table_is_a_copy(self):
        """Modifier le résultat ne touche pas le cache."""
        table = calc.french_holidays(2025)
        table['2025-03-03'] = 'Faux férié'
        del table['2025-01-01']
        assert '2025-03-03' not in calc.french_holidays(2025)
        assert calc.is_holiday(date(2025, 1, 1))
        assert not calc.is_holiday(date(2025, 3, 3))

    def test_ascension_on_labour_day(self):
        """2008 : l'Ascension tombe le 1er mai."""
        table = calc.french_holidays(2008)
        assert len(table) == 10
        assert table['2008-05-01'] == 'Fête du Travail / Ascension'

    def test_lookup_uses_the_year_of_the_date(self):
        assert calc.holiday_name(date(2026, 4, 6)) == 'Lundi de Pâques'
        assert calc.holiday_name(date(2025, 4, 6)) is None
        assert calc.is_holiday(date(2030, 12, 25))

    def test_holidays_in_month(self):
        assert calc.holidays_in_month(2025, 5) == [
            (date(2025, 5, 1), 'Fête du Travail'),
            (date(2025, 5, 8), 'Victoire 1945'),
            (date(2025, 5, 29), 'Ascension'),
        ]
        assert calc.holidays_in_month(2025, 2) == []

    def test_invalid_month(self):
        with pytest.raises(ValueError):
            calc.holidays_in_month(2025, 13)

    @pytest.mark.parametrize("year", range(2010, 2031))
    def test_matches_holidays_package(self, year):
        """Même ensemble de dates que la France métropolitaine du paquet holidays."""
        reference = holidays.France(years=year)
        expected = {day.isoformat() for day in reference}
        assert set(calc.french_holidays(year)) == expected
