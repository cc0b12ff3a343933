"""
Calendar utilities and payroll date logic.
Pure functions for French public holidays, working-day classification,
legal delay computation and monthly counters.
"""

import calendar
import json
import logging
from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from functools import lru_cache
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Tuple

logger = logging.getLogger("calendrier-paie.calc")

MONDAY, TUESDAY, WEDNESDAY, THURSDAY, FRIDAY, SATURDAY, SUNDAY = range(7)

WEEKDAY_CODES = ('MON', 'TUE', 'WED', 'THU', 'FRI', 'SAT', 'SUN')
FRENCH_WEEKDAYS = ('lundi', 'mardi', 'mercredi', 'jeudi', 'vendredi', 'samedi', 'dimanche')
FRENCH_MONTHS = (
    '', 'janvier', 'février', 'mars', 'avril', 'mai', 'juin',
    'juillet', 'août', 'septembre', 'octobre', 'novembre', 'décembre'
)

DEFAULT_REST_DAYS: FrozenSet[int] = frozenset({SATURDAY, SUNDAY})
DEFAULT_NON_WORKING_DAY = SUNDAY

# Gregorian computus; the upper bound keeps next-day lookups inside date.max
MIN_YEAR = 1583
MAX_YEAR = 9998

# (month, day, name)
FIXED_HOLIDAYS = (
    (1, 1, "Jour de l'An"),
    (5, 1, 'Fête du Travail'),
    (5, 8, 'Victoire 1945'),
    (7, 14, 'Fête Nationale'),
    (8, 15, 'Assomption'),
    (11, 1, 'Toussaint'),
    (11, 11, 'Armistice'),
    (12, 25, 'Noël'),
)

# (days after Easter Sunday, name)
EASTER_HOLIDAYS = (
    (1, 'Lundi de Pâques'),
    (39, 'Ascension'),
    (50, 'Lundi de Pentecôte'),
)

# Nominal DSN filing days: (day of month, description)
DSN_FILING_DAYS = (
    (5, 'DSN entreprises +50 salariés'),
    (15, 'DSN entreprises -50 salariés'),
)


class DayKind(str, Enum):
    CALENDAR = 'calendaires'
    WORKING = 'ouvres'
    BUSINESS = 'ouvrables'


class DelayPurpose(str, Enum):
    NONE = 'aucun'
    WITHDRAWAL_PERIOD = 'retractation'
    WAGE_SUBROGATION = 'subrogation'


@dataclass(frozen=True)
class DelaySpec:
    """Input of :func:`add_delay`.

    ``waiting_period_days`` only applies to wage subrogation; ``rest_days`` and
    ``non_working_day`` use Python weekday numbers (Monday=0).
    """
    start: date
    days: int
    day_kind: DayKind = DayKind.CALENDAR
    purpose: DelayPurpose = DelayPurpose.NONE
    waiting_period_days: int = 0
    rest_days: FrozenSet[int] = DEFAULT_REST_DAYS
    non_working_day: int = DEFAULT_NON_WORKING_DAY

    def __post_init__(self):
        object.__setattr__(self, 'day_kind', DayKind(self.day_kind))
        object.__setattr__(self, 'purpose', DelayPurpose(self.purpose))
        object.__setattr__(self, 'rest_days', frozenset(self.rest_days))
        if self.days < 0:
            raise ValueError(f"days must be >= 0 (got {self.days})")
        if self.waiting_period_days < 0:
            raise ValueError(f"waiting_period_days must be >= 0 (got {self.waiting_period_days})")
        _check_weekday(self.non_working_day)
        for weekday in self.rest_days:
            _check_weekday(weekday)


@dataclass(frozen=True)
class DelayResult:
    start: date
    count_start: date
    end: date
    calendar_days: int
    skipped_days: int
    rolled_forward: bool


@dataclass(frozen=True)
class Deadline:
    day_of_month: int
    description: str
    category: str
    importance: str


@dataclass(frozen=True)
class MonthCounts:
    business_days: int
    workable_days: int


@dataclass(frozen=True)
class HoursSummary:
    theoretical_hours: float
    worked_hours: float
    paid_ratio: float


@dataclass(frozen=True)
class DaysSummary:
    theoretical_days: int
    worked_days: int
    paid_ratio: float


def _check_weekday(weekday: int) -> None:
    if weekday not in range(7):
        raise ValueError(f"weekday must be in 0..6 (got {weekday!r})")


def _check_month(month: int) -> None:
    if month not in range(1, 13):
        raise ValueError(f"month must be in 1..12 (got {month!r})")


def _round_half_up(value: float, places: int = 2) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


# ---------------------------------------------------------------------------
# Holidays
# ---------------------------------------------------------------------------

def easter_sunday(year: int) -> date:
    """
    Compute Easter Sunday for a Gregorian year (Meeus/Jones/Butcher).

    Args:
        year: Year, 1583 or later

    Returns:
        Date of Easter Sunday
    """
    if year < MIN_YEAR:
        raise ValueError(f"Gregorian computus needs a year >= 1583 (got {year})")
    a = year % 19
    b = year // 100
    c = year % 100
    d = b // 4
    e = b % 4
    f = (b + 8) // 25
    g = (b - f + 1) // 3
    h = (19 * a + b - d - g + 15) % 30
    i = c // 4
    k = c % 4
    l = (32 + 2 * e + 2 * i - h - k) % 7
    m = (a + 11 * h + 22 * l) // 451
    month = (h + l - 7 * m + 114) // 31
    day = ((h + l - 7 * m + 114) % 31) + 1
    return date(year, month, day)


@lru_cache(maxsize=None)
def _holiday_dates(year: int) -> Mapping[date, str]:
    logger.debug("Building holiday table for %d", year)
    table = {date(year, month, day): name for month, day, name in FIXED_HOLIDAYS}
    easter = easter_sunday(year)
    for offset, name in EASTER_HOLIDAYS:
        day = easter + timedelta(days=offset)
        # Ascension can fall on 1 or 8 May
        table[day] = f"{table[day]} / {name}" if day in table else name
    return MappingProxyType(dict(sorted(table.items())))


def french_holidays(year: int) -> Dict[str, str]:
    """
    Get French public holidays for a year.

    Args:
        year: Year (e.g., 2025)

    Returns:
        Dictionary mapping ISO date strings to holiday names, in date order
    """
    return {day.isoformat(): name for day, name in _holiday_dates(year).items()}


def holiday_name(day_date: date) -> Optional[str]:
    """Name of the holiday falling on this date, or None."""
    return _holiday_dates(day_date.year).get(day_date)


def is_holiday(day_date: date) -> bool:
    return day_date in _holiday_dates(day_date.year)


def holidays_in_month(year: int, month: int) -> List[Tuple[date, str]]:
    """List (date, name) pairs of the holidays in one month."""
    _check_month(month)
    return [(day, name) for day, name in _holiday_dates(year).items() if day.month == month]


# ---------------------------------------------------------------------------
# Day classification
# ---------------------------------------------------------------------------

def is_rest_day(day_date: date, rest_days: Iterable[int] = DEFAULT_REST_DAYS) -> bool:
    """Check if date falls on one of the rest weekdays (default Saturday, Sunday)."""
    return day_date.weekday() in rest_days


def is_business_day(day_date: date, rest_days: Iterable[int] = DEFAULT_REST_DAYS) -> bool:
    """Jour ouvré: not a rest day and not a public holiday."""
    return day_date.weekday() not in rest_days and not is_holiday(day_date)


def is_workable_day(day_date: date, non_working_day: int = DEFAULT_NON_WORKING_DAY) -> bool:
    """Jour ouvrable: any day but the non-working weekday. Holidays are ignored."""
    return day_date.weekday() != non_working_day


def next_business_day(day_date: date, rest_days: Iterable[int] = DEFAULT_REST_DAYS) -> date:
    """First business day strictly after the given date."""
    rest_days = frozenset(rest_days)
    if len(rest_days) >= 7:
        raise ValueError("rest_days cannot cover the whole week")
    current = day_date + timedelta(days=1)
    while not is_business_day(current, rest_days):
        current += timedelta(days=1)
    return current


# ---------------------------------------------------------------------------
# Delays
# ---------------------------------------------------------------------------

def _count_days(start: date, days: int, counts) -> Tuple[date, int]:
    """
    Walk from start (inclusive), consuming one unit of the count on each
    day accepted by `counts`, then settle on the first accepted day after
    the last consumed one.

    Returns:
        (landing date, number of days walked over without being counted)
    """
    current = start
    remaining = days
    skipped = 0
    while remaining > 0:
        if counts(current):
            remaining -= 1
        else:
            skipped += 1
        current += timedelta(days=1)
    while not counts(current):
        skipped += 1
        current += timedelta(days=1)
    return current, skipped


def offset_date(
    start: date,
    days: int,
    day_kind: DayKind = DayKind.CALENDAR,
    *,
    roll_forward: bool = False,
    rest_days: Iterable[int] = DEFAULT_REST_DAYS,
    non_working_day: int = DEFAULT_NON_WORKING_DAY,
) -> Tuple[date, int, bool]:
    """
    Offset a date by a number of calendar, working (ouvrés) or business
    (ouvrables) days.

    Args:
        start: Date the count starts from
        days: Number of days, >= 0
        day_kind: Which days are counted
        roll_forward: Move a landing date that is a rest
            day or holiday to the next business day
        rest_days: Weekdays that are not worked (default Saturday, Sunday)
        non_working_day: Weekday excluded from ouvrables (default Sunday)

    Returns:
        (landing date, days skipped, whether the landing was rolled forward)
    """
    if days < 0:
        raise ValueError(f"days must be >= 0 (got {days})")
    rest_days = frozenset(rest_days)
    _check_weekday(non_working_day)
    day_kind = DayKind(day_kind)

    if len(rest_days) >= 7:
        raise ValueError("rest_days cannot cover the whole week")

    if day_kind is DayKind.CALENDAR:
        landing, skipped = start + timedelta(days=days), 0
    elif day_kind is DayKind.WORKING:
        landing, skipped = _count_days(start, days, lambda d: is_business_day(d, rest_days))
    else:
        landing, skipped = _count_days(start, days, lambda d: is_workable_day(d, non_working_day))

    # Ouvrables can still land on a Saturday or a holiday
    if roll_forward and not is_business_day(landing, rest_days):
        rolled = next_business_day(landing, rest_days)
        return rolled, skipped + (rolled - landing).days, True
    return landing, skipped, False


def add_delay(spec: DelaySpec) -> DelayResult:
    """
    Compute the end of a legal delay.

    Wage subrogation first adds the waiting period in calendar days. A
    withdrawal period never ends on a rest day or a holiday.
    """
    count_start = spec.start
    if spec.purpose is DelayPurpose.WAGE_SUBROGATION:
        count_start = spec.start + timedelta(days=spec.waiting_period_days)

    end, skipped, rolled = offset_date(
        count_start,
        spec.days,
        spec.day_kind,
        roll_forward=spec.purpose is DelayPurpose.WITHDRAWAL_PERIOD,
        rest_days=spec.rest_days,
        non_working_day=spec.non_working_day,
    )
    logger.debug(
        "Delay %s +%d %s (%s) -> %s",
        spec.start, spec.days, spec.day_kind.value, spec.purpose.value, end
    )
    return DelayResult(
        start=spec.start,
        count_start=count_start,
        end=end,
        calendar_days=(end - spec.start).days,
        skipped_days=skipped,
        rolled_forward=rolled,
    )


# Prefill values for the delay form
DELAY_PRESETS: Dict[str, Dict[str, Any]] = {
    'Rupture conventionnelle (rétractation)': {
        'days': 15,
        'day_kind': DayKind.CALENDAR,
        'purpose': DelayPurpose.WITHDRAWAL_PERIOD,
        'waiting_period_days': 0,
    },
    'Arrêt maladie (subrogation)': {
        'days': 30,
        'day_kind': DayKind.CALENDAR,
        'purpose': DelayPurpose.WAGE_SUBROGATION,
        'waiting_period_days': 3,
    },
    'Convocation à entretien préalable': {
        'days': 5,
        'day_kind': DayKind.BUSINESS,
        'purpose': DelayPurpose.NONE,
        'waiting_period_days': 0,
    },
}


# ---------------------------------------------------------------------------
# Monthly counters and deadlines
# ---------------------------------------------------------------------------

def month_days(year: int, month: int) -> List[date]:
    _check_month(month)
    _, ndays = calendar.monthrange(year, month)
    return [date(year, month, d) for d in range(1, ndays + 1)]


def month_counts(
    year: int,
    month: int,
    rest_days: Iterable[int] = DEFAULT_REST_DAYS,
    non_working_day: int = DEFAULT_NON_WORKING_DAY,
) -> MonthCounts:
    """
    Count jours ouvrés and jours ouvrables in a month.

    Args:
        year: Year (e.g., 2025)
        month: Month (1-12)
        rest_days: Weekdays excluded from jours ouvrés
        non_working_day: Weekday excluded from jours ouvrables

    Returns:
        MonthCounts with both totals
    """
    rest_days = frozenset(rest_days)
    business = 0
    workable = 0
    for day in month_days(year, month):
        if is_workable_day(day, non_working_day):
            workable += 1
        if is_business_day(day, rest_days):
            business += 1
    return MonthCounts(business_days=business, workable_days=workable)


def dsn_deadline(year: int, month: int, day: int) -> date:
    """
    Filing date for a nominal DSN day, moved past weekends and holidays.

    The filing calendar is set by URSSAF, so company rest days do not apply.
    """
    nominal = date(year, month, day)
    if is_business_day(nominal, DEFAULT_REST_DAYS):
        return nominal
    return next_business_day(nominal, DEFAULT_REST_DAYS)


def dsn_deadlines(year: int, month: int) -> List[Deadline]:
    """Monthly DSN filing deadlines, in day order."""
    _check_month(month)
    deadlines = []
    for day, description in DSN_FILING_DAYS:
        due = dsn_deadline(year, month, day)
        deadlines.append(Deadline(
            day_of_month=due.day,
            description=description,
            category='dsn',
            importance='high',
        ))
    return deadlines


def year_overview(
    year: int,
    rest_days: Iterable[int] = DEFAULT_REST_DAYS,
    non_working_day: int = DEFAULT_NON_WORKING_DAY,
) -> List[Dict[str, Any]]:
    """
    Build the per-month summaries shown in the annual view.

    Returns:
        Twelve dictionaries with month, name, business_days, workable_days,
        holidays and deadlines
    """
    rest_days = frozenset(rest_days)
    overview = []
    for month in range(1, 13):
        counts = month_counts(year, month, rest_days, non_working_day)
        overview.append({
            'month': month,
            'name': get_month_name(month),
            'business_days': counts.business_days,
            'workable_days': counts.workable_days,
            'holidays': holidays_in_month(year, month),
            'deadlines': dsn_deadlines(year, month),
        })
    return overview


# ---------------------------------------------------------------------------
# Hours / days worked calculators
# ---------------------------------------------------------------------------

def theoretical_monthly_hours(weekly_hours: float) -> float:
    """Monthly hours after mensualisation: weekly hours * 52 / 12."""
    if weekly_hours < 0:
        raise ValueError(f"weekly_hours must be >= 0 (got {weekly_hours})")
    return _round_half_up(weekly_hours * 52 / 12, 2)


def hours_summary(weekly_hours: float, absence_hours: float = 0) -> HoursSummary:
    """
    Theoretical, worked and paid share of a month expressed in hours.

    Args:
        weekly_hours: Contractual hours per week (e.g., 35)
        absence_hours: Hours not worked during the month

    Returns:
        HoursSummary; worked hours never go below zero
    """
    if absence_hours < 0:
        raise ValueError(f"absence_hours must be >= 0 (got {absence_hours})")
    theoretical = theoretical_monthly_hours(weekly_hours)
    worked = _round_half_up(max(theoretical - absence_hours, 0), 2)
    ratio = _round_half_up(worked / theoretical, 4) if theoretical > 0 else 0.0
    return HoursSummary(theoretical_hours=theoretical, worked_hours=worked, paid_ratio=ratio)


def days_summary(
    year: int,
    month: int,
    absent_days: int = 0,
    day_kind: DayKind = DayKind.WORKING,
    rest_days: Iterable[int] = DEFAULT_REST_DAYS,
    non_working_day: int = DEFAULT_NON_WORKING_DAY,
) -> DaysSummary:
    """Theoretical, worked and paid share of a month expressed in days."""
    if absent_days < 0:
        raise ValueError(f"absent_days must be >= 0 (got {absent_days})")
    day_kind = DayKind(day_kind)
    if day_kind is DayKind.CALENDAR:
        _check_month(month)
        theoretical = calendar.monthrange(year, month)[1]
    else:
        counts = month_counts(year, month, rest_days, non_working_day)
        theoretical = counts.business_days if day_kind is DayKind.WORKING else counts.workable_days
    worked = max(theoretical - absent_days, 0)
    ratio = _round_half_up(worked / theoretical, 4) if theoretical > 0 else 0.0
    return DaysSummary(theoretical_days=theoretical, worked_days=worked, paid_ratio=ratio)


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def month_grid(year: int, month: int) -> List[List[Optional[date]]]:
    """
    Generate a Monday-first calendar grid for the given month.

    Returns:
        List of weeks, each containing 7 days (None for empty cells)
    """
    _check_month(month)
    grid = []
    for week in calendar.monthcalendar(year, month):
        grid.append([date(year, month, day) if day else None for day in week])
    return grid


def get_month_name(month: int) -> str:
    """Get French month name from month number."""
    _check_month(month)
    return FRENCH_MONTHS[month]


def format_day_fr(day_date: date) -> str:
    """Weekday and day number, e.g. 'mercredi 1'."""
    return f"{FRENCH_WEEKDAYS[day_date.weekday()]} {day_date.day}"


def weekday_codes(weekdays: Iterable[int]) -> List[str]:
    return [WEEKDAY_CODES[w] for w in sorted(weekdays)]


def serialize_month(
    year: int,
    month: int,
    rest_days: Iterable[int] = DEFAULT_REST_DAYS,
    non_working_day: int = DEFAULT_NON_WORKING_DAY,
) -> str:
    """
    Serialize a month's annotations to JSON for export.

    Returns:
        JSON string with holidays, DSN deadlines and day counts
    """
    rest_days = frozenset(rest_days)
    counts = month_counts(year, month, rest_days, non_working_day)
    export_data = {
        'version': '1.0',
        'month': {'year': year, 'month': month, 'name': get_month_name(month)},
        'settings': {
            'rest_days': weekday_codes(rest_days),
            'non_working_day': WEEKDAY_CODES[non_working_day],
        },
        'counts': {
            'business_days': counts.business_days,
            'workable_days': counts.workable_days,
        },
        'holidays': [
            {'date': day.isoformat(), 'name': name}
            for day, name in holidays_in_month(year, month)
        ],
        'deadlines': [
            {
                'date': date(year, month, d.day_of_month).isoformat(),
                'description': d.description,
                'category': d.category,
                'importance': d.importance,
            }
            for d in dsn_deadlines(year, month)
        ],
    }
    return json.dumps(export_data, indent=2, ensure_ascii=False)
