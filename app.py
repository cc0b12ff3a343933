"""
Streamlit web app for the payroll calendar.
Annual and monthly views with holidays and DSN deadlines, a legal delay
calculator and hours/days worked calculators.
"""

import logging
from datetime import date
from typing import Any, Dict, FrozenSet, List, Optional

import streamlit as st

# Import our modules
import calc
import settings

logger = logging.getLogger("calendrier-paie.app")

WEEKDAY_ABBR = ['Lun', 'Mar', 'Mer', 'Jeu', 'Ven', 'Sam', 'Dim']

DAY_KIND_LABELS = {
    calc.DayKind.CALENDAR: 'Jours calendaires',
    calc.DayKind.WORKING: 'Jours ouvrés',
    calc.DayKind.BUSINESS: 'Jours ouvrables',
}

PURPOSE_LABELS = {
    calc.DelayPurpose.NONE: 'Délai simple',
    calc.DelayPurpose.WITHDRAWAL_PERIOD: 'Délai de rétractation',
    calc.DelayPurpose.WAGE_SUBROGATION: 'Subrogation (carence)',
}

CSS = """
<style>
.day-cell {
    border: 1px solid #eee;
    border-radius: 0.5rem;
    padding: 1.25rem 0.5rem 0.5rem;
    min-height: 96px;
    position: relative;
    background: #ffffff;
}
.day-cell.weekend { background: #f9fafb; opacity: 0.7; }
.day-cell.ferie { background: #fef2f2; }
.day-number {
    position: absolute;
    top: 0.35rem;
    left: 0.5rem;
    font-weight: 700;
    font-size: 14px;
}
.ferie .day-number { color: #ef4444; }
.weekend .day-number { color: #9ca3af; }
.holiday-badge { font-size: 10px; color: #dc2626; font-weight: 500; }
.deadline-badge {
    font-size: 10px;
    margin-top: 4px;
    padding: 2px 4px;
    border-radius: 3px;
    background: rgba(66, 216, 15, 0.1);
    color: #2f9a0b;
    font-weight: 600;
}
</style>
"""


def delay_spec_from_form(form: Dict[str, Any], config: Dict[str, Any]) -> calc.DelaySpec:
    """
    Build a DelaySpec from raw delay-form values.

    Numeric fields are coerced to safe values. Missing rest days and
    non-working day fall back on the loaded configuration; an empty rest-day
    selection is kept as is.

    Args:
        form: Values read from the Streamlit form widgets
        config: Output of settings.load_settings()

    Returns:
        DelaySpec ready for calc.add_delay
    """
    purpose = calc.DelayPurpose(form.get('purpose', calc.DelayPurpose.NONE))
    waiting = 0
    if purpose is calc.DelayPurpose.WAGE_SUBROGATION:
        waiting = settings.coerce_int(form.get('waiting_period_days'), config['waiting_period_days'])
    return calc.DelaySpec(
        start=form.get('start') or date.today(),
        days=settings.coerce_int(form.get('days'), 1),
        day_kind=calc.DayKind(form.get('day_kind', calc.DayKind.CALENDAR)),
        purpose=purpose,
        waiting_period_days=waiting,
        rest_days=settings.parse_weekdays(form.get('rest_days'), config['rest_days'], allow_empty=True),
        non_working_day=settings.parse_weekday(
            form.get('non_working_day', config['non_working_day']),
            config['non_working_day']
        ),
    )


def delay_breakdown(spec: calc.DelaySpec, result: calc.DelayResult) -> List[str]:
    """Lines describing the intermediate values of a delay computation."""
    lines = [f"Date de départ : {result.start.strftime('%d/%m/%Y')}"]
    if result.count_start != result.start:
        lines.append(
            f"Carence de {spec.waiting_period_days} jour(s), décompte à partir du "
            f"{result.count_start.strftime('%d/%m/%Y')}"
        )
    lines.append(f"{spec.days} {DAY_KIND_LABELS[spec.day_kind].lower()}")
    if result.skipped_days:
        lines.append(f"Jours non décomptés : {result.skipped_days}")
    if result.rolled_forward:
        lines.append("Échéance reportée au premier jour ouvré suivant")
    lines.append(f"Durée calendaire totale : {result.calendar_days} jour(s)")
    return lines


def init_state() -> None:
    """Initialize session state."""
    if 'current_year' not in st.session_state:
        today = date.today()
        st.session_state.current_year = today.year
        st.session_state.current_month = today.month
    st.session_state.setdefault('view_mode', 'year')


def shifted_period(year: int, month: int, step: int, view_mode: str):
    """
    Year and month after moving by step months (month view) or years.

    The result is clamped to the years the holiday calendar supports.
    """
    if view_mode == 'month':
        index = year * 12 + month - 1 + step
        year, month = divmod(index, 12)
        month += 1
    else:
        year += step
    if year < calc.MIN_YEAR:
        return calc.MIN_YEAR, 1
    if year > calc.MAX_YEAR:
        return calc.MAX_YEAR, 12
    return year, month


def shift_period(step: int) -> None:
    """Move the visible month (month view) or year (year view) by step."""
    st.session_state.current_year, st.session_state.current_month = shifted_period(
        st.session_state.current_year,
        st.session_state.current_month,
        step,
        st.session_state.view_mode
    )


def render_header() -> None:
    col1, col2, col3 = st.columns([1, 4, 1])

    with col1:
        if st.button("◀", key="prev_period"):
            shift_period(-1)
            st.rerun()

    with col2:
        year = st.session_state.current_year
        if st.session_state.view_mode == 'year':
            title = str(year)
        else:
            title = f"{calc.get_month_name(st.session_state.current_month).capitalize()} {year}"
        st.markdown(f"<h2 style='text-align: center'>{title}</h2>", unsafe_allow_html=True)
        if st.session_state.view_mode == 'month':
            if st.button("📅 Vue annuelle", key="to_year_view"):
                st.session_state.view_mode = 'year'
                st.rerun()

    with col3:
        if st.button("▶", key="next_period"):
            shift_period(1)
            st.rerun()


def render_annual_view(config: Dict[str, Any]) -> None:
    """Render the twelve month cards."""
    year = st.session_state.current_year
    overview = calc.year_overview(year, config['rest_days'], config['non_working_day'])

    for row_start in range(0, 12, 3):
        cols = st.columns(3)
        for col, summary in zip(cols, overview[row_start:row_start + 3]):
            with col:
                with st.container(border=True):
                    st.markdown(f"#### {summary['name'].capitalize()}")
                    st.markdown(
                        f"Jours ouvrés : **{summary['business_days']}**  \n"
                        f"Jours ouvrables : **{summary['workable_days']}**"
                    )
                    if summary['holidays']:
                        lines = [f"{calc.format_day_fr(d)} - {name}" for d, name in summary['holidays']]
                        st.markdown(":red[**Jours fériés :**]  \n" + "  \n".join(lines))
                    deadline_lines = []
                    for deadline in summary['deadlines']:
                        due = date(year, summary['month'], deadline.day_of_month)
                        deadline_lines.append(f"{deadline.description} : {calc.format_day_fr(due)}")
                    st.markdown(":green[**Échéances DSN :**]  \n" + "  \n".join(deadline_lines))
                    if st.button("Voir le mois", key=f"open_month_{summary['month']}"):
                        st.session_state.current_month = summary['month']
                        st.session_state.view_mode = 'month'
                        st.rerun()


def day_css_class(day_date: date, rest_days: FrozenSet[int]) -> str:
    """CSS classes of a month-grid cell; rest days win over holidays."""
    if calc.is_rest_day(day_date, rest_days):
        return 'day-cell weekend'
    if calc.is_holiday(day_date):
        return 'day-cell ferie'
    return 'day-cell'


def render_day_cell(day_date: date, deadlines: List[calc.Deadline], rest_days: FrozenSet[int]) -> None:
    holiday = calc.holiday_name(day_date)
    css_class = day_css_class(day_date, rest_days)

    holiday_badge = f'<div class="holiday-badge">{holiday}</div>' if holiday else ''
    deadline_badges = ''.join(
        f'<div class="deadline-badge">{d.description}</div>'
        for d in deadlines if d.day_of_month == day_date.day
    )
    st.markdown(f"""
    <div class="{css_class}">
        <div class="day-number">{day_date.day}</div>
        {holiday_badge}
        {deadline_badges}
    </div>
    """, unsafe_allow_html=True)


def render_month_view(config: Dict[str, Any]) -> None:
    """Render counters and the day grid of the visible month."""
    year = st.session_state.current_year
    month = st.session_state.current_month
    counts = calc.month_counts(year, month, config['rest_days'], config['non_working_day'])
    deadlines = calc.dsn_deadlines(year, month)

    col1, col2 = st.columns(2)
    col1.metric("Jours ouvrés", counts.business_days)
    col2.metric("Jours ouvrables", counts.workable_days)

    cols = st.columns(7)
    for i, weekday in enumerate(WEEKDAY_ABBR):
        with cols[i]:
            st.markdown(f"<div style='text-align: center; font-weight: bold; padding: 10px;'>{weekday}</div>",
                        unsafe_allow_html=True)

    for week in calc.month_grid(year, month):
        cols = st.columns(7)
        for i, day_date in enumerate(week):
            with cols[i]:
                if day_date is None:
                    st.markdown("<div style='height: 96px;'></div>", unsafe_allow_html=True)
                else:
                    render_day_cell(day_date, deadlines, config['rest_days'])


def render_delay_calculator(config: Dict[str, Any]) -> None:
    """Delay form in the sidebar."""
    st.sidebar.header("⏱️ Calcul de délai")

    preset_name = st.sidebar.selectbox(
        "Modèle",
        options=['(aucun)'] + list(calc.DELAY_PRESETS),
        key="delay_preset"
    )
    preset = calc.DELAY_PRESETS.get(preset_name, {})
    day_kinds = list(calc.DayKind)
    purposes = list(calc.DelayPurpose)

    with st.sidebar.form("delay_form"):
        start = st.date_input("Date de départ", value=date.today(), format="DD/MM/YYYY")
        days = st.number_input("Nombre de jours", min_value=0, value=preset.get('days', 1), step=1)
        day_kind = st.radio(
            "Type de jours",
            options=day_kinds,
            index=day_kinds.index(preset.get('day_kind', calc.DayKind.CALENDAR)),
            format_func=lambda k: DAY_KIND_LABELS[k]
        )
        purpose = st.selectbox(
            "Nature du délai",
            options=purposes,
            index=purposes.index(preset.get('purpose', calc.DelayPurpose.NONE)),
            format_func=lambda p: PURPOSE_LABELS[p]
        )
        waiting = st.number_input(
            "Jours de carence",
            min_value=0,
            value=preset.get('waiting_period_days', config['waiting_period_days']),
            step=1,
            help="Utilisé uniquement pour la subrogation."
        )
        rest_days = st.multiselect(
            "Jours de repos",
            options=list(range(7)),
            default=sorted(config['rest_days']),
            format_func=lambda w: calc.FRENCH_WEEKDAYS[w]
        )
        non_working_day = st.selectbox(
            "Jour non ouvrable",
            options=list(range(7)),
            index=config['non_working_day'],
            format_func=lambda w: calc.FRENCH_WEEKDAYS[w]
        )
        submitted = st.form_submit_button("Calculer")

    if submitted:
        form = {
            'start': start,
            'days': days,
            'day_kind': day_kind,
            'purpose': purpose,
            'waiting_period_days': waiting,
            'rest_days': rest_days,
            'non_working_day': non_working_day,
        }
        try:
            spec = delay_spec_from_form(form, config)
            result = calc.add_delay(spec)
        except ValueError as e:
            st.sidebar.error(f"Calcul impossible : {e}")
            return
        st.sidebar.success(
            f"Échéance : {calc.format_day_fr(result.end)} "
            f"{calc.get_month_name(result.end.month)} {result.end.year}"
        )
        st.sidebar.markdown("  \n".join(delay_breakdown(spec, result)))
        if not spec.rest_days:
            st.sidebar.info("Aucun jour de repos : seuls les jours fériés sont exclus des jours ouvrés.")


def render_worked_calculators(config: Dict[str, Any]) -> None:
    """Hours and days worked calculators."""
    year = st.session_state.current_year
    month = st.session_state.current_month

    with st.expander("🧮 Calcul des heures et jours travaillés", expanded=False):
        tab_hours, tab_days = st.tabs(["Heures", "Jours"])

        with tab_hours:
            weekly = st.text_input("Heures hebdomadaires", value=str(config['weekly_hours']))
            absence = st.text_input("Heures d'absence", value="0")
            summary = calc.hours_summary(
                settings.coerce_float(weekly, config['weekly_hours']),
                settings.coerce_float(absence, 0.0)
            )
            col1, col2, col3 = st.columns(3)
            col1.metric("Heures théoriques", f"{summary.theoretical_hours:.2f}")
            col2.metric("Heures travaillées", f"{summary.worked_hours:.2f}")
            col3.metric("Part payée", f"{summary.paid_ratio:.2%}")

        with tab_days:
            day_kinds = list(calc.DayKind)
            day_kind = st.selectbox(
                "Décompte",
                options=day_kinds,
                index=day_kinds.index(calc.DayKind.WORKING),
                format_func=lambda k: DAY_KIND_LABELS[k],
                key="days_summary_kind"
            )
            absent = st.text_input("Jours d'absence", value="0")
            summary = calc.days_summary(
                year,
                month,
                settings.coerce_int(absent, 0),
                day_kind,
                config['rest_days'],
                config['non_working_day']
            )
            st.caption(f"{calc.get_month_name(month).capitalize()} {year}")
            col1, col2, col3 = st.columns(3)
            col1.metric("Jours théoriques", summary.theoretical_days)
            col2.metric("Jours travaillés", summary.worked_days)
            col3.metric("Part payée", f"{summary.paid_ratio:.2%}")


def render_export(config: Dict[str, Any]) -> None:
    st.sidebar.markdown("---")
    st.sidebar.header("📁 Export")
    year = st.session_state.current_year
    month = st.session_state.current_month
    json_data = calc.serialize_month(year, month, config['rest_days'], config['non_working_day'])
    st.sidebar.download_button(
        label="Exporter le mois (JSON)",
        data=json_data,
        file_name=f"calendrier_paie_{year}_{month:02d}.json",
        mime="application/json"
    )


def main(config: Optional[Dict[str, Any]] = None):
    """Main application function."""
    if config is None:
        config = settings.load_settings()
    settings.configure_logging(config['log_level'])

    st.set_page_config(
        page_title="Calendrier de paie",
        page_icon="📅",
        layout="wide",
        initial_sidebar_state="expanded"
    )
    st.markdown(CSS, unsafe_allow_html=True)
    st.title("📅 Calendrier de paie")

    init_state()
    render_header()

    try:
        if st.session_state.view_mode == 'year':
            render_annual_view(config)
        else:
            render_month_view(config)
    except ValueError as e:
        logger.warning("Calendar view failed: %s", e)
        st.error(f"Affichage impossible : {e}")

    render_delay_calculator(config)
    render_export(config)
    render_worked_calculators(config)

    st.markdown("---")
    st.caption(
        "Jours ouvrés : hors jours de repos et jours fériés. "
        "Jours ouvrables : tous les jours sauf le jour non ouvrable."
    )


if __name__ == "__main__":
    main()
