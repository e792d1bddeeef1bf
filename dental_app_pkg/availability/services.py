# dental_app_pkg/availability/services.py
from flask import current_app
from .. import db
from ..models import CalendarEvent, TIME_OFF_EVENT_TYPE
from ..errors import FetchError, ValidationError
from ..services import store_read, store_write
from ..utils import parse_iso_date
from ..appointments.store import day_bounds


def day_key(value):
    """Calendar-day key ('YYYY-MM-DD') used to compare dates regardless of time of day."""
    day = parse_iso_date(value)
    if day is None:
        raise ValidationError(f"Invalid date '{value}'. Use YYYY-MM-DD.", title="Invalid date")
    return day.isoformat()


class TimeOffStore:

    def list_starts(self, dentist_id):
        with store_read("time off dates"):
            rows = (CalendarEvent.query
                    .filter_by(dentist_id=dentist_id, event_type=TIME_OFF_EVENT_TYPE)
                    .order_by(CalendarEvent.start_datetime.asc())
                    .all())
        return [row.start_datetime for row in rows]

    def insert_days(self, dentist_id, days):
        events = []
        for day in days:
            start, end = day_bounds(day)
            events.append(CalendarEvent(
                dentist_id=dentist_id,
                title='Time Off',
                description='Dentist unavailable',
                event_type=TIME_OFF_EVENT_TYPE,
                start_datetime=start,
                end_datetime=end,
                is_recurring=False,
            ))
        with store_write("schedule time off"):
            db.session.add_all(events)
            db.session.commit()
        return events

    def delete_day(self, dentist_id, day):
        start, end = day_bounds(day)
        with store_write("remove time off"):
            deleted = (CalendarEvent.query
                       .filter(CalendarEvent.dentist_id == dentist_id,
                               CalendarEvent.event_type == TIME_OFF_EVENT_TYPE,
                               CalendarEvent.start_datetime >= start,
                               CalendarEvent.start_datetime <= end)
                       .delete(synchronize_session=False))
            db.session.commit()
        return deleted


class TimeOffManager:
    """
    A dentist's blackout days plus the set of days picked but not yet saved.

    Each blackout day is its own calendar event spanning 00:00:00.000 to
    23:59:59.999. The pending selection is keyed by calendar day, so two picks
    of the same day at different times are the same pick.
    """

    def __init__(self, dentist_id, store=None, dedupe=None):
        self.dentist_id = dentist_id
        self.store = store or TimeOffStore()
        if dedupe is None:
            dedupe = current_app.config.get('DEDUPE_TIME_OFF', True)
        self.dedupe = dedupe
        self.time_off = []
        self._selection = {}

    @property
    def selected_dates(self):
        return sorted(self._selection.values())

    def list_time_off(self):
        self.time_off = [start.date() for start in self.store.list_starts(self.dentist_id)]
        return self.time_off

    def is_time_off(self, value):
        key = day_key(value)
        return any(day.isoformat() == key for day in self.time_off)

    def select(self, value):
        key = day_key(value)
        self._selection[key] = parse_iso_date(key)
        return self.selected_dates

    def toggle_selection(self, value):
        key = day_key(value)
        if key in self._selection:
            del self._selection[key]
        else:
            self._selection[key] = parse_iso_date(key)
        return self.selected_dates

    def commit(self, dates=None):
        """
        Saves one time-off event per selected day, then clears the selection
        and reloads the blackout list. Returns the days that were written.
        """
        if dates is not None:
            for value in dates:
                self.select(value)
        days = self.selected_dates
        if not days:
            raise ValidationError("Please select at least one date for time off", title="No dates selected")

        if self.dedupe:
            existing = {day.isoformat() for day in self.list_time_off()}
            skipped = [d for d in days if d.isoformat() in existing]
            if skipped:
                current_app.logger.info(f"[TimeOff] Skipping {len(skipped)} day(s) already blocked for dentist {self.dentist_id}.")
            days = [d for d in days if d.isoformat() not in existing]

        if days:
            self.store.insert_days(self.dentist_id, days)
        current_app.logger.info(f"[TimeOff] Time off scheduled for {len(days)} day(s) for dentist {self.dentist_id}.")
        self._selection = {}
        self._refresh_after_write()
        return days

    def remove(self, value):
        day = parse_iso_date(day_key(value))
        deleted = self.store.delete_day(self.dentist_id, day)
        current_app.logger.info(f"[TimeOff] Removed {deleted} time off event(s) on {day} for dentist {self.dentist_id}.")
        self._refresh_after_write()
        return deleted

    def _refresh_after_write(self):
        """Reloads the blackout list after a write. A failed read keeps the previous list."""
        try:
            self.list_time_off()
        except FetchError as e:
            current_app.logger.warning(f"[TimeOff] Saved, but the time off list could not be reloaded: {e}")
        return self.time_off
