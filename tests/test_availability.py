# tests/test_availability.py
import datetime
import pytest
from dental_app_pkg.models import CalendarEvent
from dental_app_pkg.errors import FetchError, ValidationError
from dental_app_pkg.availability.services import TimeOffManager, TimeOffStore, day_key


def _manager(clinic, **kwargs):
    return TimeOffManager(clinic["dentist"].id, **kwargs)


def test_day_key_ignores_time_of_day():
    assert day_key('2030-05-01T08:30:00') == '2030-05-01'
    assert day_key(datetime.datetime(2030, 5, 1, 23, 59)) == '2030-05-01'
    with pytest.raises(ValidationError):
        day_key('not-a-date')


def test_toggle_twice_clears_selection(clinic):
    manager = _manager(clinic)
    manager.toggle_selection('2030-05-01')
    assert manager.toggle_selection('2030-05-01T15:00:00') == []


def test_select_is_idempotent_per_day(clinic):
    manager = _manager(clinic)
    manager.select('2030-05-01')
    manager.select('2030-05-01T09:00:00')
    assert manager.selected_dates == [datetime.date(2030, 5, 1)]


def test_commit_with_nothing_selected_writes_nothing(clinic):
    manager = _manager(clinic)
    with pytest.raises(ValidationError) as exc:
        manager.commit([])
    assert exc.value.title == "No dates selected"
    assert CalendarEvent.query.count() == 0


def test_commit_writes_one_full_day_event_per_date(clinic):
    manager = _manager(clinic)
    manager.toggle_selection('2030-05-02')

    written = manager.commit(['2030-05-01'])

    assert written == [datetime.date(2030, 5, 1), datetime.date(2030, 5, 2)]
    assert manager.selected_dates == []
    assert manager.time_off == written
    events = CalendarEvent.query.order_by(CalendarEvent.start_datetime).all()
    assert len(events) == 2
    assert events[0].event_type == 'time_off'
    assert events[0].start_datetime == datetime.datetime(2030, 5, 1, 0, 0, 0)
    assert events[0].end_datetime == datetime.datetime(2030, 5, 1, 23, 59, 59, 999000)
    assert manager.is_time_off('2030-05-02')
    assert not manager.is_time_off('2030-05-03')


def test_commit_skips_days_already_blocked(clinic):
    _manager(clinic).commit(['2030-05-01'])

    written = _manager(clinic).commit(['2030-05-01', '2030-05-02'])

    assert written == [datetime.date(2030, 5, 2)]
    assert CalendarEvent.query.count() == 2


def test_duplicates_allowed_when_dedupe_is_off(clinic):
    _manager(clinic).commit(['2030-05-01'])
    _manager(clinic, dedupe=False).commit(['2030-05-01'])
    assert CalendarEvent.query.count() == 2


def test_remove_deletes_the_whole_day(clinic):
    manager = _manager(clinic)
    manager.commit(['2030-05-01', '2030-05-02'])

    assert manager.remove('2030-05-01') == 1
    assert manager.time_off == [datetime.date(2030, 5, 2)]


def test_time_off_is_scoped_to_the_dentist(clinic):
    _manager(clinic).commit(['2030-05-01'])
    other = TimeOffManager('someone-else')
    assert other.list_time_off() == []


def test_failed_reload_after_commit_keeps_previous_list(clinic, monkeypatch):
    _manager(clinic).commit(['2030-05-01'])
    calls = []
    original = TimeOffStore.list_starts

    def flaky(self, dentist_id):
        calls.append(dentist_id)
        if len(calls) > 1:
            raise FetchError("Failed to load time off dates")
        return original(self, dentist_id)
    monkeypatch.setattr(TimeOffStore, "list_starts", flaky)

    manager = _manager(clinic)
    written = manager.commit(['2030-05-02'])

    assert written == [datetime.date(2030, 5, 2)]
    assert manager.selected_dates == []
    assert manager.time_off == [datetime.date(2030, 5, 1)]
    assert CalendarEvent.query.count() == 2


def test_failed_reload_after_remove_is_not_an_error(clinic, monkeypatch):
    manager = _manager(clinic)
    manager.commit(['2030-05-01', '2030-05-02'])

    def broken(self, dentist_id):
        raise FetchError("Failed to load time off dates")
    monkeypatch.setattr(TimeOffStore, "list_starts", broken)

    assert manager.remove('2030-05-01') == 1
    assert manager.time_off == [datetime.date(2030, 5, 1), datetime.date(2030, 5, 2)]
    assert CalendarEvent.query.count() == 1
