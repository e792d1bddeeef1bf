# dental_app_pkg/appointments/store.py
import datetime
from flask import current_app
from .. import db
from ..models import Appointment, UrgencyAssessment
from ..errors import TransitionError
from ..services import store_read, store_write


def day_bounds(day):
    """
    First and last instant of a calendar day on the stored clock.

    Appointment times and time-off events are both kept as naive UTC, so an
    agenda day and a blackout day are UTC calendar days.
    """
    start = datetime.datetime.combine(day, datetime.time.min)
    end = datetime.datetime.combine(day, datetime.time(23, 59, 59, 999000))
    return start, end


class AppointmentStore:
    """Query/command interface over appointments and their urgency assessments."""

    def fetch(self, dentist_id, statuses=None, patient_id=None, start=None, end=None, ascending=True, limit=None):
        with store_read("appointments"):
            query = Appointment.query.filter(Appointment.dentist_id == dentist_id)
            if statuses:
                query = query.filter(Appointment.status.in_(list(statuses)))
            if patient_id:
                query = query.filter(Appointment.patient_id == patient_id)
            if start is not None:
                query = query.filter(Appointment.appointment_date >= start)
            if end is not None:
                query = query.filter(Appointment.appointment_date <= end)
            order = Appointment.appointment_date.asc() if ascending else Appointment.appointment_date.desc()
            query = query.order_by(order)
            if limit:
                query = query.limit(limit)
            return query.all()

    def fetch_for_day(self, dentist_id, day):
        start, end = day_bounds(day)
        return self.fetch(dentist_id, start=start, end=end, ascending=True)

    def get(self, appointment_id, dentist_id):
        with store_read("appointment"):
            return Appointment.query.filter_by(id=appointment_id, dentist_id=dentist_id).first()

    def fetch_assessments(self, appointment_ids):
        if not appointment_ids:
            return {}
        with store_read("urgency assessments"):
            rows = UrgencyAssessment.query.filter(UrgencyAssessment.appointment_id.in_(list(appointment_ids))).all()
        return {row.appointment_id: row for row in rows}

    def create(self, patient_id, dentist_id, appointment_date, reason=None, notes=None,
               status='pending', duration_minutes=30, urgency='low', patient_name=None, patient_age=None):
        appointment = Appointment(
            patient_id=patient_id,
            dentist_id=dentist_id,
            appointment_date=appointment_date,
            reason=reason,
            notes=notes,
            status=status,
            duration_minutes=duration_minutes,
            urgency=urgency,
            patient_name=patient_name,
            patient_age=patient_age,
        )
        with store_write("create appointment"):
            db.session.add(appointment)
            db.session.commit()
        return appointment

    def update(self, appointment_id, dentist_id, **fields):
        """
        Applies status / consultation notes changes to one appointment.

        Unconditional by id: concurrent editors overwrite each other (last write wins).
        """
        return self.update_with_prescriptions(appointment_id, dentist_id, fields)

    def update_with_prescriptions(self, appointment_id, dentist_id, fields, prescriptions=()):
        """Writes the appointment changes and any new prescriptions in one transaction."""
        with store_write("update appointment"):
            appointment = Appointment.query.filter_by(id=appointment_id, dentist_id=dentist_id).first()
            if not appointment:
                current_app.logger.warning(f"[Store] Appointment {appointment_id} vanished before update.")
                raise TransitionError("Appointment is no longer available")
            for key, value in fields.items():
                setattr(appointment, key, value)
            appointment.updated_at = datetime.datetime.utcnow()
            for prescription in prescriptions:
                db.session.add(prescription)
            db.session.commit()
        return appointment
