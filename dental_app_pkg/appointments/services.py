# dental_app_pkg/appointments/services.py
from flask import current_app
from ..models import ACTIVE_APPOINTMENT_STATUSES
from ..errors import NotFoundError, TransitionError, ValidationError
from ..patients.services import build_prescription, clean_text
from .store import AppointmentStore
from .enrichment import enrich, to_view, matches_search

# Legal status edges. completed and cancelled are terminal.
ALLOWED_TRANSITIONS = {
    'pending': ('confirmed', 'cancelled'),
    'confirmed': ('completed', 'cancelled'),
    'completed': (),
    'cancelled': (),
}


def can_transition(current, target):
    return target in ALLOWED_TRANSITIONS.get(current, ())


def check_transition(current, target):
    """Raises TransitionError for any edge outside the state machine, before anything is written."""
    if not can_transition(current, target):
        raise TransitionError(
            f"Cannot move an appointment from '{current}' to '{target}'.",
            title="Invalid status change",
        )


class AppointmentLifecycleController:
    """
    Working set of one dentist's appointments and the legal moves between states.

    `active` holds pending and confirmed appointments ordered by time, `completed`
    the most recent completed ones, newest first. Both lists are only replaced or
    changed after the store has accepted the corresponding write, so a failed
    call leaves them exactly as they were.
    """

    def __init__(self, dentist_id, store=None, require_notes=None):
        self.dentist_id = dentist_id
        self.store = store or AppointmentStore()
        if require_notes is None:
            require_notes = current_app.config.get('REQUIRE_CONSULTATION_NOTES_ON_COMPLETE', True)
        self.require_notes = require_notes
        self.active = []
        self.completed = []

    # --- Loading ---

    def load_active(self):
        rows = self.store.fetch(self.dentist_id, statuses=ACTIVE_APPOINTMENT_STATUSES, ascending=True)
        self.active = enrich(rows, self.store)
        current_app.logger.info(f"[Lifecycle] Loaded {len(self.active)} active appointment(s) for dentist {self.dentist_id}.")
        return self.active

    def load_completed(self, limit=None):
        if limit is None:
            limit = current_app.config.get('COMPLETED_APPOINTMENTS_LIMIT', 20)
        rows = self.store.fetch(self.dentist_id, statuses=('completed',), ascending=False, limit=limit)
        self.completed = enrich(rows, self.store)
        return self.completed

    # --- Views ---

    def pending(self, search=None):
        return [a for a in self.active if a["status"] == 'pending' and matches_search(a, search)]

    def confirmed(self, search=None):
        return [a for a in self.active if a["status"] == 'confirmed' and matches_search(a, search)]

    def counts(self):
        return {"pending": len(self.pending()), "confirmed": len(self.confirmed())}

    # --- Transitions ---

    def accept(self, appointment_id):
        view = self._locate(appointment_id)
        check_transition(view["status"], 'confirmed')
        updated = self.store.update(appointment_id, self.dentist_id, status='confirmed')
        self._place(self._refreshed(updated, view))
        current_app.logger.info(f"[Lifecycle] Appointment {appointment_id} confirmed.")
        return self._find(appointment_id)

    def reject(self, appointment_id):
        view = self._locate(appointment_id)
        check_transition(view["status"], 'cancelled')
        self.store.update(appointment_id, self.dentist_id, status='cancelled')
        self._drop(appointment_id)
        current_app.logger.info(f"[Lifecycle] Appointment {appointment_id} cancelled by dentist.")

    def save_notes(self, appointment_id, text):
        """Overwrites consultation notes; the status is left alone."""
        clean_text(text, 'consultation_notes')
        view = self._locate(appointment_id)
        updated = self.store.update(appointment_id, self.dentist_id, consultation_notes=text)
        self._place(self._refreshed(updated, view))
        return self._find(appointment_id)

    def complete(self, appointment_id, summary):
        return self.complete_with_prescriptions(appointment_id, summary, [])

    def complete_with_prescriptions(self, appointment_id, summary, prescriptions):
        """
        Completes the visit and records any prescriptions in a single transaction.

        Prescriptions with a blank medication name are dropped. If anything in the
        write fails, the appointment stays in its previous state. Completing an
        already completed appointment only replaces its notes.
        """
        notes = clean_text(summary, 'consultation_notes')
        if self.require_notes and not notes:
            raise ValidationError("Consultation notes are required to complete an appointment.",
                                  title="Missing information")

        view = self._locate(appointment_id)
        fields = {"consultation_notes": notes}
        if view["status"] != 'completed':
            check_transition(view["status"], 'completed')
            fields["status"] = 'completed'

        to_insert = [build_prescription(view["patient_id"], self.dentist_id, p)
                     for p in (prescriptions or [])
                     if clean_text(p.get('medication_name'), 'medication_name')]

        updated = self.store.update_with_prescriptions(appointment_id, self.dentist_id, fields, to_insert)
        self._place(self._refreshed(updated, view))
        current_app.logger.info(
            f"[Lifecycle] Appointment {appointment_id} completed with {len(to_insert)} prescription(s)."
        )
        return self._find(appointment_id), to_insert

    # --- Working set bookkeeping ---

    def _find(self, appointment_id):
        for view in self.active + self.completed:
            if view["id"] == appointment_id:
                return view
        return None

    def _locate(self, appointment_id):
        """Working-set entry, or a fresh scoped read when the set was not loaded."""
        view = self._find(appointment_id)
        if view is not None:
            return view
        appointment = self.store.get(appointment_id, self.dentist_id)
        if not appointment:
            raise NotFoundError("Appointment not found")
        return to_view(appointment, None)

    def _refreshed(self, row, previous):
        view = to_view(row, None)
        view["assessment"] = previous.get("assessment")
        return view

    def _drop(self, appointment_id):
        self.active = [a for a in self.active if a["id"] != appointment_id]
        self.completed = [a for a in self.completed if a["id"] != appointment_id]

    def _place(self, view):
        """Puts an updated appointment in the list its status belongs to."""
        status = view["status"]
        if status in ACTIVE_APPOINTMENT_STATUSES:
            if any(a["id"] == view["id"] for a in self.active):
                self.active = [view if a["id"] == view["id"] else a for a in self.active]
            else:
                self.active = sorted(self.active + [view], key=lambda a: a["appointment_date"] or '')
            self.completed = [a for a in self.completed if a["id"] != view["id"]]
        elif status == 'completed':
            was_completed = any(a["id"] == view["id"] for a in self.completed)
            self.active = [a for a in self.active if a["id"] != view["id"]]
            if was_completed:
                self.completed = [view if a["id"] == view["id"] else a for a in self.completed]
            else:
                self.completed = [view] + self.completed
        else:
            self._drop(view["id"])
