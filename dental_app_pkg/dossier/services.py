# dental_app_pkg/dossier/services.py
import datetime
from dataclasses import dataclass, field
from typing import List, Optional
from flask import current_app
from ..models import ACTIVE_APPOINTMENT_STATUSES
from ..errors import FetchError, NotFoundError, PartialAggregationError, ValidationError
from ..appointments.store import AppointmentStore
from ..patients.services import ClinicalRecordStore, clean_text


@dataclass
class PatientDossier:
    """Read model of one patient's history with one dentist."""
    patient: dict
    treatment_plans: List[dict] = field(default_factory=list)
    medical_records: List[dict] = field(default_factory=list)
    prescriptions: List[dict] = field(default_factory=list)
    appointments: List[dict] = field(default_factory=list)
    next_appointment: Optional[dict] = None
    errors: List[PartialAggregationError] = field(default_factory=list)

    @property
    def degraded(self):
        return [e.collection for e in self.errors]

    @property
    def active_treatment_plans(self):
        return [p for p in self.treatment_plans if p["status"] == 'active']

    @property
    def active_prescriptions(self):
        return [p for p in self.prescriptions if p["status"] == 'active']

    def to_dict(self):
        return {
            "patient": self.patient,
            "treatment_plans": self.treatment_plans,
            "active_treatment_plans": self.active_treatment_plans,
            "medical_records": self.medical_records,
            "prescriptions": self.prescriptions,
            "active_prescriptions": self.active_prescriptions,
            "appointments": self.appointments,
            "next_appointment": self.next_appointment,
            "degraded": self.degraded,
        }


def find_next_appointment(appointments, now=None):
    """
    Earliest pending or confirmed appointment scheduled after `now`.

    Scans the whole list in memory; fine for one patient's history.
    """
    now = now or datetime.datetime.utcnow()
    upcoming = [a for a in appointments
                if a.status in ACTIVE_APPOINTMENT_STATUSES and a.appointment_date > now]
    return min(upcoming, key=lambda a: a.appointment_date, default=None)


class DossierAggregator:
    """
    Builds a PatientDossier from four independently stored collections.

    The patient profile read is mandatory and its failure fails the load. Each
    satellite collection is read on its own; a failed read leaves that slice
    empty and is recorded on the dossier instead of raising.
    """

    SLICES = ('treatment_plans', 'medical_records', 'prescriptions', 'appointments')

    def __init__(self, clinical_store=None, appointment_store=None):
        self.clinical = clinical_store or ClinicalRecordStore()
        self.appointments = appointment_store or AppointmentStore()

    def load_dossier(self, patient_id, dentist_id, now=None):
        patient = self.clinical.profile(patient_id)
        if not patient or not self.clinical.shares_appointment(patient_id, dentist_id):
            raise NotFoundError("Patient not found")

        dossier = PatientDossier(patient=patient.to_patient_dict())
        loaders = {
            'treatment_plans': lambda: self.clinical.treatment_plans(patient_id, dentist_id),
            'medical_records': lambda: self.clinical.medical_records(patient_id, dentist_id),
            'prescriptions': lambda: self.clinical.prescriptions(patient_id, dentist_id),
            'appointments': lambda: self.appointments.fetch(dentist_id, patient_id=patient_id, ascending=False),
        }
        appointment_rows = []
        for name in self.SLICES:
            try:
                rows = loaders[name]()
            except FetchError as e:
                current_app.logger.warning(f"[Dossier] {name} unavailable for patient {patient_id}: {e}")
                dossier.errors.append(PartialAggregationError(name, e))
                continue
            setattr(dossier, name, [row.to_dict() for row in rows])
            if name == 'appointments':
                appointment_rows = rows

        upcoming = find_next_appointment(appointment_rows, now)
        if upcoming is not None:
            dossier.next_appointment = next(a for a in dossier.appointments if a["id"] == upcoming.id)
        return dossier

    def save_next_appointment_notes(self, dossier, dentist_id, appointment_id, text):
        """Writes consultation notes on the dossier's next appointment and patches the dossier in place."""
        if dossier.next_appointment is None:
            raise ValidationError("This patient has no upcoming appointment.", title="No upcoming appointment")
        if dossier.next_appointment["id"] != appointment_id:
            raise ValidationError("Notes can only be saved on the next appointment.", title="Invalid appointment")
        clean_text(text, 'consultation_notes')

        updated = self.appointments.update(appointment_id, dentist_id, consultation_notes=text).to_dict()
        dossier.appointments = [updated if a["id"] == appointment_id else a for a in dossier.appointments]
        dossier.next_appointment = updated
        return updated
