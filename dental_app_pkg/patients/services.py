# dental_app_pkg/patients/services.py
import datetime
import secrets
from flask import current_app
from .. import db
from ..models import (
    Appointment, Profile, TreatmentPlan, MedicalRecord, Prescription,
    TREATMENT_PLAN_STATUSES, TREATMENT_PLAN_PRIORITIES, MEDICAL_RECORD_TYPES,
    PRESCRIPTION_STATUSES, PRESCRIPTION_FREQUENCIES,
)
from ..errors import ValidationError, NotFoundError
from ..services import store_read, store_write
from ..utils import parse_iso_date

DEFAULT_PRESCRIPTION_DAYS = 7


class ClinicalRecordStore:
    """Scoped reads and writes for the clinical collections of one (patient, dentist) pair."""

    def profile(self, patient_id):
        with store_read("patient profile"):
            return db.session.get(Profile, patient_id)

    def shares_appointment(self, patient_id, dentist_id):
        with store_read("patient relationship"):
            return Appointment.query.filter_by(patient_id=patient_id, dentist_id=dentist_id).first() is not None

    def patients_for_dentist(self, dentist_id):
        with store_read("patients"):
            return (Profile.query
                    .join(Appointment, Appointment.patient_id == Profile.id)
                    .filter(Appointment.dentist_id == dentist_id)
                    .distinct()
                    .order_by(Profile.last_name.asc(), Profile.first_name.asc())
                    .all())

    def treatment_plans(self, patient_id, dentist_id):
        with store_read("treatment plans"):
            return (TreatmentPlan.query.filter_by(patient_id=patient_id, dentist_id=dentist_id)
                    .order_by(TreatmentPlan.created_at.desc()).all())

    def treatment_plan(self, plan_id, dentist_id):
        with store_read("treatment plan"):
            return TreatmentPlan.query.filter_by(id=plan_id, dentist_id=dentist_id).first()

    def medical_records(self, patient_id, dentist_id):
        with store_read("medical records"):
            return (MedicalRecord.query.filter_by(patient_id=patient_id, dentist_id=dentist_id)
                    .order_by(MedicalRecord.visit_date.desc()).all())

    def prescriptions(self, patient_id, dentist_id):
        with store_read("prescriptions"):
            return (Prescription.query.filter_by(patient_id=patient_id, dentist_id=dentist_id)
                    .order_by(Prescription.prescribed_date.desc()).all())

    def save(self, obj, what):
        with store_write(what):
            db.session.add(obj)
            db.session.commit()
        return obj


# --- Patient list ---

def list_patients(dentist_id, search=None, store=None):
    """Distinct patients sharing at least one appointment with the dentist."""
    store = store or ClinicalRecordStore()
    patients = [p.to_patient_dict() for p in store.patients_for_dentist(dentist_id)]
    if search:
        needle = search.lower()
        patients = [p for p in patients
                    if needle in p["full_name"].lower() or needle in (p["email"] or "").lower()]
    return patients


def ensure_patient_of_dentist(patient_id, dentist_id, store=None):
    """Returns the patient profile, or NotFoundError when the dentist has no appointment with them."""
    store = store or ClinicalRecordStore()
    patient = store.profile(patient_id)
    if not patient or not store.shares_appointment(patient_id, dentist_id):
        raise NotFoundError("Patient not found")
    return patient


# --- Validation helpers ---

def clean_text(value, field):
    """Trimmed text of a free-text field; None reads as empty, anything else but a string is rejected."""
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f"Invalid {field}: expected text.", title="Invalid value")
    return value.strip()


def _required(data, fields):
    missing = [f for f in fields if not clean_text(data.get(f), f)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", title="Missing information")


def _choice(value, allowed, default, field):
    if value in (None, ''):
        return default
    if value not in allowed:
        raise ValidationError(f"Invalid {field} '{value}'. Allowed: {', '.join(allowed)}", title="Invalid value")
    return value


def _optional_date(data, field):
    if not data.get(field):
        return None
    value = parse_iso_date(data[field])
    if value is None:
        raise ValidationError(f"Invalid {field} format. Use YYYY-MM-DD.", title="Invalid value")
    return value


def _optional_number(data, field, cast):
    if data.get(field) in (None, ''):
        return None
    try:
        return cast(data[field])
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: expected a number.", title="Invalid value")


# --- Prescriptions ---

def build_prescription(patient_id, dentist_id, data):
    """Validates one prescription payload and returns an unsaved Prescription."""
    _required(data, ['medication_name', 'dosage', 'frequency'])
    frequency = _choice(data.get('frequency'), PRESCRIPTION_FREQUENCIES, None, 'frequency')
    duration = _optional_number(data, 'duration_days', int)
    return Prescription(
        patient_id=patient_id,
        dentist_id=dentist_id,
        medication_name=clean_text(data['medication_name'], 'medication_name'),
        dosage=clean_text(data['dosage'], 'dosage'),
        frequency=frequency,
        duration_days=duration if duration is not None else DEFAULT_PRESCRIPTION_DAYS,
        instructions=clean_text(data.get('instructions'), 'instructions') or None,
        status=_choice(data.get('status'), PRESCRIPTION_STATUSES, 'active', 'status'),
        prescribed_date=_optional_date(data, 'prescribed_date') or datetime.date.today(),
    )


def create_prescription(patient_id, dentist_id, data, store=None):
    store = store or ClinicalRecordStore()
    ensure_patient_of_dentist(patient_id, dentist_id, store)
    prescription = build_prescription(patient_id, dentist_id, data)
    store.save(prescription, "create prescription")
    current_app.logger.info(f"[Patients] Prescription {prescription.id} created for patient {patient_id}.")
    return prescription


# --- Medical records ---

def create_medical_record(patient_id, dentist_id, data, store=None):
    store = store or ClinicalRecordStore()
    ensure_patient_of_dentist(patient_id, dentist_id, store)
    _required(data, ['title', 'record_type', 'visit_date'])
    visit_date = _optional_date(data, 'visit_date')
    record = MedicalRecord(
        patient_id=patient_id,
        dentist_id=dentist_id,
        title=clean_text(data['title'], 'title'),
        record_type=_choice(data.get('record_type'), MEDICAL_RECORD_TYPES, 'consultation', 'record_type'),
        visit_date=visit_date,
        description=data.get('description'),
        findings=data.get('findings'),
        recommendations=data.get('recommendations'),
    )
    return store.save(record, "create medical record")


# --- Treatment plans ---

PLAN_TEXT_FIELDS = ('description', 'diagnosis', 'notes')


def create_treatment_plan(patient_id, dentist_id, data, store=None):
    store = store or ClinicalRecordStore()
    ensure_patient_of_dentist(patient_id, dentist_id, store)
    _required(data, ['title'])
    plan = TreatmentPlan(
        patient_id=patient_id,
        dentist_id=dentist_id,
        title=clean_text(data['title'], 'title'),
        status=_choice(data.get('status'), TREATMENT_PLAN_STATUSES, 'draft', 'status'),
        priority=_choice(data.get('priority'), TREATMENT_PLAN_PRIORITIES, 'medium', 'priority'),
        estimated_cost=_optional_number(data, 'estimated_cost', float),
        estimated_duration_weeks=_optional_number(data, 'estimated_duration_weeks', int),
        start_date=_optional_date(data, 'start_date'),
        end_date=_optional_date(data, 'end_date'),
        treatment_steps=[],
        **{field: data.get(field) for field in PLAN_TEXT_FIELDS},
    )
    return store.save(plan, "create treatment plan")


def get_treatment_plan(plan_id, dentist_id, store=None):
    store = store or ClinicalRecordStore()
    plan = store.treatment_plan(plan_id, dentist_id)
    if not plan:
        raise NotFoundError("Treatment plan not found")
    return plan


def update_treatment_plan(plan_id, dentist_id, data, store=None):
    store = store or ClinicalRecordStore()
    plan = get_treatment_plan(plan_id, dentist_id, store)
    if 'title' in data:
        _required(data, ['title'])
        plan.title = clean_text(data['title'], 'title')
    if 'status' in data:
        plan.status = _choice(data['status'], TREATMENT_PLAN_STATUSES, plan.status, 'status')
    if 'priority' in data:
        plan.priority = _choice(data['priority'], TREATMENT_PLAN_PRIORITIES, plan.priority, 'priority')
    if 'estimated_cost' in data:
        plan.estimated_cost = _optional_number(data, 'estimated_cost', float)
    if 'estimated_duration_weeks' in data:
        plan.estimated_duration_weeks = _optional_number(data, 'estimated_duration_weeks', int)
    for field in ('start_date', 'end_date'):
        if field in data:
            setattr(plan, field, _optional_date(data, field))
    for field in PLAN_TEXT_FIELDS:
        if field in data:
            setattr(plan, field, data[field])
    return store.save(plan, "update treatment plan")


# --- Treatment steps ---
# Steps live in one JSON document on the plan. Every change builds a new list
# and replaces the whole document; two editors toggling different steps at the
# same time race and the last write wins.

def new_step_id():
    return secrets.token_hex(4)[:7]


def add_step(plan_id, dentist_id, title, store=None):
    store = store or ClinicalRecordStore()
    title = clean_text(title, 'title')
    if not title:
        raise ValidationError("Step title is required", title="Missing information")
    plan = get_treatment_plan(plan_id, dentist_id, store)
    steps = [dict(s) for s in (plan.treatment_steps or [])]
    steps.append({"id": new_step_id(), "title": title, "completed": False})
    plan.treatment_steps = steps
    store.save(plan, "add treatment step")
    return steps


def toggle_step(plan_id, dentist_id, step_id, store=None):
    store = store or ClinicalRecordStore()
    plan = get_treatment_plan(plan_id, dentist_id, store)
    current = plan.treatment_steps or []
    if not any(s.get("id") == step_id for s in current):
        raise NotFoundError("Treatment step not found")
    steps = [dict(s, completed=not s.get("completed", False)) if s.get("id") == step_id else dict(s)
             for s in current]
    plan.treatment_steps = steps
    store.save(plan, "update treatment step")
    return steps
