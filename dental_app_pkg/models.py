from . import db # Imports the db instance from __init__.py
import datetime
import uuid

# --- Vocabularies ---
USER_ROLES = ('patient', 'dentist', 'admin')

APPOINTMENT_STATUSES = ('pending', 'confirmed', 'completed', 'cancelled')
ACTIVE_APPOINTMENT_STATUSES = ('pending', 'confirmed')
URGENCY_LEVELS = ('low', 'medium', 'high', 'emergency')

TREATMENT_PLAN_STATUSES = ('draft', 'active', 'completed', 'cancelled')
TREATMENT_PLAN_PRIORITIES = ('low', 'medium', 'high', 'urgent')

MEDICAL_RECORD_TYPES = (
    'consultation', 'diagnosis', 'treatment', 'prescription',
    'x-ray', 'cleaning', 'surgery', 'follow-up',
)

PRESCRIPTION_STATUSES = ('active', 'completed', 'cancelled')
PRESCRIPTION_FREQUENCIES = (
    'Once daily', 'Twice daily', 'Three times daily', 'Four times daily',
    'Every 4 hours', 'Every 6 hours', 'Every 8 hours', 'As needed',
)

TIME_OFF_EVENT_TYPE = 'time_off'


def _new_id():
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


# --- Model Definitions ---

class Profile(db.Model):
    """Identity record behind every signed-in user (patients and dentists alike)."""
    __tablename__ = 'profiles'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    user_id = db.Column(db.String(36), unique=True, nullable=False, index=True) # Auth provider subject
    email = db.Column(db.String(120), nullable=False, index=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='patient', comment="Valid values: patient, dentist, admin")
    phone = db.Column(db.String(50), nullable=True)
    date_of_birth = db.Column(db.Date, nullable=True)
    address = db.Column(db.Text, nullable=True)
    emergency_contact = db.Column(db.String(255), nullable=True)
    medical_history = db.Column(db.Text, nullable=True)
    preferred_language = db.Column(db.String(20), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "email": self.email,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "role": self.role,
            "phone": self.phone,
            "date_of_birth": _iso(self.date_of_birth),
            "address": self.address,
            "emergency_contact": self.emergency_contact,
            "medical_history": self.medical_history,
            "preferred_language": self.preferred_language,
        }

    def to_patient_dict(self):
        """The constrained patient view used by the dentist screens."""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "full_name": self.full_name,
            "email": self.email,
            "phone": self.phone,
            "date_of_birth": _iso(self.date_of_birth),
            "address": self.address,
            "emergency_contact": self.emergency_contact,
            "medical_history": self.medical_history,
        }

    def __repr__(self):
        return f'<Profile {self.email} ({self.role})>'


class Dentist(db.Model):
    __tablename__ = 'dentists'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    profile_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, unique=True, index=True)
    specialization = db.Column(db.String(120), nullable=True)
    license_number = db.Column(db.String(80), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    profile = db.relationship('Profile', backref=db.backref('dentist', uselist=False))

    def to_dict(self):
        return {
            "id": self.id,
            "profile_id": self.profile_id,
            "specialization": self.specialization,
            "license_number": self.license_number,
            "is_active": self.is_active,
        }

    def __repr__(self):
        return f'<Dentist {self.id} profile:{self.profile_id}>'


class Appointment(db.Model):
    __tablename__ = 'appointments'

    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    patient_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    dentist_id = db.Column(db.String(36), db.ForeignKey('dentists.id'), nullable=False, index=True)

    appointment_date = db.Column(db.DateTime, nullable=False, index=True)
    duration_minutes = db.Column(db.Integer, default=30)

    patient_name = db.Column(db.String(200), nullable=True) # Name as entered at booking time
    patient_age = db.Column(db.Integer, nullable=True)
    reason = db.Column(db.Text, nullable=True)
    notes = db.Column(db.Text, nullable=True) # Patient-supplied notes at booking
    consultation_notes = db.Column(db.Text, nullable=True) # Written by the dentist at or after the visit

    status = db.Column(
        db.String(20),
        nullable=False,
        default='pending',
        index=True,
        comment="Valid values: pending, confirmed, completed, cancelled"
    )
    urgency = db.Column(db.String(20), nullable=False, default='low', comment="Valid values: low, medium, high, emergency")

    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    patient = db.relationship('Profile', foreign_keys=[patient_id])
    dentist = db.relationship('Dentist', backref=db.backref('appointments', lazy='dynamic'))

    def to_dict(self):
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "dentist_id": self.dentist_id,
            "patient_name": self.patient_name or (self.patient.full_name if self.patient else None),
            "patient_age": self.patient_age,
            "appointment_date": _iso(self.appointment_date),
            "duration_minutes": self.duration_minutes,
            "reason": self.reason,
            "notes": self.notes,
            "consultation_notes": self.consultation_notes,
            "status": self.status,
            "urgency": self.urgency,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return (
            f"<Appointment {self.id} | Patient {self.patient_id} | "
            f"Dentist {self.dentist_id} @ {self.appointment_date} [{self.status}]>"
        )


class UrgencyAssessment(db.Model):
    """Symptom intake answers recorded when the patient booked. Read-only here."""
    __tablename__ = 'urgency_assessments'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    appointment_id = db.Column(db.String(36), db.ForeignKey('appointments.id'), nullable=False, unique=True, index=True)
    pain_level = db.Column(db.Integer, nullable=True) # 0-10
    has_swelling = db.Column(db.Boolean, nullable=True) # None means "unknown"
    has_bleeding = db.Column(db.Boolean, nullable=True)
    duration_symptoms = db.Column(db.String(100), nullable=True)
    assessment_score = db.Column(db.Integer, nullable=True)
    calculated_urgency = db.Column(db.String(20), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "appointment_id": self.appointment_id,
            "pain_level": self.pain_level,
            "has_swelling": self.has_swelling,
            "has_bleeding": self.has_bleeding,
            "duration_symptoms": self.duration_symptoms,
            "assessment_score": self.assessment_score,
            "calculated_urgency": self.calculated_urgency,
        }


class TreatmentPlan(db.Model):
    __tablename__ = 'treatment_plans'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    patient_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    dentist_id = db.Column(db.String(36), db.ForeignKey('dentists.id'), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    diagnosis = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='draft')
    priority = db.Column(db.String(20), nullable=False, default='medium')
    estimated_cost = db.Column(db.Float, nullable=True)
    estimated_duration_weeks = db.Column(db.Integer, nullable=True)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    # Ordered list of {id, title, completed}; always replaced as a whole.
    treatment_steps = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "dentist_id": self.dentist_id,
            "title": self.title,
            "description": self.description,
            "diagnosis": self.diagnosis,
            "status": self.status,
            "priority": self.priority,
            "estimated_cost": self.estimated_cost,
            "estimated_duration_weeks": self.estimated_duration_weeks,
            "start_date": _iso(self.start_date),
            "end_date": _iso(self.end_date),
            "notes": self.notes,
            "treatment_steps": list(self.treatment_steps or []),
            "created_at": _iso(self.created_at),
        }

    def __repr__(self):
        return f'<TreatmentPlan {self.id} "{self.title}" [{self.status}]>'


class MedicalRecord(db.Model):
    __tablename__ = 'medical_records'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    patient_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    dentist_id = db.Column(db.String(36), db.ForeignKey('dentists.id'), nullable=False, index=True)
    title = db.Column(db.String(255), nullable=False)
    record_type = db.Column(db.String(50), nullable=False, default='consultation')
    visit_date = db.Column(db.Date, nullable=False)
    description = db.Column(db.Text, nullable=True)
    findings = db.Column(db.Text, nullable=True)
    recommendations = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "dentist_id": self.dentist_id,
            "title": self.title,
            "record_type": self.record_type,
            "visit_date": _iso(self.visit_date),
            "description": self.description,
            "findings": self.findings,
            "recommendations": self.recommendations,
            "created_at": _iso(self.created_at),
        }


class Prescription(db.Model):
    __tablename__ = 'prescriptions'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    patient_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    dentist_id = db.Column(db.String(36), db.ForeignKey('dentists.id'), nullable=False, index=True)
    medication_name = db.Column(db.String(255), nullable=False)
    dosage = db.Column(db.String(100), nullable=False)
    frequency = db.Column(db.String(50), nullable=False)
    duration_days = db.Column(db.Integer, nullable=True)
    instructions = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), nullable=False, default='active')
    prescribed_date = db.Column(db.Date, nullable=False, default=datetime.date.today)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "dentist_id": self.dentist_id,
            "medication_name": self.medication_name,
            "dosage": self.dosage,
            "frequency": self.frequency,
            "duration_days": self.duration_days,
            "instructions": self.instructions,
            "status": self.status,
            "prescribed_date": _iso(self.prescribed_date),
            "created_at": _iso(self.created_at),
        }


class PatientDocument(db.Model):
    __tablename__ = 'patient_documents'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    patient_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    dentist_id = db.Column(db.String(36), db.ForeignKey('dentists.id'), nullable=False, index=True)
    document_name = db.Column(db.String(255), nullable=False)
    document_type = db.Column(db.String(50), nullable=False)
    mime_type = db.Column(db.String(100), nullable=True)
    file_size = db.Column(db.Integer, nullable=True)
    # Pointer into the external cloud storage
    external_file_id = db.Column(db.String(255), nullable=True)
    external_url = db.Column(db.String(1024), nullable=True)
    is_synced = db.Column(db.Boolean, default=False, nullable=False)
    last_synced_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)

    patient = db.relationship('Profile', foreign_keys=[patient_id])

    @property
    def sync_status(self):
        return "synced" if self.is_synced and self.external_file_id else "not_synced"

    def to_dict(self):
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "dentist_id": self.dentist_id,
            "patient_name": self.patient.full_name if self.patient else None,
            "document_name": self.document_name,
            "document_type": self.document_type,
            "mime_type": self.mime_type,
            "file_size": self.file_size,
            "external_file_id": self.external_file_id,
            "external_url": self.external_url,
            "is_synced": self.is_synced,
            "sync_status": self.sync_status,
            "last_synced_at": _iso(self.last_synced_at),
            "created_at": _iso(self.created_at),
        }


class CalendarEvent(db.Model):
    __tablename__ = 'calendar_events'
    id = db.Column(db.String(36), primary_key=True, default=_new_id)
    dentist_id = db.Column(db.String(36), db.ForeignKey('dentists.id'), nullable=False, index=True)
    appointment_id = db.Column(db.String(36), db.ForeignKey('appointments.id'), nullable=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    event_type = db.Column(db.String(50), nullable=False, default='appointment', index=True)
    start_datetime = db.Column(db.DateTime, nullable=False, index=True)
    end_datetime = db.Column(db.DateTime, nullable=False)
    is_recurring = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "dentist_id": self.dentist_id,
            "appointment_id": self.appointment_id,
            "title": self.title,
            "description": self.description,
            "event_type": self.event_type,
            "start_datetime": _iso(self.start_datetime),
            "end_datetime": _iso(self.end_datetime),
            "is_recurring": self.is_recurring,
        }

    def __repr__(self):
        return f'<CalendarEvent {self.event_type} {self.start_datetime} dentist:{self.dentist_id}>'
