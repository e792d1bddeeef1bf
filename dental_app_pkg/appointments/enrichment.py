# dental_app_pkg/appointments/enrichment.py
from flask import current_app
from ..errors import FetchError
from ..models import URGENCY_LEVELS


def urgency_label(level):
    """Display label for a triage level; unknown levels fall back to Low."""
    if level not in URGENCY_LEVELS:
        level = 'low'
    return level.capitalize()


def urgency_badge(level):
    return {"level": level if level in URGENCY_LEVELS else 'low', "label": urgency_label(level)}


def to_view(appointment, assessment=None):
    """Appointment row plus its symptom assessment, as shown on the triage cards."""
    view = appointment.to_dict()
    view["assessment"] = assessment.to_dict() if assessment else None
    view["urgency_badge"] = urgency_badge(appointment.urgency)
    return view


def enrich(appointments, store):
    """
    Joins each appointment to its symptom assessment.

    The assessment lookup is best effort: if it fails, the list is returned
    without assessments rather than failing the whole load.
    """
    try:
        assessments = store.fetch_assessments([a.id for a in appointments])
    except FetchError as e:
        current_app.logger.warning(f"[Enricher] Assessments unavailable, rendering without symptoms: {e}")
        assessments = {}
    return [to_view(a, assessments.get(a.id)) for a in appointments]


def matches_search(view, term):
    """Case-insensitive substring match over patient name and reason."""
    if not term:
        return True
    needle = term.lower()
    name = (view.get("patient_name") or "").lower()
    reason = (view.get("reason") or "").lower()
    return needle in name or needle in reason
