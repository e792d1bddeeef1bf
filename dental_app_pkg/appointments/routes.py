# dental_app_pkg/appointments/routes.py
import datetime
from flask import Blueprint, request, jsonify, current_app, g
from ..errors import DentalAppError, FetchError, ValidationError
from ..notices import error_notice, success_response
from ..utils import dentist_required, parse_iso_date
from .services import AppointmentLifecycleController
from .store import AppointmentStore
from .enrichment import enrich

appointments_bp = Blueprint('appointments_bp', __name__)


@appointments_bp.before_request
def ensure_json():
    if request.method in ['POST', 'PUT', 'PATCH'] and request.content_length and not request.is_json:
        return jsonify({"error": "Request body must be JSON."}), 415


def _dashboard_payload(controller, search=None):
    return {
        "pending": controller.pending(search),
        "confirmed": controller.confirmed(search),
        "counts": controller.counts(),
    }


@appointments_bp.route('/appointments/active', methods=['GET'])
@dentist_required
def get_active_appointments():
    controller = AppointmentLifecycleController(g.current_dentist_id)
    try:
        controller.load_active()
    except DentalAppError as e:
        current_app.logger.error(f"Error fetching appointments for dentist {g.current_dentist_id}: {e}")
        return error_notice(FetchError("Failed to load appointments"))
    return jsonify(_dashboard_payload(controller, request.args.get('search'))), 200


@appointments_bp.route('/appointments/completed', methods=['GET'])
@dentist_required
def get_completed_appointments():
    limit = request.args.get('limit', type=int)
    if limit is not None and limit <= 0:
        return error_notice(ValidationError("limit must be a positive integer."))
    controller = AppointmentLifecycleController(g.current_dentist_id)
    try:
        completed = controller.load_completed(limit)
    except DentalAppError as e:
        current_app.logger.error(f"Error fetching completed appointments: {e}")
        return error_notice(FetchError("Failed to load completed appointments"))
    return jsonify({"completed": completed}), 200


@appointments_bp.route('/appointments/<string:appointment_id>/accept', methods=['POST'])
@dentist_required
def accept_appointment(appointment_id):
    controller = AppointmentLifecycleController(g.current_dentist_id)
    try:
        appointment = controller.accept(appointment_id)
    except DentalAppError as e:
        current_app.logger.error(f"Error accepting appointment {appointment_id}: {e}")
        return error_notice(e)
    return success_response("Appointment Accepted", "The appointment has been confirmed successfully.",
                            appointment=appointment)


@appointments_bp.route('/appointments/<string:appointment_id>/reject', methods=['POST'])
@dentist_required
def reject_appointment(appointment_id):
    controller = AppointmentLifecycleController(g.current_dentist_id)
    try:
        controller.reject(appointment_id)
    except DentalAppError as e:
        current_app.logger.error(f"Error rejecting appointment {appointment_id}: {e}")
        return error_notice(e)
    return success_response("Appointment Rejected", "The appointment has been cancelled.",
                            appointment_id=appointment_id)


@appointments_bp.route('/appointments/<string:appointment_id>/notes', methods=['PUT'])
@dentist_required
def save_consultation_notes(appointment_id):
    data = request.get_json(silent=True) or {}
    if 'consultation_notes' not in data:
        return error_notice(ValidationError("consultation_notes is required."))
    controller = AppointmentLifecycleController(g.current_dentist_id)
    try:
        appointment = controller.save_notes(appointment_id, data['consultation_notes'])
    except DentalAppError as e:
        current_app.logger.error(f"Error saving notes for appointment {appointment_id}: {e}")
        return error_notice(e)
    return success_response("Notes Saved", "Consultation notes have been saved.", appointment=appointment)


@appointments_bp.route('/appointments/<string:appointment_id>/complete', methods=['POST'])
@dentist_required
def complete_appointment(appointment_id):
    data = request.get_json(silent=True) or {}
    prescriptions = data.get('prescriptions') or []
    if not isinstance(prescriptions, list) or not all(isinstance(p, dict) for p in prescriptions):
        return error_notice(ValidationError("prescriptions must be a list of objects."))

    controller = AppointmentLifecycleController(g.current_dentist_id)
    try:
        appointment, created = controller.complete_with_prescriptions(
            appointment_id, data.get('consultation_notes'), prescriptions
        )
    except DentalAppError as e:
        current_app.logger.error(f"Error completing appointment {appointment_id}: {e}")
        return error_notice(e)
    return success_response("Appointment Completed",
                            "Consultation summary has been saved and appointment marked as completed.",
                            appointment=appointment,
                            prescriptions=[p.to_dict() for p in created])


@appointments_bp.route('/agenda', methods=['GET'])
@dentist_required
def get_agenda():
    from ..documents.services import DocumentTracker

    date_str = request.args.get('date')
    day = parse_iso_date(date_str) if date_str else datetime.date.today()
    if day is None:
        return error_notice(ValidationError("Invalid date format. Use YYYY-MM-DD."))

    store = AppointmentStore()
    try:
        appointments = enrich(store.fetch_for_day(g.current_dentist_id, day), store)
    except DentalAppError as e:
        current_app.logger.error(f"Error fetching agenda: {e}")
        return error_notice(FetchError("Failed to load agenda"))

    tracker = DocumentTracker(g.current_dentist_id)
    for item in appointments:
        item["documents"] = tracker.document_links(item["patient_id"])

    return jsonify({"date": day.isoformat(), "appointments": appointments}), 200
