# dental_app_pkg/dossier/routes.py
from flask import Blueprint, request, jsonify, current_app, g
from ..errors import DentalAppError, ValidationError
from ..notices import error_notice, success_response
from ..utils import dentist_required
from .services import DossierAggregator

dossier_bp = Blueprint('dossier_bp', __name__)


@dossier_bp.route('/patients/<string:patient_id>/dossier', methods=['GET'])
@dentist_required
def get_patient_dossier(patient_id):
    """
    Aggregated clinical history of one patient with the current dentist.
    Slices that failed to load are listed under "degraded" and rendered empty.
    """
    try:
        dossier = DossierAggregator().load_dossier(patient_id, g.current_dentist_id)
    except DentalAppError as e:
        current_app.logger.error(f"Error fetching dossier data for patient {patient_id}: {e}")
        return error_notice(e)
    return jsonify(dossier.to_dict()), 200


@dossier_bp.route('/patients/<string:patient_id>/dossier/next-appointment/notes', methods=['PUT'])
@dentist_required
def save_next_appointment_notes(patient_id):
    data = request.get_json(silent=True) or {}
    if 'consultation_notes' not in data:
        return error_notice(ValidationError("consultation_notes is required."))

    aggregator = DossierAggregator()
    try:
        dossier = aggregator.load_dossier(patient_id, g.current_dentist_id)
        appointment_id = data.get('appointment_id') or (dossier.next_appointment or {}).get('id')
        aggregator.save_next_appointment_notes(dossier, g.current_dentist_id, appointment_id,
                                               data['consultation_notes'])
    except DentalAppError as e:
        current_app.logger.error(f"Error saving next appointment notes for patient {patient_id}: {e}")
        return error_notice(e)
    return success_response("Notes Saved", "Notes for the next appointment have been saved.",
                            dossier=dossier.to_dict())
