# dental_app_pkg/patients/routes.py
from flask import Blueprint, request, jsonify, current_app, g
from ..errors import DentalAppError, FetchError, ValidationError
from ..notices import error_notice, success_response
from ..utils import dentist_required
from . import services

patients_bp = Blueprint('patients_bp', __name__)


@patients_bp.before_request
def ensure_json():
    if request.method in ['POST', 'PUT', 'PATCH'] and request.content_length and not request.is_json:
        return jsonify({"error": "Request body must be JSON."}), 415


def _payload():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("No data provided")
    return data


@patients_bp.route('/patients', methods=['GET'])
@dentist_required
def list_patients():
    try:
        patients = services.list_patients(g.current_dentist_id, request.args.get('search'))
    except DentalAppError as e:
        current_app.logger.error(f"Error fetching patients: {e}")
        return error_notice(FetchError("Failed to load patients"))
    return jsonify({"patients": patients}), 200


@patients_bp.route('/patients/<string:patient_id>/treatment-plans', methods=['POST'])
@dentist_required
def create_treatment_plan(patient_id):
    try:
        plan = services.create_treatment_plan(patient_id, g.current_dentist_id, _payload())
    except DentalAppError as e:
        current_app.logger.error(f"Error creating treatment plan for patient {patient_id}: {e}")
        return error_notice(e)
    return success_response("Success", "Treatment plan created successfully", 201, treatment_plan=plan.to_dict())


@patients_bp.route('/treatment-plans/<string:plan_id>', methods=['PUT'])
@dentist_required
def update_treatment_plan(plan_id):
    try:
        plan = services.update_treatment_plan(plan_id, g.current_dentist_id, _payload())
    except DentalAppError as e:
        current_app.logger.error(f"Error updating treatment plan {plan_id}: {e}")
        return error_notice(e)
    return success_response("Success", "Treatment plan updated successfully", treatment_plan=plan.to_dict())


@patients_bp.route('/treatment-plans/<string:plan_id>/steps', methods=['POST'])
@dentist_required
def add_treatment_step(plan_id):
    try:
        steps = services.add_step(plan_id, g.current_dentist_id, _payload().get('title'))
    except DentalAppError as e:
        current_app.logger.error(f"Error adding step to treatment plan {plan_id}: {e}")
        return error_notice(e)
    return jsonify({"treatment_steps": steps}), 201


@patients_bp.route('/treatment-plans/<string:plan_id>/steps/<string:step_id>/toggle', methods=['POST'])
@dentist_required
def toggle_treatment_step(plan_id, step_id):
    try:
        steps = services.toggle_step(plan_id, g.current_dentist_id, step_id)
    except DentalAppError as e:
        current_app.logger.error(f"Error toggling step {step_id} on treatment plan {plan_id}: {e}")
        return error_notice(e)
    return jsonify({"treatment_steps": steps}), 200


@patients_bp.route('/patients/<string:patient_id>/medical-records', methods=['POST'])
@dentist_required
def create_medical_record(patient_id):
    try:
        record = services.create_medical_record(patient_id, g.current_dentist_id, _payload())
    except DentalAppError as e:
        current_app.logger.error(f"Error creating medical record for patient {patient_id}: {e}")
        return error_notice(e)
    return success_response("Success", "Medical record created successfully", 201, medical_record=record.to_dict())


@patients_bp.route('/patients/<string:patient_id>/prescriptions', methods=['POST'])
@dentist_required
def create_prescription(patient_id):
    try:
        prescription = services.create_prescription(patient_id, g.current_dentist_id, _payload())
    except DentalAppError as e:
        current_app.logger.error(f"Error creating prescription for patient {patient_id}: {e}")
        return error_notice(e)
    return success_response("Success", "Prescription created successfully", 201, prescription=prescription.to_dict())
