# dental_app_pkg/availability/routes.py
from flask import Blueprint, request, jsonify, current_app, g
from ..errors import DentalAppError, FetchError, ValidationError
from ..notices import error_notice, success_response
from ..utils import dentist_required
from .services import TimeOffManager

availability_bp = Blueprint('availability_bp', __name__)


def _dates(manager):
    return [day.isoformat() for day in manager.time_off]


@availability_bp.route('/time-off', methods=['GET'])
@dentist_required
def list_time_off():
    manager = TimeOffManager(g.current_dentist_id)
    try:
        manager.list_time_off()
    except DentalAppError as e:
        current_app.logger.error(f"Error fetching time off dates: {e}")
        return error_notice(FetchError("Failed to load time off dates"))
    return jsonify({"time_off": _dates(manager)}), 200


@availability_bp.route('/time-off', methods=['POST'])
@dentist_required
def schedule_time_off():
    data = request.get_json(silent=True) or {}
    dates = data.get('dates') or []
    if not isinstance(dates, list):
        return error_notice(ValidationError("dates must be a list of YYYY-MM-DD strings."))

    manager = TimeOffManager(g.current_dentist_id)
    try:
        written = manager.commit(dates)
    except DentalAppError as e:
        current_app.logger.error(f"Error saving time off: {e}")
        return error_notice(e)
    return success_response("Success", f"Time off scheduled for {len(written)} day(s)", 201,
                            scheduled=[day.isoformat() for day in written],
                            time_off=_dates(manager))


@availability_bp.route('/time-off/<string:day>', methods=['DELETE'])
@dentist_required
def remove_time_off(day):
    manager = TimeOffManager(g.current_dentist_id)
    try:
        manager.remove(day)
    except DentalAppError as e:
        current_app.logger.error(f"Error removing time off: {e}")
        return error_notice(e)
    return success_response("Success", "Time off removed", time_off=_dates(manager))
