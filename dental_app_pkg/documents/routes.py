# dental_app_pkg/documents/routes.py
from flask import Blueprint, request, jsonify, current_app, g
from ..errors import DentalAppError, FetchError, ValidationError
from ..notices import error_notice, success_response
from ..utils import dentist_required
from .services import DocumentTracker, last_sync_text

documents_bp = Blueprint('documents_bp', __name__)


@documents_bp.route('/documents', methods=['GET'])
@dentist_required
def list_documents():
    tracker = DocumentTracker(g.current_dentist_id)
    try:
        documents = tracker.list_documents(request.args.get('patient_id'))
    except DentalAppError as e:
        current_app.logger.error(f"Error fetching documents: {e}")
        return error_notice(FetchError("Failed to load documents"))
    return jsonify({"documents": documents}), 200


@documents_bp.route('/documents/<string:document_id>/upload', methods=['POST'])
@dentist_required
def upload_document(document_id):
    upload = request.files.get('file')
    if upload is None:
        return error_notice(ValidationError("A file is required", title="Missing file"))

    tracker = DocumentTracker(g.current_dentist_id)
    try:
        document = tracker.upload_document(document_id, upload.read(), upload.filename, upload.mimetype)
    except DentalAppError as e:
        current_app.logger.error(f"Error uploading document {document_id}: {e}")
        return error_notice(e)
    item = document.to_dict()
    item["last_sync_text"] = last_sync_text(document)
    return success_response("Upload Completed", "File uploaded to cloud storage successfully", document=item)


@documents_bp.route('/documents/sync', methods=['POST'])
@dentist_required
def sync_documents():
    tracker = DocumentTracker(g.current_dentist_id)
    try:
        results = tracker.sync_all()
    except DentalAppError as e:
        current_app.logger.error(f"Sync error: {e}")
        return error_notice(e)
    return success_response("Sync Completed", f"Processed {len(results)} documents", results=results)
