# dental_app_pkg/documents/services.py
import datetime
from flask import current_app
from .. import db
from ..models import PatientDocument
from ..errors import FetchError, NotFoundError, ValidationError
from ..services import store_read, store_write
from .client import CloudStorageClient


def last_sync_text(document):
    if document.last_synced_at:
        return f"Last synced: {document.last_synced_at.strftime('%Y-%m-%d %H:%M')}"
    return "Never synced"


def _file_size(value):
    """Byte size reported by the storage service; unparseable values read as unknown."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class DocumentTracker:
    """Sync state of a dentist's patient documents against the external cloud storage."""

    def __init__(self, dentist_id, client=None):
        self.dentist_id = dentist_id
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = CloudStorageClient()
        return self._client

    def _documents(self, patient_id=None):
        with store_read("documents"):
            query = PatientDocument.query.filter_by(dentist_id=self.dentist_id)
            if patient_id:
                query = query.filter_by(patient_id=patient_id)
            return query.order_by(PatientDocument.created_at.desc()).all()

    def list_documents(self, patient_id=None):
        documents = []
        for document in self._documents(patient_id):
            item = document.to_dict()
            item["last_sync_text"] = last_sync_text(document)
            documents.append(item)
        return documents

    def document_links(self, patient_id):
        """Name and external link of each document; empty when the read fails."""
        try:
            rows = self._documents(patient_id)
        except FetchError:
            return []
        return [{"id": d.id, "document_name": d.document_name, "external_url": d.external_url} for d in rows]

    def upload_document(self, document_id, file_bytes, file_name=None, mime_type=None):
        if not file_bytes:
            raise ValidationError("A file is required", title="Missing file")
        with store_read("document"):
            document = PatientDocument.query.filter_by(id=document_id, dentist_id=self.dentist_id).first()
        if not document:
            raise NotFoundError("Document not found")

        mime_type = mime_type or document.mime_type or 'application/octet-stream'
        stored = self.client.upload(
            document.id,
            file_name or document.document_name,
            file_bytes,
            mime_type,
            document.patient.full_name if document.patient else 'Unknown Patient',
        )

        file_size = _file_size(stored.get("size"))
        with store_write("record document sync"):
            document.external_file_id = stored.get("id")
            document.external_url = stored.get("webViewLink")
            if file_size is not None:
                document.file_size = file_size
            document.mime_type = stored.get("mimeType") or mime_type
            document.is_synced = True
            document.last_synced_at = datetime.datetime.utcnow()
            db.session.commit()
        current_app.logger.info(f"[Documents] Document {document.id} synced as {document.external_file_id}.")
        return document

    def sync_all(self):
        results = self.client.sync_all()
        current_app.logger.info(f"[Documents] Sync processed {len(results)} document(s).")
        return results
