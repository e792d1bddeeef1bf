# dental_app_pkg/documents/client.py
import base64
import requests
from flask import current_app
from ..errors import ExternalServiceError


class CloudStorageClient:
    """
    Thin client for the cloud storage sync function.

    The function takes a JSON body with an `action` ("upload" or "sync_all")
    and answers with {"success": true, ...} or {"error": "..."}.
    """

    def __init__(self, url=None, api_key=None, timeout=None):
        config = current_app.config
        self.url = url or config['CLOUD_STORAGE_FUNCTION_URL']
        self.api_key = api_key if api_key is not None else config.get('CLOUD_STORAGE_API_KEY')
        self.timeout = timeout or config.get('CLOUD_STORAGE_TIMEOUT_SECONDS', 30)

    def _call(self, body):
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        try:
            r = requests.post(self.url, json=body, headers=headers, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            current_app.logger.error(f"[Documents] Cloud storage request '{body.get('action')}' failed: {e}")
            raise ExternalServiceError("Could not reach the cloud storage service", title="Sync Failed") from e

        try:
            data = r.json()
        except ValueError:
            data = {}
        if not 200 <= r.status_code < 300 or not data.get("success"):
            message = data.get("error") or f"HTTP {r.status_code}"
            current_app.logger.error(f"[Documents] Cloud storage '{body.get('action')}' rejected: {message}")
            raise ExternalServiceError(message, title="Sync Failed")
        return data

    def upload(self, document_id, file_name, file_bytes, mime_type, patient_name):
        """Uploads one file; returns the stored file reference (id, webViewLink, size, mimeType)."""
        data = self._call({
            "action": "upload",
            "documentId": document_id,
            "fileName": file_name,
            "fileData": base64.b64encode(file_bytes).decode('ascii'),
            "mimeType": mime_type,
            "patientName": patient_name,
        })
        return data.get("driveFile") or {}

    def sync_all(self):
        return self._call({"action": "sync_all"}).get("results", [])
