# tests/test_documents.py
import datetime
import pytest
import requests
from dental_app_pkg import db
from dental_app_pkg.models import PatientDocument
from dental_app_pkg.errors import ExternalServiceError, FetchError
from dental_app_pkg.documents.services import DocumentTracker


class FakeResponse:
    def __init__(self, status_code, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        return self._payload


@pytest.fixture
def documents(clinic):
    older = PatientDocument(patient_id=clinic["alice"].id, dentist_id=clinic["dentist"].id,
                            document_name="xray.png", document_type="x-ray", mime_type="image/png",
                            created_at=datetime.datetime(2030, 1, 1))
    newer = PatientDocument(patient_id=clinic["bob"].id, dentist_id=clinic["dentist"].id,
                            document_name="consent.pdf", document_type="consent",
                            external_file_id="drive-1", external_url="https://drive.example/1",
                            is_synced=True, last_synced_at=datetime.datetime(2030, 1, 3, 9, 30),
                            created_at=datetime.datetime(2030, 1, 2))
    db.session.add_all([older, newer])
    db.session.commit()
    return {"older": older, "newer": newer}


def test_list_documents_newest_first_with_sync_text(clinic, documents):
    listed = DocumentTracker(clinic["dentist"].id).list_documents()

    assert [d["document_name"] for d in listed] == ["consent.pdf", "xray.png"]
    assert listed[0]["sync_status"] == "synced"
    assert listed[0]["last_sync_text"] == "Last synced: 2030-01-03 09:30"
    assert listed[1]["sync_status"] == "not_synced"
    assert listed[1]["last_sync_text"] == "Never synced"


def test_list_documents_for_one_patient(clinic, documents):
    listed = DocumentTracker(clinic["dentist"].id).list_documents(clinic["alice"].id)
    assert [d["id"] for d in listed] == [documents["older"].id]


def test_upload_marks_document_synced(clinic, documents, monkeypatch):
    sent = {}

    def fake_post(url, json=None, headers=None, timeout=None):
        sent.update(url=url, body=json, headers=headers)
        return FakeResponse(200, {"success": True, "driveFile": {
            "id": "drive-42", "webViewLink": "https://drive.example/42", "size": "2048", "mimeType": "image/png",
        }})
    monkeypatch.setattr(requests, "post", fake_post)

    document = DocumentTracker(clinic["dentist"].id).upload_document(documents["older"].id, b"\x89PNG")

    assert sent["body"]["action"] == "upload"
    assert sent["body"]["fileData"] == "iVBORw=="
    assert sent["body"]["patientName"] == "Alice Jones"
    assert sent["headers"]["Authorization"] == "Bearer test-key"
    assert document.is_synced is True
    assert document.external_file_id == "drive-42"
    assert document.file_size == 2048
    assert document.sync_status == "synced"
    assert document.last_synced_at is not None


def test_rejected_upload_leaves_document_unsynced(clinic, documents, monkeypatch):
    monkeypatch.setattr(requests, "post",
                        lambda *args, **kwargs: FakeResponse(500, {"error": "Quota exceeded"}))

    with pytest.raises(ExternalServiceError) as exc:
        DocumentTracker(clinic["dentist"].id).upload_document(documents["older"].id, b"data")

    assert exc.value.description == "Quota exceeded"
    db.session.expire_all()
    assert db.session.get(PatientDocument, documents["older"].id).is_synced is False


def test_unreachable_storage_is_an_external_error(clinic, documents, monkeypatch):
    def unreachable(*args, **kwargs):
        raise requests.exceptions.ConnectionError("connection refused")
    monkeypatch.setattr(requests, "post", unreachable)

    with pytest.raises(ExternalServiceError):
        DocumentTracker(clinic["dentist"].id).sync_all()


def test_sync_all_returns_results(clinic, monkeypatch):
    monkeypatch.setattr(requests, "post", lambda *args, **kwargs: FakeResponse(200, {
        "success": True, "results": [{"documentId": "a"}, {"documentId": "b"}],
    }))
    assert len(DocumentTracker(clinic["dentist"].id).sync_all()) == 2


def test_document_links_soft_fail(clinic, documents, monkeypatch):
    tracker = DocumentTracker(clinic["dentist"].id)
    assert tracker.document_links(clinic["bob"].id) == [
        {"id": documents["newer"].id, "document_name": "consent.pdf", "external_url": "https://drive.example/1"},
    ]

    def broken(self, patient_id=None):
        raise FetchError("Failed to load documents")
    monkeypatch.setattr(DocumentTracker, "_documents", broken)
    assert tracker.document_links(clinic["bob"].id) == []


def test_unparseable_size_is_stored_as_unknown(clinic, documents, monkeypatch):
    monkeypatch.setattr(requests, "post", lambda *args, **kwargs: FakeResponse(200, {
        "success": True, "driveFile": {"id": "drive-7", "webViewLink": "https://drive.example/7", "size": "n/a"},
    }))

    document = DocumentTracker(clinic["dentist"].id).upload_document(documents["older"].id, b"data")

    assert document.is_synced is True
    assert document.external_file_id == "drive-7"
    assert document.file_size is None
