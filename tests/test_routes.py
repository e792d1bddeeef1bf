# tests/test_routes.py
import datetime
import io
import requests
from dental_app_pkg import db
from dental_app_pkg.models import Appointment, PatientDocument
from dental_app_pkg.utils import create_access_token
from conftest import make_appointment, make_profile


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200


def test_missing_token_is_rejected(client, clinic):
    response = client.get('/api/appointments/active')
    assert response.status_code == 401
    assert response.get_json()["message"] == "Token is missing!"


def test_patient_accounts_cannot_open_the_dashboard(client, clinic):
    token = create_access_token(clinic["alice"].user_id)
    response = client.get('/api/appointments/active', headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 403


def test_unknown_user_has_no_profile(client, clinic):
    token = create_access_token('ghost-user')
    response = client.get('/api/appointments/active', headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_active_dashboard(client, auth_headers, clinic):
    response = client.get('/api/appointments/active?search=tooth', headers=auth_headers)
    data = response.get_json()

    assert response.status_code == 200
    assert [a["id"] for a in data["pending"]] == [clinic["pending"].id]
    assert data["confirmed"] == []
    assert data["counts"] == {"pending": 1, "confirmed": 0}


def test_completed_list_respects_limit(client, auth_headers, clinic):
    response = client.get('/api/appointments/completed?limit=5', headers=auth_headers)
    assert [a["id"] for a in response.get_json()["completed"]] == [clinic["completed"].id]

    assert client.get('/api/appointments/completed?limit=0', headers=auth_headers).status_code == 400


def test_accept_then_complete(client, auth_headers, clinic):
    appointment_id = clinic["pending"].id

    accepted = client.post(f'/api/appointments/{appointment_id}/accept', headers=auth_headers)
    assert accepted.status_code == 200
    assert accepted.get_json()["notice"]["title"] == "Appointment Accepted"

    completed = client.post(f'/api/appointments/{appointment_id}/complete', headers=auth_headers, json={
        "consultation_notes": "Filled 46",
        "prescriptions": [
            {"medication_name": "Ibuprofen", "dosage": "400mg", "frequency": "As needed"},
            {"medication_name": "", "dosage": "", "frequency": ""},
        ],
    })
    data = completed.get_json()
    assert completed.status_code == 200
    assert data["appointment"]["status"] == 'completed'
    assert len(data["prescriptions"]) == 1


def test_illegal_transition_returns_destructive_notice(client, auth_headers, clinic):
    response = client.post(f'/api/appointments/{clinic["completed"].id}/accept', headers=auth_headers)

    assert response.status_code == 409
    assert response.get_json()["notice"] == {
        "title": "Invalid status change",
        "description": "Cannot move an appointment from 'completed' to 'confirmed'.",
        "variant": "destructive",
    }


def test_complete_without_notes_is_a_validation_error(client, auth_headers, clinic):
    response = client.post(f'/api/appointments/{clinic["confirmed"].id}/complete',
                           headers=auth_headers, json={"consultation_notes": " "})
    assert response.status_code == 400
    db.session.expire_all()
    assert db.session.get(Appointment, clinic["confirmed"].id).status == 'confirmed'


def test_other_dentists_appointments_are_invisible(client, auth_headers, clinic):
    from dental_app_pkg.models import Dentist
    other_profile = make_profile('other-dentist', 'Olga', 'Other', role='dentist')
    db.session.add(Dentist(profile_id=other_profile.id))
    db.session.commit()
    token = create_access_token(other_profile.user_id)

    response = client.post(f'/api/appointments/{clinic["pending"].id}/reject',
                           headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 404


def test_dossier_route(client, auth_headers, clinic):
    response = client.get(f'/api/patients/{clinic["alice"].id}/dossier', headers=auth_headers)
    data = response.get_json()

    assert response.status_code == 200
    assert data["next_appointment"]["id"] == clinic["confirmed"].id
    assert data["degraded"] == []

    saved = client.put(f'/api/patients/{clinic["alice"].id}/dossier/next-appointment/notes',
                       headers=auth_headers, json={"consultation_notes": "Bring retainer"})
    assert saved.status_code == 200
    assert saved.get_json()["dossier"]["next_appointment"]["consultation_notes"] == "Bring retainer"


def test_treatment_step_routes(client, auth_headers, clinic):
    created = client.post(f'/api/patients/{clinic["alice"].id}/treatment-plans',
                          headers=auth_headers, json={"title": "Whitening", "status": "active"})
    plan_id = created.get_json()["treatment_plan"]["id"]

    added = client.post(f'/api/treatment-plans/{plan_id}/steps', headers=auth_headers, json={"title": "Shade check"})
    step_id = added.get_json()["treatment_steps"][0]["id"]
    toggled = client.post(f'/api/treatment-plans/{plan_id}/steps/{step_id}/toggle', headers=auth_headers)

    assert created.status_code == 201
    assert toggled.get_json()["treatment_steps"][0]["completed"] is True


def test_time_off_routes(client, auth_headers, clinic):
    empty = client.post('/api/time-off', headers=auth_headers, json={"dates": []})
    assert empty.status_code == 400
    assert empty.get_json()["notice"]["title"] == "No dates selected"

    created = client.post('/api/time-off', headers=auth_headers, json={"dates": ["2030-07-01", "2030-07-02"]})
    assert created.status_code == 201
    assert created.get_json()["time_off"] == ["2030-07-01", "2030-07-02"]

    removed = client.delete('/api/time-off/2030-07-01', headers=auth_headers)
    assert removed.get_json()["time_off"] == ["2030-07-02"]


def test_agenda_lists_patient_documents(client, auth_headers, clinic):
    db.session.add(PatientDocument(patient_id=clinic["alice"].id, dentist_id=clinic["dentist"].id,
                                   document_name="chart.pdf", document_type="chart",
                                   external_url="https://drive.example/chart"))
    db.session.commit()
    day = clinic["confirmed"].appointment_date.date().isoformat()

    response = client.get(f'/api/agenda?date={day}', headers=auth_headers)
    data = response.get_json()

    assert response.status_code == 200
    assert [a["id"] for a in data["appointments"]] == [clinic["confirmed"].id]
    assert data["appointments"][0]["documents"][0]["document_name"] == "chart.pdf"


def test_document_upload_route(client, auth_headers, clinic, monkeypatch):
    document = PatientDocument(patient_id=clinic["alice"].id, dentist_id=clinic["dentist"].id,
                               document_name="scan.png", document_type="x-ray")
    db.session.add(document)
    db.session.commit()

    class Ok:
        status_code = 200

        def json(self):
            return {"success": True, "driveFile": {"id": "f-1", "webViewLink": "https://drive.example/f-1"}}
    monkeypatch.setattr(requests, "post", lambda *args, **kwargs: Ok())

    response = client.post(f'/api/documents/{document.id}/upload', headers=auth_headers,
                           data={"file": (io.BytesIO(b"scan"), "scan.png", "image/png")},
                           content_type='multipart/form-data')
    data = response.get_json()

    assert response.status_code == 200
    assert data["document"]["sync_status"] == "synced"
    assert data["document"]["mime_type"] == "image/png"

    missing = client.post(f'/api/documents/{document.id}/upload', headers=auth_headers)
    assert missing.status_code == 400


def test_sync_route_reports_processed_count(client, auth_headers, clinic, monkeypatch):
    class Ok:
        status_code = 200

        def json(self):
            return {"success": True, "results": [{}, {}, {}]}
    monkeypatch.setattr(requests, "post", lambda *args, **kwargs: Ok())

    response = client.post('/api/documents/sync', headers=auth_headers)

    assert response.get_json()["notice"]["description"] == "Processed 3 documents"


def test_non_text_fields_return_validation_notices(client, auth_headers, clinic):
    appointment_id = clinic["confirmed"].id

    numeric_dosage = client.post(f'/api/appointments/{appointment_id}/complete', headers=auth_headers, json={
        "consultation_notes": "Done",
        "prescriptions": [{"medication_name": "Amoxicillin", "dosage": 500, "frequency": "Once daily"}],
    })
    numeric_notes = client.post(f'/api/appointments/{appointment_id}/complete', headers=auth_headers,
                                json={"consultation_notes": 42})
    numeric_title = client.post(f'/api/patients/{clinic["alice"].id}/treatment-plans',
                                headers=auth_headers, json={"title": 7})

    assert numeric_dosage.status_code == 400
    assert numeric_dosage.get_json()["notice"]["variant"] == "destructive"
    assert numeric_notes.status_code == 400
    assert numeric_title.status_code == 400
    db.session.expire_all()
    assert db.session.get(Appointment, appointment_id).status == 'confirmed'


def test_agenda_days_follow_the_stored_utc_clock(client, auth_headers, clinic):
    late = make_appointment(clinic["bob"], clinic["dentist"], datetime.datetime(2030, 3, 10, 23, 30))
    make_appointment(clinic["bob"], clinic["dentist"], datetime.datetime(2030, 3, 11, 0, 30))

    response = client.get('/api/agenda?date=2030-03-10', headers=auth_headers)

    assert [a["id"] for a in response.get_json()["appointments"]] == [late.id]
