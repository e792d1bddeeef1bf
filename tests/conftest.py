# tests/conftest.py
import datetime
import pytest
from dental_app_pkg import create_app, db
from dental_app_pkg.models import Profile, Dentist, UrgencyAssessment
from dental_app_pkg.appointments.store import AppointmentStore
from dental_app_pkg.utils import create_access_token


@pytest.fixture
def app():
    """Fresh application with an empty in-memory database for every test."""
    app = create_app('testing')
    ctx = app.app_context()
    ctx.push()
    db.create_all()

    yield app

    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def now():
    return datetime.datetime.utcnow().replace(microsecond=0)


def make_profile(user_id, first_name, last_name, role='patient', email=None):
    profile = Profile(
        user_id=user_id,
        email=email or f"{first_name.lower()}@example.com",
        first_name=first_name,
        last_name=last_name,
        role=role,
    )
    db.session.add(profile)
    db.session.commit()
    return profile


def make_appointment(patient, dentist, when, status='pending', reason=None, urgency='low'):
    return AppointmentStore().create(patient.id, dentist.id, when, reason=reason, status=status, urgency=urgency)


@pytest.fixture
def clinic(app, now):
    """
    One dentist with two patients and a handful of appointments:
    a pending and a confirmed visit for Alice, a completed one for Bob.
    """
    dentist_profile = make_profile('dentist-user', 'Dana', 'Smile', role='dentist')
    dentist = Dentist(profile_id=dentist_profile.id, specialization='General')
    db.session.add(dentist)
    db.session.commit()

    alice = make_profile('alice-user', 'Alice', 'Jones')
    bob = make_profile('bob-user', 'Bob', 'Brown')

    pending = make_appointment(alice, dentist, now + datetime.timedelta(days=2), 'pending',
                               reason='Toothache', urgency='high')
    confirmed = make_appointment(alice, dentist, now + datetime.timedelta(days=1), 'confirmed',
                                 reason='Cleaning')
    completed = make_appointment(bob, dentist, now - datetime.timedelta(days=3), 'completed',
                                 reason='Filling')

    db.session.add(UrgencyAssessment(appointment_id=pending.id, pain_level=8,
                                     has_swelling=True, calculated_urgency='high'))
    db.session.commit()

    return {
        "dentist": dentist,
        "dentist_profile": dentist_profile,
        "alice": alice,
        "bob": bob,
        "pending": pending,
        "confirmed": confirmed,
        "completed": completed,
    }


@pytest.fixture
def auth_headers(clinic):
    token = create_access_token(clinic["dentist_profile"].user_id)
    return {"Authorization": f"Bearer {token}"}
