# dental_app_pkg/profiles/services.py
from flask import current_app
from ..models import Profile, Dentist
from ..errors import NotFoundError, AccessDeniedError
from ..services import store_read


def resolve_profile(user_id):
    """Looks up the profile owned by an auth-provider user id."""
    with store_read("profile data"):
        profile = Profile.query.filter_by(user_id=str(user_id)).first()
    if not profile:
        raise NotFoundError("Failed to load profile data")
    return profile


def resolve_dentist(profile):
    """
    Returns the practitioner record behind a dentist profile, or None.

    A dentist profile without a practitioner row is not an error here; callers
    that need a dentist id go through resolve_dentist_id.
    """
    if profile.role != 'dentist':
        return None
    with store_read("dentist data"):
        return Dentist.query.filter_by(profile_id=profile.id).first()


def resolve_dentist_id(profile):
    """The dentist id is always derived from the authenticated profile."""
    if profile.role != 'dentist':
        raise AccessDeniedError("This dashboard is only available for dentist accounts.")
    dentist = resolve_dentist(profile)
    if not dentist or not dentist.is_active:
        current_app.logger.warning(f"[Profile] Dentist profile {profile.id} has no active practitioner record.")
        raise AccessDeniedError("No active practitioner record is linked to this account.")
    return dentist.id
