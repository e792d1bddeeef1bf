# dental_app_pkg/utils.py
import jwt
import datetime
import uuid # For generating JTI
from functools import wraps
from flask import request, jsonify, current_app, g
from .errors import DentalAppError


# --- JWT Helper Functions ---
def create_access_token(user_id):
    """Creates a JWT access token for an auth-provider user id."""
    payload = {
        'exp': datetime.datetime.utcnow() + datetime.timedelta(minutes=current_app.config.get('JWT_EXPIRATION_MINUTES', 30)),
        'iat': datetime.datetime.utcnow(),
        'sub': str(user_id),
        'jti': str(uuid.uuid4()),
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET_KEY'], algorithm=current_app.config.get('JWT_ALGORITHM', 'HS256'))


def decode_access_token(token):
    """
    Decodes a JWT access token.
    Returns the payload if successful, or an error string if decoding fails.
    """
    key_to_use = current_app.config['JWT_SECRET_KEY']
    algo = current_app.config.get('JWT_ALGORITHM', 'HS256')
    try:
        return jwt.decode(token, key_to_use, algorithms=[algo])
    except jwt.ExpiredSignatureError:
        current_app.logger.info("Token decode failed: ExpiredSignatureError")
        return "Token has expired. Please log in again."
    except jwt.InvalidSignatureError:
        current_app.logger.warning("Token decode failed: InvalidSignatureError (Wrong secret key or tampered token)")
        return "Invalid token signature. Please log in again."
    except jwt.DecodeError as e:
        current_app.logger.warning(f"Token decode failed: DecodeError - {e}")
        return "Invalid token format. Please log in again."
    except jwt.InvalidTokenError as e:
        current_app.logger.error(f"Unexpected error decoding token: {e}")
        return "Invalid token. Please log in again."


def get_token_subject():
    """Returns the token subject, or None with g.authentication_error set."""
    auth_header = request.headers.get('Authorization')
    token = None
    if auth_header and auth_header.startswith('Bearer '):
        token = auth_header.split(" ")[1]

    if not token:
        g.authentication_error = "Token is missing!"
        return None

    payload = decode_access_token(token)
    if isinstance(payload, str): # Error message returned
        g.authentication_error = payload
        return None

    user_id = payload.get('sub')
    if not user_id:
        g.authentication_error = "Invalid token payload (subject missing)!"
        return None
    return user_id


def dentist_required(f):
    """
    Resolves the caller to a dentist before the view runs.
    Sets g.current_profile and g.current_dentist_id.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        from .profiles.services import resolve_profile, resolve_dentist_id

        user_id = get_token_subject()
        if not user_id:
            error_message = getattr(g, 'authentication_error', "Authentication required.")
            return jsonify({"message": error_message}), 401

        try:
            profile = resolve_profile(user_id)
        except DentalAppError as e:
            current_app.logger.warning(f"[Profile] Could not resolve profile for user {user_id}: {e}")
            return jsonify({"message": "User from token has no profile."}), 401

        try:
            g.current_dentist_id = resolve_dentist_id(profile)
        except DentalAppError as e:
            return jsonify({"message": e.description}), e.status_code

        g.current_profile = profile
        return f(*args, **kwargs)
    return decorated_function


def parse_iso_datetime(dt_str):
    """Helper: Parse ISO string, returns None on failure. Aware values are normalised to naive UTC."""
    if not dt_str or not isinstance(dt_str, str):
        return None
    try:
        value = datetime.datetime.fromisoformat(dt_str.replace('Z', '+00:00'))
    except (ValueError, TypeError):
        return None
    if value.tzinfo is not None:
        value = value.astimezone(datetime.timezone.utc).replace(tzinfo=None)
    return value


def parse_iso_date(value):
    """Accepts a date, a datetime or a 'YYYY-MM-DD' (or full ISO) string. Returns None on failure."""
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.date.fromisoformat(value[:10])
    except ValueError:
        return None
