"""
Authentication Routes for the Route Planner
Email/password sign-up and login, JWT bearer tokens for the API and a
session cookie for the server-rendered pages.
"""

from flask import Blueprint, request, jsonify, session, redirect, current_app
import datetime
import logging
from functools import wraps
from urllib.parse import quote, urlsplit

import jwt

from models import db, Profile
from extensions import limiter
from validators import validate_email

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8

# MARK: - Helper Functions

def generate_token(profile_id):
    """Generate JWT token for a profile"""
    hours = current_app.config.get('JWT_EXPIRES_HOURS', 24)
    payload = {
        'user_id': profile_id,
        'iat': datetime.datetime.now(datetime.timezone.utc),
        'exp': datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(hours=hours),
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm='HS256')


def verify_token(token):
    """Verify JWT token and return user_id"""
    try:
        payload = jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=['HS256'])
        return payload.get('user_id')
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


def current_profile():
    """Profile of the caller from the bearer token or the session, else None."""
    auth_header = request.headers.get('Authorization', '')
    if auth_header.startswith('Bearer '):
        profile_id = verify_token(auth_header[len('Bearer '):].strip())
    else:
        profile_id = session.get('profile_id')
    if not profile_id:
        return None
    return db.session.get(Profile, profile_id)


def require_auth(f):
    """Decorator to require authentication"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        profile = current_profile()
        if profile is None:
            return jsonify({'error': 'Unauthorized'}), 401
        return f(profile=profile, *args, **kwargs)
    return decorated_function


def optional_auth(f):
    """Decorator that passes the profile if authenticated, None otherwise."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        return f(profile=current_profile(), *args, **kwargs)
    return decorated_function


def require_admin(f):
    """Wrap require_auth and additionally check that the profile has admin role."""
    @wraps(f)
    @require_auth
    def wrapper(profile, *args, **kwargs):
        if not profile.is_admin:
            return jsonify({'error': 'Admin access required'}), 403
        return f(profile=profile, *args, **kwargs)
    return wrapper


def login_redirect_url(path):
    return '/login?redirect={}'.format(quote(path, safe='/'))


def safe_redirect_target(target, default='/'):
    """Only follow relative, same-site redirect targets.

    Browsers drop tabs and newlines from URLs and read a backslash as a
    slash, so ``/\\t/host`` would become ``//host``; such targets are refused.
    """
    if not target or not isinstance(target, str):
        return default
    if '\\' in target or any(ch.isspace() or ord(ch) < 32 or ord(ch) == 127 for ch in target):
        return default
    parts = urlsplit(target)
    if parts.scheme or parts.netloc:
        return default
    if not parts.path.startswith('/') or parts.path.startswith('//'):
        return default
    return target


def page_login_required(admin=False):
    """Gate a server-rendered page behind the session.

    Anonymous visitors go to the login page with the requested path kept in
    ``redirect``.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            profile = current_profile()
            if profile is None:
                path = request.full_path.rstrip('?') if request.query_string else request.path
                return redirect(login_redirect_url(path))
            if admin and not profile.is_admin:
                return jsonify({'error': 'Admin access required'}), 403
            return f(profile=profile, *args, **kwargs)
        return decorated_function
    return decorator


def authenticate(email, password):
    """Return the Profile for valid credentials, else None."""
    if not email or not password:
        return None
    profile = Profile.query.filter_by(email=email.strip().lower()).first()
    if profile is None or not profile.check_password(password):
        return None
    return profile


def start_session(profile):
    session.clear()
    session['profile_id'] = profile.id
    session.permanent = True

# MARK: - Routes

@auth_bp.route('/signup', methods=['POST'])
@limiter.limit("10 per hour")
def signup():
    """Create an identity and its profile (role ``user``)."""
    data = request.get_json(silent=True) or {}
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''

    if not validate_email(email):
        return jsonify({'error': 'A valid email is required'}), 400
    if len(password) < MIN_PASSWORD_LENGTH:
        return jsonify({'error': 'Password must be at least {} characters'.format(MIN_PASSWORD_LENGTH)}), 400
    if Profile.query.filter_by(email=email).first():
        return jsonify({'error': 'Email already registered'}), 409

    profile = Profile(email=email, role='user')
    profile.set_password(password)
    db.session.add(profile)
    db.session.commit()
    logger.info("Profile created for %s", email)

    start_session(profile)
    return jsonify({
        'success': True,
        'token': generate_token(profile.id),
        'profile': profile.to_dict(),
    }), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("20 per minute")
def login():
    data = request.get_json(silent=True) or {}
    profile = authenticate(data.get('email'), data.get('password'))
    if profile is None:
        return jsonify({'error': 'Invalid email or password'}), 401

    start_session(profile)
    return jsonify({
        'success': True,
        'token': generate_token(profile.id),
        'profile': profile.to_dict(),
    }), 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return jsonify({'success': True}), 200


@auth_bp.route('/me', methods=['GET'])
@require_auth
def me(profile):
    return jsonify({
        'success': True,
        'profile': profile.to_dict(),
        'is_admin': profile.is_admin,
    }), 200
