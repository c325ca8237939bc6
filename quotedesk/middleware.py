"""Request context: who is acting."""
from functools import wraps
from flask import session, g, jsonify, current_app


def load_current_user():
    """
    Load the acting user into g (Flask's per-request global).

    Authentication itself happens elsewhere; the login flow stores user_id
    and role in the session.
    """
    g.user_id = None
    g.user_role = None

    user_id = session.get('user_id')
    if user_id:
        try:
            g.user_id = int(user_id)
        except (TypeError, ValueError):
            session.pop('user_id', None)
            return
        g.user_role = session.get('role')


def can_view_all_data():
    """True when the acting user's role may see every salesperson's offers."""
    return g.get('user_role') in current_app.config.get('REPORTING_ROLES', ())


def require_login(f):
    """Decorator: Require a logged-in user, answering 401 otherwise."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if g.get('user_id') is None:
            return jsonify({'status': 'error', 'message': 'Unauthorized'}), 401
        return f(*args, **kwargs)
    return decorated_function
