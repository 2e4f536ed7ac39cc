from flask import Blueprint, request, jsonify, current_app
from flask_login import login_user, logout_user, login_required, current_user
from werkzeug.security import check_password_hash

from growth_iq.models import db, User, get_now

auth = Blueprint('auth', __name__, url_prefix='/auth')


@auth.route('/login', methods=['POST'])
def login():
    data = request.get_json(silent=True) or request.form
    email = (data.get('email') or '').strip().lower()
    password = data.get('password') or ''
    remember = bool(data.get('remember'))

    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        current_app.logger.warning(f"Failed staff login for {email or '<empty>'}")
        return jsonify({'error': 'Invalid email or password'}), 401

    login_user(user, remember=remember)
    user.last_login = get_now()
    db.session.commit()
    return jsonify({'success': True, 'user': {'id': user.id, 'name': user.name, 'role': user.role}})


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    logout_user()
    return jsonify({'success': True})


@auth.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify({'id': current_user.id, 'name': current_user.name, 'email': current_user.email,
                    'role': current_user.role})
