import os
import logging
try:
    from dotenv import load_dotenv
    load_dotenv()  # Load env vars before anything else
except ImportError:
    pass  # In production (Vercel), env vars are injected directly

from flask import Flask, jsonify
from werkzeug.middleware.proxy_fix import ProxyFix
from flask_login import LoginManager
from flask_migrate import Migrate

from growth_iq.models import db, User

DEFAULT_REPORT_TOKEN_MAX_AGE = 7 * 24 * 3600


def _database_url(app):
    database_url = os.environ.get('DATABASE_URL')

    # Normalize Postgres URL
    if database_url and database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    if database_url:
        return database_url

    # Local SQLite; /tmp when the package directory is read-only (Vercel)
    if os.access(app.root_path, os.W_OK):
        return f"sqlite:///{os.path.join(app.root_path, 'growth_iq.db')}"
    return 'sqlite:////tmp/growth_iq.db'


def create_app(test_config=None):
    app = Flask(__name__, instance_path='/tmp')
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    # --- CONFIGURATION ---
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'growth-iq-dev-key')
    app.config['SQLALCHEMY_DATABASE_URI'] = _database_url(app)
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['RESEND_API_KEY'] = os.environ.get('RESEND_API_KEY')
    app.config['EMAIL_FROM'] = os.environ.get('EMAIL_FROM', 'no-reply@legacy83business.com')
    app.config['EMAIL_NAME'] = os.environ.get('EMAIL_NAME', 'Legacy 83 Business')
    app.config['REPORT_TOKEN_MAX_AGE'] = int(os.environ.get('REPORT_TOKEN_MAX_AGE', DEFAULT_REPORT_TOKEN_MAX_AGE))

    if test_config:
        app.config.update(test_config)

    if not app.debug and not app.testing:
        app.logger.setLevel(logging.INFO)

    # --- INITIALIZE EXTENSIONS ---
    db.init_app(app)
    Migrate(app, db)

    login_manager = LoginManager()
    login_manager.init_app(app)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Login required'}), 401

    # --- ERROR HANDLERS ---
    @app.errorhandler(403)
    def forbidden_error(error):
        return jsonify({'error': 'Forbidden'}), 403

    @app.errorhandler(404)
    def not_found_error(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(500)
    def internal_error(error):
        # Fail-safe rollback
        db.session.rollback()
        return jsonify({'error': 'Internal Server Error'}), 500

    # --- REGISTER BLUEPRINTS ---
    from growth_iq.auth import auth as auth_blueprint
    from growth_iq.routes.quiz import quiz_bp
    from growth_iq.routes.admin_quiz import admin_quiz_bp

    app.register_blueprint(auth_blueprint)
    app.register_blueprint(quiz_bp)
    app.register_blueprint(admin_quiz_bp)

    with app.app_context():
        db.create_all()

    return app
