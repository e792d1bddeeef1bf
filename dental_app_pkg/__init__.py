# dental_app_pkg/__init__.py

from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import NotFound

# Load environment variables from .env file.
load_dotenv()

from .config import DevelopmentConfig, ProductionConfig, TestingConfig

# Extensions live at module level and are bound to the app inside create_app.
db = SQLAlchemy()
migrate = Migrate()


def create_app(config_name='development'):
    """
    Application factory function.
    """
    app = Flask(__name__)

    if config_name == 'production':
        ProductionConfig.validate()
        app.config.from_object(ProductionConfig)
    elif config_name == 'testing':
        app.config.from_object(TestingConfig)
    else: # Default to development
        app.config.from_object(DevelopmentConfig)

    db.init_app(app)
    migrate.init_app(app, db)

    # Blueprints are imported here to avoid circular imports with models.
    from .appointments.routes import appointments_bp
    app.register_blueprint(appointments_bp, url_prefix='/api')

    from .dossier.routes import dossier_bp
    app.register_blueprint(dossier_bp, url_prefix='/api')

    from .patients.routes import patients_bp
    app.register_blueprint(patients_bp, url_prefix='/api')

    from .availability.routes import availability_bp
    app.register_blueprint(availability_bp, url_prefix='/api')

    from .documents.routes import documents_bp
    app.register_blueprint(documents_bp, url_prefix='/api')

    @app.route('/health')
    def health_check():
        return "Dental App is healthy!", 200

    # Centralized error handling
    from .errors import DentalAppError
    from .notices import error_notice

    @app.errorhandler(DentalAppError)
    def handle_app_error(e):
        app.logger.warning(f"Unhandled application error reached the factory handler: {e}")
        return error_notice(e)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        app.logger.error(f"Database Error: {e}")
        db.session.rollback()
        return jsonify({"error": "A database error occurred."}), 500

    @app.errorhandler(NotFound)
    def handle_not_found_error(e):
        app.logger.warning(f"Not Found Error: {e}")
        return jsonify({"error": "The requested resource was not found."}), 404

    @app.errorhandler(Exception)
    def handle_generic_error(e):
        app.logger.error(f"An unexpected error occurred: {e}", exc_info=True)
        return jsonify({"error": "An unexpected server error occurred."}), 500

    return app
