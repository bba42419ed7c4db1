import logging
import time

from flask import Flask, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from config import Config
from errors import ParkingError
from extensions import db, migrate, cors
from storage import create_storage

# Import Models (registers the tables on db.metadata)
import models  # noqa: F401

# Import Blueprints
from blueprints.parking_spaces import spaces_bp
from blueprints.households import households_bp
from blueprints.rentals import rentals_bp
from blueprints.rental_requests import requests_bp
from blueprints.dashboard import dashboard_bp

logger = logging.getLogger(__name__)

SAMPLE_AREAS = ["A", "B", "C"]
SAMPLE_SPACES_PER_AREA = 10
SAMPLE_HOUSEHOLDS = [
    {"household_number": "1201", "contact_name": "Wang Hsiao-ming", "contact_phone": "0912-345-678", "notes": ""},
    {"household_number": "1502", "contact_name": "Chang Ta-hua", "contact_phone": "0923-456-789", "notes": ""},
]


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s [%(name)s] %(message)s',
    )

    # 1. INITIALIZE EXTENSIONS
    cors.init_app(app, resources={r"/api/*": {"origins": app.config['CORS_ORIGINS']}})
    if app.config.get('SQLALCHEMY_DATABASE_URI'):
        db.init_app(app)
        migrate.init_app(app, db)

    # 2. PICK THE STORE (once, for the lifetime of the app)
    app.extensions['storage'] = create_storage(app)

    # 3. REGISTER BLUEPRINTS
    app.register_blueprint(spaces_bp, url_prefix='/api/parking-spaces')
    app.register_blueprint(households_bp, url_prefix='/api/households')
    app.register_blueprint(rentals_bp, url_prefix='/api/rentals')
    app.register_blueprint(requests_bp, url_prefix='/api/rental-requests')
    app.register_blueprint(dashboard_bp, url_prefix='/api')

    # 4. ERROR HANDLERS & REQUEST LOGGING
    register_error_handlers(app)

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def log_request(response):
        started = g.get('request_started')
        if started is not None:
            elapsed = (time.perf_counter() - started) * 1000
            logger.debug("[%s] %s -> %s %.1fms", request.method, request.path, response.status_code, elapsed)
        return response

    # 5. SAMPLE DATA
    if app.config.get('SEED_SAMPLE_DATA'):
        with app.app_context():
            if app.extensions['storage'].backend == 'database':
                db.create_all()
            seed_sample_data(app.extensions['storage'])

    return app


def register_error_handlers(app):
    @app.errorhandler(ParkingError)
    def handle_parking_error(error):
        if error.status_code >= 500:
            logger.error("Storage failure: %s", error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(error):
        logger.exception("Database error on %s %s", request.method, request.path)
        db.session.rollback()
        return jsonify({"message": "Unexpected storage error"}), 500


# --- 🌱 SAMPLE DATA SEEDER ---
def seed_sample_data(storage):
    """Spaces A-01..C-10 and two households, only when the store is empty."""
    if storage.get_all_parking_spaces():
        return
    logger.info("Seeding sample parking spaces and households...")
    for area in SAMPLE_AREAS:
        for i in range(1, SAMPLE_SPACES_PER_AREA + 1):
            storage.create_parking_space({
                "space_number": f"{area}-{i:02d}",
                "area": area,
                "status": "AVAILABLE",
                "notes": "",
            })
    for household in SAMPLE_HOUSEHOLDS:
        if not storage.get_household_by_number(household["household_number"]):
            storage.create_household(household)
    logger.info("Sample data ready.")


if __name__ == '__main__':
    app = create_app()
    app.run(debug=True, port=5000)
