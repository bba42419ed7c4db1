"""Creates the six tables on the configured DATABASE_URL and seeds sample data."""
import sys

from app import create_app, seed_sample_data
from extensions import db


def main():
    app = create_app()
    storage = app.extensions['storage']
    if storage.backend != 'database':
        print("DATABASE_URL is not set, nothing to create (in-memory storage).")
        return 1

    # Use the app context to access the database
    with app.app_context():
        print("Creating database tables...")
        db.create_all()
        seed_sample_data(storage)
        print("SUCCESS: parking_spaces, households, rentals, activity_logs, "
              "rental_requests and parking_offers are ready.")
    return 0


if __name__ == '__main__':
    sys.exit(main())
