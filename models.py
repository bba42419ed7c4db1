from extensions import db
from datetime import datetime

# Status options for a parking space
SPACE_STATUS_AVAILABLE = 'AVAILABLE'
SPACE_STATUS_OCCUPIED = 'OCCUPIED'
SPACE_STATUS_MAINTENANCE = 'MAINTENANCE'
SPACE_STATUSES = (SPACE_STATUS_AVAILABLE, SPACE_STATUS_OCCUPIED, SPACE_STATUS_MAINTENANCE)

# Status options for a rental request
REQUEST_STATUS_PENDING = 'PENDING'
REQUEST_STATUS_MATCHED = 'MATCHED'
REQUEST_STATUS_EXPIRED = 'EXPIRED'
REQUEST_STATUS_CANCELLED = 'CANCELLED'
REQUEST_STATUSES = (REQUEST_STATUS_PENDING, REQUEST_STATUS_MATCHED,
                    REQUEST_STATUS_EXPIRED, REQUEST_STATUS_CANCELLED)


def _iso(value):
    return value.isoformat() if value is not None else None


class ParkingSpace(db.Model):
    __tablename__ = 'parking_spaces'
    id = db.Column(db.Integer, primary_key=True)
    space_number = db.Column(db.String(255), unique=True, nullable=False)  # e.g. "A-01"
    area = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(50), nullable=False, default=SPACE_STATUS_AVAILABLE, index=True)
    notes = db.Column(db.Text)

    def to_dict(self):
        return {
            "id": self.id,
            "spaceNumber": self.space_number,
            "area": self.area,
            "status": self.status,
            "notes": self.notes,
        }


class Household(db.Model):
    __tablename__ = 'households'
    id = db.Column(db.Integer, primary_key=True)
    household_number = db.Column(db.String(255), unique=True, nullable=False)  # e.g. "1201"
    contact_name = db.Column(db.String(255))
    contact_phone = db.Column(db.String(255))
    notes = db.Column(db.Text)

    def to_dict(self):
        return {
            "id": self.id,
            "householdNumber": self.household_number,
            "contactName": self.contact_name,
            "contactPhone": self.contact_phone,
            "notes": self.notes,
        }


class Rental(db.Model):
    __tablename__ = 'rentals'
    id = db.Column(db.Integer, primary_key=True)
    parking_space_id = db.Column(db.Integer, db.ForeignKey('parking_spaces.id'), nullable=False)
    household_id = db.Column(db.Integer, db.ForeignKey('households.id'), nullable=False)
    license_plate = db.Column(db.String(255), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    def to_dict(self):
        return {
            "id": self.id,
            "parkingSpaceId": self.parking_space_id,
            "householdId": self.household_id,
            "licensePlate": self.license_plate,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "isActive": self.is_active,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
        }


# At most one active rental per space
db.Index(
    'uq_rentals_active_space',
    Rental.parking_space_id,
    unique=True,
    sqlite_where=Rental.is_active == True,  # noqa: E712
    postgresql_where=Rental.is_active == True,  # noqa: E712
)


class ActivityLog(db.Model):
    __tablename__ = 'activity_logs'
    id = db.Column(db.Integer, primary_key=True)
    activity_type = db.Column(db.String(255), nullable=False)  # e.g. "RENTAL_CREATED"
    description = db.Column(db.Text, nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=datetime.now)
    related_id = db.Column(db.Integer)  # not a FK, may point at any entity kind

    def to_dict(self):
        return {
            "id": self.id,
            "activityType": self.activity_type,
            "description": self.description,
            "timestamp": _iso(self.timestamp),
            "relatedId": self.related_id,
        }


class RentalRequest(db.Model):
    __tablename__ = 'rental_requests'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    contact = db.Column(db.String(255), nullable=False)
    license_plate = db.Column(db.String(255), nullable=False)
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    notes = db.Column(db.Text)
    status = db.Column(db.String(50), nullable=False, default=REQUEST_STATUS_PENDING, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "contact": self.contact,
            "licensePlate": self.license_plate,
            "startDate": _iso(self.start_date),
            "endDate": _iso(self.end_date),
            "notes": self.notes,
            "status": self.status,
            "createdAt": _iso(self.created_at),
        }


class ParkingOffer(db.Model):
    __tablename__ = 'parking_offers'
    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(db.Integer, db.ForeignKey('rental_requests.id'), nullable=False, index=True)
    space_number = db.Column(db.String(255), nullable=False)
    owner_name = db.Column(db.String(255), nullable=False)
    owner_contact = db.Column(db.String(255), nullable=False)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.now)

    def to_dict(self):
        return {
            "id": self.id,
            "requestId": self.request_id,
            "spaceNumber": self.space_number,
            "ownerName": self.owner_name,
            "ownerContact": self.owner_contact,
            "notes": self.notes,
            "createdAt": _iso(self.created_at),
        }
