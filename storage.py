"""
Entity store for parking spaces, households, rentals, activity logs,
rental requests and parking offers.

Two variants share one interface: ``MemStorage`` keeps everything in
process, ``DatabaseStorage`` goes through the Flask-SQLAlchemy session.
The app picks one at startup (see ``create_storage``) and never mixes them.

Lifecycle rules live here too, so the coupled writes (rental + space status,
offer + request status, every mutation + its activity log row) happen in one
logical operation.
"""
import functools
import itertools
import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import date, datetime, timedelta

from sqlalchemy import func, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from errors import BusinessRuleViolation, ValidationError
from extensions import db
from models import (
    ActivityLog, Household, ParkingOffer, ParkingSpace, Rental, RentalRequest,
    REQUEST_STATUS_MATCHED, REQUEST_STATUS_PENDING,
    SPACE_STATUS_AVAILABLE, SPACE_STATUS_MAINTENANCE, SPACE_STATUS_OCCUPIED,
)

logger = logging.getLogger(__name__)

SPACE_EXISTS_MSG = "Space number already exists"
HOUSEHOLD_EXISTS_MSG = "Household number already exists"
SPACE_MISSING_MSG = "Parking space does not exist"
SPACE_UNAVAILABLE_MSG = "Parking space is not available"
HOUSEHOLD_MISSING_MSG = "Household does not exist"
NOT_ACCEPTING_OFFERS_MSG = "Rental request is no longer accepting offers"


class BaseStorage(ABC):
    backend = None

    # --- Parking spaces ---
    @abstractmethod
    def get_all_parking_spaces(self, status=None, area=None): ...

    @abstractmethod
    def get_parking_space_by_id(self, space_id): ...

    @abstractmethod
    def get_parking_space_by_number(self, space_number): ...

    @abstractmethod
    def create_parking_space(self, fields): ...

    @abstractmethod
    def update_parking_space(self, space_id, fields): ...

    @abstractmethod
    def delete_parking_space(self, space_id): ...

    # --- Households ---
    @abstractmethod
    def get_all_households(self): ...

    @abstractmethod
    def get_household_by_id(self, household_id): ...

    @abstractmethod
    def get_household_by_number(self, household_number): ...

    @abstractmethod
    def create_household(self, fields): ...

    @abstractmethod
    def update_household(self, household_id, fields): ...

    @abstractmethod
    def delete_household(self, household_id): ...

    # --- Rentals ---
    @abstractmethod
    def get_all_rentals(self): ...

    @abstractmethod
    def get_active_rentals(self): ...

    @abstractmethod
    def get_rental_by_id(self, rental_id): ...

    @abstractmethod
    def get_rentals_by_parking_space_id(self, space_id): ...

    @abstractmethod
    def get_rentals_by_household_id(self, household_id): ...

    @abstractmethod
    def create_rental(self, fields): ...

    @abstractmethod
    def update_rental(self, rental_id, fields): ...

    @abstractmethod
    def end_rental(self, rental_id): ...

    @abstractmethod
    def get_expiring_rentals(self, days=7, today=None): ...

    # --- Activity logs ---
    @abstractmethod
    def get_all_activity_logs(self, limit=None): ...

    @abstractmethod
    def create_activity_log(self, activity_type, description, related_id=None): ...

    # --- Rental requests & offers ---
    @abstractmethod
    def get_all_rental_requests(self, status=None): ...

    @abstractmethod
    def get_rental_request_by_id(self, request_id): ...

    @abstractmethod
    def create_rental_request(self, fields): ...

    @abstractmethod
    def update_rental_request_status(self, request_id, status): ...

    @abstractmethod
    def get_parking_offers_by_request_id(self, request_id): ...

    @abstractmethod
    def create_parking_offer(self, request_id, fields): ...

    # --- Derived ---
    @abstractmethod
    def get_dashboard_stats(self): ...

    @abstractmethod
    def ping(self): ...

    def get_available_parking_spaces(self):
        return self.get_all_parking_spaces(status=SPACE_STATUS_AVAILABLE)

    def has_active_rental(self, space_id=None, household_id=None):
        if space_id is not None:
            rentals = self.get_rentals_by_parking_space_id(space_id)
        else:
            rentals = self.get_rentals_by_household_id(household_id)
        return any(r.is_active for r in rentals)

    def _check_status_change(self, space, new_status):
        """
        Manual status edits may not break "OCCUPIED iff one active rental".
        Only rental create/end move a space in or out of OCCUPIED.
        """
        current = space.status if space is not None else None
        if new_status is None or new_status == current:
            return
        if new_status == SPACE_STATUS_OCCUPIED:
            raise BusinessRuleViolation("A parking space only becomes occupied through a rental")
        if space is not None and self.has_active_rental(space_id=space.id):
            raise BusinessRuleViolation("Parking space has an active rental; end the rental first")


def _locked(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            return method(self, *args, **kwargs)
    return wrapper


def _expiry_window(days, today):
    today = today or date.today()
    return today, today + timedelta(days=days)


# ==========================================================
# IN-MEMORY STORE
# ==========================================================
class MemStorage(BaseStorage):
    """
    Map-backed store. Not crash-safe; everything is lost on restart.
    Writes hold ``_lock`` so check-then-set rules stay whole under the
    threaded dev server.
    """
    backend = 'memory'

    def __init__(self):
        self._lock = threading.RLock()
        self._parking_spaces = {}
        self._households = {}
        self._rentals = {}
        self._activity_logs = {}
        self._rental_requests = {}
        self._parking_offers = {}

        self._space_ids = itertools.count(1)
        self._household_ids = itertools.count(1)
        self._rental_ids = itertools.count(1)
        self._log_ids = itertools.count(1)
        self._request_ids = itertools.count(1)
        self._offer_ids = itertools.count(1)

    # --- Parking spaces ---
    def get_all_parking_spaces(self, status=None, area=None):
        spaces = list(self._parking_spaces.values())
        if status:
            spaces = [s for s in spaces if s.status == status]
        if area:
            spaces = [s for s in spaces if s.area == area]
        return spaces

    def get_parking_space_by_id(self, space_id):
        return self._parking_spaces.get(space_id)

    def get_parking_space_by_number(self, space_number):
        return next((s for s in self._parking_spaces.values() if s.space_number == space_number), None)

    @_locked
    def create_parking_space(self, fields):
        if self.get_parking_space_by_number(fields['space_number']):
            raise ValidationError(SPACE_EXISTS_MSG)
        status = fields.get('status') or SPACE_STATUS_AVAILABLE
        self._check_status_change(None, status)

        space = ParkingSpace(id=next(self._space_ids), space_number=fields['space_number'],
                             area=fields['area'], status=status, notes=fields.get('notes'))
        self._parking_spaces[space.id] = space
        self.create_activity_log('SPACE_CREATED', f"Created parking space {space.space_number}", space.id)
        return space

    @_locked
    def update_parking_space(self, space_id, fields):
        space = self._parking_spaces.get(space_id)
        if space is None:
            return None
        new_number = fields.get('space_number')
        if new_number:
            other = self.get_parking_space_by_number(new_number)
            if other is not None and other.id != space_id:
                raise ValidationError(SPACE_EXISTS_MSG)
        self._check_status_change(space, fields.get('status'))

        for key, value in fields.items():
            setattr(space, key, value)
        self.create_activity_log('SPACE_UPDATED', f"Updated parking space {space.space_number}", space.id)
        return space

    @_locked
    def delete_parking_space(self, space_id):
        space = self._parking_spaces.get(space_id)
        if space is None or self.has_active_rental(space_id=space_id):
            return False
        del self._parking_spaces[space_id]
        self.create_activity_log('SPACE_DELETED', f"Deleted parking space {space.space_number}", None)
        return True

    # --- Households ---
    def get_all_households(self):
        return list(self._households.values())

    def get_household_by_id(self, household_id):
        return self._households.get(household_id)

    def get_household_by_number(self, household_number):
        return next((h for h in self._households.values() if h.household_number == household_number), None)

    @_locked
    def create_household(self, fields):
        if self.get_household_by_number(fields['household_number']):
            raise ValidationError(HOUSEHOLD_EXISTS_MSG)
        household = Household(id=next(self._household_ids), household_number=fields['household_number'],
                              contact_name=fields.get('contact_name'),
                              contact_phone=fields.get('contact_phone'), notes=fields.get('notes'))
        self._households[household.id] = household
        self.create_activity_log('HOUSEHOLD_CREATED', f"Created household {household.household_number}",
                                 household.id)
        return household

    @_locked
    def update_household(self, household_id, fields):
        household = self._households.get(household_id)
        if household is None:
            return None
        new_number = fields.get('household_number')
        if new_number:
            other = self.get_household_by_number(new_number)
            if other is not None and other.id != household_id:
                raise ValidationError(HOUSEHOLD_EXISTS_MSG)
        for key, value in fields.items():
            setattr(household, key, value)
        self.create_activity_log('HOUSEHOLD_UPDATED', f"Updated household {household.household_number}",
                                 household.id)
        return household

    @_locked
    def delete_household(self, household_id):
        household = self._households.get(household_id)
        if household is None or self.has_active_rental(household_id=household_id):
            return False
        del self._households[household_id]
        self.create_activity_log('HOUSEHOLD_DELETED', f"Deleted household {household.household_number}", None)
        return True

    # --- Rentals ---
    def get_all_rentals(self):
        return list(self._rentals.values())

    def get_active_rentals(self):
        return [r for r in self._rentals.values() if r.is_active]

    def get_rental_by_id(self, rental_id):
        return self._rentals.get(rental_id)

    def get_rentals_by_parking_space_id(self, space_id):
        return [r for r in self._rentals.values() if r.parking_space_id == space_id]

    def get_rentals_by_household_id(self, household_id):
        return [r for r in self._rentals.values() if r.household_id == household_id]

    @_locked
    def create_rental(self, fields):
        space = self._parking_spaces.get(fields['parking_space_id'])
        if space is None:
            raise ValidationError(SPACE_MISSING_MSG)
        if space.status != SPACE_STATUS_AVAILABLE:
            raise BusinessRuleViolation(SPACE_UNAVAILABLE_MSG)
        household = self._households.get(fields['household_id'])
        if household is None:
            raise ValidationError(HOUSEHOLD_MISSING_MSG)

        rental = Rental(id=next(self._rental_ids), parking_space_id=space.id, household_id=household.id,
                        license_plate=fields['license_plate'], start_date=fields['start_date'],
                        end_date=fields['end_date'], notes=fields.get('notes'),
                        is_active=True, created_at=datetime.now())
        self._rentals[rental.id] = rental
        space.status = SPACE_STATUS_OCCUPIED
        self.create_activity_log('RENTAL_CREATED', _rental_created_text(space, household, rental), rental.id)
        logger.info("Rental %s created for space %s", rental.id, space.space_number)
        return rental

    @_locked
    def update_rental(self, rental_id, fields):
        rental = self._rentals.get(rental_id)
        if rental is None:
            return None
        for key, value in fields.items():
            setattr(rental, key, value)
        self.create_activity_log('RENTAL_UPDATED', f"Updated rental #{rental.id}", rental.id)
        return rental

    @_locked
    def end_rental(self, rental_id):
        rental = self._rentals.get(rental_id)
        if rental is None or not rental.is_active:
            return False
        rental.is_active = False
        space = self._parking_spaces.get(rental.parking_space_id)
        if space is not None:
            space.status = SPACE_STATUS_AVAILABLE
        self.create_activity_log('RENTAL_ENDED', _rental_ended_text(space, rental), rental.id)
        logger.info("Rental %s ended", rental.id)
        return True

    def get_expiring_rentals(self, days=7, today=None):
        start, until = _expiry_window(days, today)
        rentals = [r for r in self._rentals.values() if r.is_active and start <= r.end_date <= until]
        return sorted(rentals, key=lambda r: (r.end_date, r.id))

    # --- Activity logs ---
    def get_all_activity_logs(self, limit=None):
        logs = sorted(self._activity_logs.values(), key=lambda a: (a.timestamp, a.id), reverse=True)
        return logs[:limit] if limit else logs

    @_locked
    def create_activity_log(self, activity_type, description, related_id=None):
        log = ActivityLog(id=next(self._log_ids), activity_type=activity_type, description=description,
                          related_id=related_id, timestamp=datetime.now())
        self._activity_logs[log.id] = log
        return log

    # --- Rental requests & offers ---
    def get_all_rental_requests(self, status=None):
        requests = [r for r in self._rental_requests.values() if not status or r.status == status]
        return sorted(requests, key=lambda r: (r.created_at, r.id), reverse=True)

    def get_rental_request_by_id(self, request_id):
        return self._rental_requests.get(request_id)

    @_locked
    def create_rental_request(self, fields):
        req = RentalRequest(id=next(self._request_ids), name=fields['name'], contact=fields['contact'],
                            license_plate=fields['license_plate'], start_date=fields['start_date'],
                            end_date=fields['end_date'], notes=fields.get('notes'),
                            status=REQUEST_STATUS_PENDING, created_at=datetime.now())
        self._rental_requests[req.id] = req
        self.create_activity_log('REQUEST_CREATED', f"New rental request: {req.name} ({req.license_plate})",
                                 req.id)
        return req

    @_locked
    def update_rental_request_status(self, request_id, status):
        req = self._rental_requests.get(request_id)
        if req is None:
            return None
        req.status = status
        self.create_activity_log('REQUEST_UPDATED', f"Rental request #{req.id} set to {status}", req.id)
        return req

    def get_parking_offers_by_request_id(self, request_id):
        offers = [o for o in self._parking_offers.values() if o.request_id == request_id]
        return sorted(offers, key=lambda o: (o.created_at, o.id), reverse=True)

    @_locked
    def create_parking_offer(self, request_id, fields):
        req = self._rental_requests.get(request_id)
        if req is None:
            return None
        if req.status != REQUEST_STATUS_PENDING:
            raise BusinessRuleViolation(NOT_ACCEPTING_OFFERS_MSG)

        offer = ParkingOffer(id=next(self._offer_ids), request_id=req.id, space_number=fields['space_number'],
                             owner_name=fields['owner_name'], owner_contact=fields['owner_contact'],
                             notes=fields.get('notes'), created_at=datetime.now())
        self._parking_offers[offer.id] = offer
        req.status = REQUEST_STATUS_MATCHED
        self.create_activity_log('OFFER_CREATED', _offer_created_text(offer), offer.id)
        logger.info("Rental request %s matched by offer %s", req.id, offer.id)
        return offer

    # --- Derived ---
    def get_dashboard_stats(self):
        statuses = [s.status for s in self._parking_spaces.values()]
        return {
            "total_spaces": len(statuses),
            "occupied_spaces": statuses.count(SPACE_STATUS_OCCUPIED),
            "available_spaces": statuses.count(SPACE_STATUS_AVAILABLE),
            "maintenance_spaces": statuses.count(SPACE_STATUS_MAINTENANCE),
            "active_rentals_count": len(self.get_active_rentals()),
        }

    def ping(self):
        return True


# ==========================================================
# RELATIONAL STORE
# ==========================================================
class DatabaseStorage(BaseStorage):
    """Store backed by the Flask-SQLAlchemy session; needs an app context."""
    backend = 'database'

    @contextmanager
    def _transaction(self):
        try:
            yield db.session
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def _flush_delete(self, message):
        # ended rentals still hold the foreign key
        try:
            db.session.flush()
        except IntegrityError as exc:
            raise BusinessRuleViolation(message) from exc

    def _log(self, activity_type, description, related_id):
        # joins the caller's transaction
        log = ActivityLog(activity_type=activity_type, description=description,
                          related_id=related_id, timestamp=datetime.now())
        db.session.add(log)
        return log

    # --- Parking spaces ---
    def get_all_parking_spaces(self, status=None, area=None):
        query = ParkingSpace.query
        if status:
            query = query.filter_by(status=status)
        if area:
            query = query.filter_by(area=area)
        return query.order_by(ParkingSpace.id).all()

    def get_parking_space_by_id(self, space_id):
        return db.session.get(ParkingSpace, space_id)

    def get_parking_space_by_number(self, space_number):
        return ParkingSpace.query.filter_by(space_number=space_number).first()

    def create_parking_space(self, fields):
        status = fields.get('status') or SPACE_STATUS_AVAILABLE
        self._check_status_change(None, status)
        try:
            with self._transaction():
                if self.get_parking_space_by_number(fields['space_number']):
                    raise ValidationError(SPACE_EXISTS_MSG)
                space = ParkingSpace(space_number=fields['space_number'], area=fields['area'],
                                     status=status, notes=fields.get('notes'))
                db.session.add(space)
                db.session.flush()
                self._log('SPACE_CREATED', f"Created parking space {space.space_number}", space.id)
        except IntegrityError as exc:
            raise ValidationError(SPACE_EXISTS_MSG) from exc
        return space

    def update_parking_space(self, space_id, fields):
        try:
            with self._transaction():
                space = db.session.get(ParkingSpace, space_id, with_for_update=True)
                if space is None:
                    return None
                new_number = fields.get('space_number')
                if new_number:
                    other = self.get_parking_space_by_number(new_number)
                    if other is not None and other.id != space_id:
                        raise ValidationError(SPACE_EXISTS_MSG)
                self._check_status_change(space, fields.get('status'))
                for key, value in fields.items():
                    setattr(space, key, value)
                self._log('SPACE_UPDATED', f"Updated parking space {space.space_number}", space.id)
        except IntegrityError as exc:
            raise ValidationError(SPACE_EXISTS_MSG) from exc
        return space

    def delete_parking_space(self, space_id):
        with self._transaction():
            space = db.session.get(ParkingSpace, space_id, with_for_update=True)
            if space is None or self.has_active_rental(space_id=space_id):
                return False
            number = space.space_number
            db.session.delete(space)
            self._log('SPACE_DELETED', f"Deleted parking space {number}", None)
            self._flush_delete("Parking space still has rental history and cannot be deleted")
        return True

    # --- Households ---
    def get_all_households(self):
        return Household.query.order_by(Household.id).all()

    def get_household_by_id(self, household_id):
        return db.session.get(Household, household_id)

    def get_household_by_number(self, household_number):
        return Household.query.filter_by(household_number=household_number).first()

    def create_household(self, fields):
        try:
            with self._transaction():
                if self.get_household_by_number(fields['household_number']):
                    raise ValidationError(HOUSEHOLD_EXISTS_MSG)
                household = Household(household_number=fields['household_number'],
                                      contact_name=fields.get('contact_name'),
                                      contact_phone=fields.get('contact_phone'), notes=fields.get('notes'))
                db.session.add(household)
                db.session.flush()
                self._log('HOUSEHOLD_CREATED', f"Created household {household.household_number}", household.id)
        except IntegrityError as exc:
            raise ValidationError(HOUSEHOLD_EXISTS_MSG) from exc
        return household

    def update_household(self, household_id, fields):
        try:
            with self._transaction():
                household = db.session.get(Household, household_id)
                if household is None:
                    return None
                new_number = fields.get('household_number')
                if new_number:
                    other = self.get_household_by_number(new_number)
                    if other is not None and other.id != household_id:
                        raise ValidationError(HOUSEHOLD_EXISTS_MSG)
                for key, value in fields.items():
                    setattr(household, key, value)
                self._log('HOUSEHOLD_UPDATED', f"Updated household {household.household_number}", household.id)
        except IntegrityError as exc:
            raise ValidationError(HOUSEHOLD_EXISTS_MSG) from exc
        return household

    def delete_household(self, household_id):
        with self._transaction():
            household = db.session.get(Household, household_id)
            if household is None or self.has_active_rental(household_id=household_id):
                return False
            number = household.household_number
            db.session.delete(household)
            self._log('HOUSEHOLD_DELETED', f"Deleted household {number}", None)
            self._flush_delete("Household still has rental history and cannot be deleted")
        return True

    # --- Rentals ---
    def get_all_rentals(self):
        return Rental.query.order_by(Rental.id).all()

    def get_active_rentals(self):
        return Rental.query.filter_by(is_active=True).order_by(Rental.id).all()

    def get_rental_by_id(self, rental_id):
        return db.session.get(Rental, rental_id)

    def get_rentals_by_parking_space_id(self, space_id):
        return Rental.query.filter_by(parking_space_id=space_id).order_by(Rental.id).all()

    def get_rentals_by_household_id(self, household_id):
        return Rental.query.filter_by(household_id=household_id).order_by(Rental.id).all()

    def create_rental(self, fields):
        try:
            with self._transaction():
                # 1. Lock the space so a concurrent rental waits for us
                space = db.session.execute(
                    select(ParkingSpace).filter_by(id=fields['parking_space_id']).with_for_update()
                ).scalar_one_or_none()
                if space is None:
                    raise ValidationError(SPACE_MISSING_MSG)
                if space.status != SPACE_STATUS_AVAILABLE:
                    raise BusinessRuleViolation(SPACE_UNAVAILABLE_MSG)
                household = db.session.get(Household, fields['household_id'], with_for_update=True)
                if household is None:
                    raise ValidationError(HOUSEHOLD_MISSING_MSG)

                # 2. Insert the rental and flip the space together
                rental = Rental(parking_space_id=space.id, household_id=household.id,
                                license_plate=fields['license_plate'], start_date=fields['start_date'],
                                end_date=fields['end_date'], notes=fields.get('notes'),
                                is_active=True, created_at=datetime.now())
                db.session.add(rental)
                space.status = SPACE_STATUS_OCCUPIED
                db.session.flush()

                # 3. Audit row in the same transaction
                self._log('RENTAL_CREATED', _rental_created_text(space, household, rental), rental.id)
        except IntegrityError as exc:
            logger.warning("Concurrent rental rejected for space %s", fields['parking_space_id'])
            raise rental_conflict_error(exc) from exc
        logger.info("Rental %s created for space %s", rental.id, rental.parking_space_id)
        return rental

    def update_rental(self, rental_id, fields):
        with self._transaction():
            rental = db.session.get(Rental, rental_id)
            if rental is None:
                return None
            for key, value in fields.items():
                setattr(rental, key, value)
            self._log('RENTAL_UPDATED', f"Updated rental #{rental.id}", rental.id)
        return rental

    def end_rental(self, rental_id):
        with self._transaction():
            rental = db.session.get(Rental, rental_id, with_for_update=True)
            if rental is None or not rental.is_active:
                return False
            rental.is_active = False
            space = db.session.get(ParkingSpace, rental.parking_space_id, with_for_update=True)
            if space is not None:
                space.status = SPACE_STATUS_AVAILABLE
            self._log('RENTAL_ENDED', _rental_ended_text(space, rental), rental.id)
        logger.info("Rental %s ended", rental_id)
        return True

    def get_expiring_rentals(self, days=7, today=None):
        start, until = _expiry_window(days, today)
        return (Rental.query
                .filter_by(is_active=True)
                .filter(Rental.end_date >= start, Rental.end_date <= until)
                .order_by(Rental.end_date, Rental.id)
                .all())

    # --- Activity logs ---
    def get_all_activity_logs(self, limit=None):
        query = ActivityLog.query.order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def create_activity_log(self, activity_type, description, related_id=None):
        with self._transaction():
            log = self._log(activity_type, description, related_id)
        return log

    # --- Rental requests & offers ---
    def get_all_rental_requests(self, status=None):
        query = RentalRequest.query
        if status:
            query = query.filter_by(status=status)
        return query.order_by(RentalRequest.created_at.desc(), RentalRequest.id.desc()).all()

    def get_rental_request_by_id(self, request_id):
        return db.session.get(RentalRequest, request_id)

    def create_rental_request(self, fields):
        with self._transaction():
            req = RentalRequest(name=fields['name'], contact=fields['contact'],
                                license_plate=fields['license_plate'], start_date=fields['start_date'],
                                end_date=fields['end_date'], notes=fields.get('notes'),
                                status=REQUEST_STATUS_PENDING, created_at=datetime.now())
            db.session.add(req)
            db.session.flush()
            self._log('REQUEST_CREATED', f"New rental request: {req.name} ({req.license_plate})", req.id)
        return req

    def update_rental_request_status(self, request_id, status):
        with self._transaction():
            req = db.session.get(RentalRequest, request_id)
            if req is None:
                return None
            req.status = status
            self._log('REQUEST_UPDATED', f"Rental request #{req.id} set to {status}", req.id)
        return req

    def get_parking_offers_by_request_id(self, request_id):
        return (ParkingOffer.query.filter_by(request_id=request_id)
                .order_by(ParkingOffer.created_at.desc(), ParkingOffer.id.desc())
                .all())

    def create_parking_offer(self, request_id, fields):
        with self._transaction():
            req = db.session.get(RentalRequest, request_id, with_for_update=True)
            if req is None:
                return None
            if req.status != REQUEST_STATUS_PENDING:
                raise BusinessRuleViolation(NOT_ACCEPTING_OFFERS_MSG)

            offer = ParkingOffer(request_id=req.id, space_number=fields['space_number'],
                                 owner_name=fields['owner_name'], owner_contact=fields['owner_contact'],
                                 notes=fields.get('notes'), created_at=datetime.now())
            db.session.add(offer)
            req.status = REQUEST_STATUS_MATCHED
            db.session.flush()
            self._log('OFFER_CREATED', _offer_created_text(offer), offer.id)
        logger.info("Rental request %s matched by offer %s", request_id, offer.id)
        return offer

    # --- Derived ---
    def get_dashboard_stats(self):
        counts = dict(
            db.session.query(ParkingSpace.status, func.count(ParkingSpace.id))
            .group_by(ParkingSpace.status)
            .all()
        )
        return {
            "total_spaces": sum(counts.values()),
            "occupied_spaces": counts.get(SPACE_STATUS_OCCUPIED, 0),
            "available_spaces": counts.get(SPACE_STATUS_AVAILABLE, 0),
            "maintenance_spaces": counts.get(SPACE_STATUS_MAINTENANCE, 0),
            "active_rentals_count": Rental.query.filter_by(is_active=True).count(),
        }

    def ping(self):
        try:
            db.session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.error("Database ping failed: %s", exc)
            db.session.rollback()
            return False


def rental_conflict_error(exc):
    """
    Maps an IntegrityError from a rental insert to the error the API reports.
    A foreign key failure means the household went away under us; anything
    else is the uq_rentals_active_space index (another active rental won).
    """
    if 'foreign key' in str(exc.orig).lower():
        return ValidationError(HOUSEHOLD_MISSING_MSG)
    return BusinessRuleViolation(SPACE_UNAVAILABLE_MSG)


# --- Activity log text ---
def _rental_created_text(space, household, rental):
    return (f"New rental: space {space.space_number} to household "
            f"{household.household_number} ({rental.license_plate})")


def _rental_ended_text(space, rental):
    space_label = space.space_number if space is not None else f"ID: {rental.parking_space_id}"
    return f"Rental ended: space {space_label} ({rental.license_plate})"


def _offer_created_text(offer):
    return f"Parking offer: {offer.owner_name} offers space {offer.space_number} for request {offer.request_id}"


def create_storage(app):
    """Pick the backend once, from whether a database URL is configured."""
    if app.config.get('SQLALCHEMY_DATABASE_URI'):
        logger.info("Using PostgreSQL/SQL storage")
        return DatabaseStorage()
    logger.info("DATABASE_URL not set, using in-memory storage")
    return MemStorage()
