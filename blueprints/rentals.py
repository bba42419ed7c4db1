from flask import Blueprint, current_app, jsonify

from blueprints.utils import get_storage, parse_body, parse_partial, int_arg, dump_all, field_errors
from schemas import RentalIn, RentalUpdate

rentals_bp = Blueprint('rentals', __name__)


@rentals_bp.route('', methods=['GET'])
def list_rentals():
    return jsonify(dump_all(get_storage().get_all_rentals()))


@rentals_bp.route('/active', methods=['GET'])
def active_rentals():
    return jsonify(dump_all(get_storage().get_active_rentals()))


@rentals_bp.route('/expiring', methods=['GET'])
def expiring_rentals():
    """Active rentals ending between today and today + ?days= (inclusive)."""
    days = int_arg('days', default=current_app.config['EXPIRING_DAYS_DEFAULT'], minimum=1)
    return jsonify(dump_all(get_storage().get_expiring_rentals(days)))


@rentals_bp.route('/<int:rental_id>', methods=['GET'])
def get_rental(rental_id):
    rental = get_storage().get_rental_by_id(rental_id)
    if rental is None:
        return jsonify({"message": "Rental not found"}), 404
    return jsonify(rental.to_dict())


@rentals_bp.route('', methods=['POST'])
def create_rental():
    """
    Rents an AVAILABLE space to a household. The store checks the space and
    household and flips the space to OCCUPIED in the same operation.
    """
    data = parse_body(RentalIn).model_dump()
    rental = get_storage().create_rental(data)
    return jsonify(rental.to_dict()), 201


@rentals_bp.route('/<int:rental_id>', methods=['PUT'])
def update_rental(rental_id):
    fields = parse_partial(RentalUpdate)
    storage = get_storage()
    rental = storage.get_rental_by_id(rental_id)
    if rental is None:
        return jsonify({"message": "Rental not found"}), 404

    # the body may only carry one of the two dates
    start = fields.get('start_date', rental.start_date)
    end = fields.get('end_date', rental.end_date)
    if end <= start:
        raise field_errors([{"field": "endDate", "message": "End date must be after start date"}])

    rental = storage.update_rental(rental_id, fields)
    return jsonify(rental.to_dict())


@rentals_bp.route('/<int:rental_id>/end', methods=['POST'])
def end_rental(rental_id):
    storage = get_storage()
    if storage.get_rental_by_id(rental_id) is None:
        return jsonify({"message": "Rental not found"}), 404
    if not storage.end_rental(rental_id):
        return jsonify({"message": "Rental has already ended"}), 400
    return jsonify({"message": "Rental ended successfully"})
