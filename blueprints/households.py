from flask import Blueprint, jsonify

from blueprints.utils import get_storage, parse_body, parse_partial, dump_all
from errors import ValidationError
from schemas import HouseholdIn, HouseholdUpdate

households_bp = Blueprint('households', __name__)

HOUSEHOLD_NULLABLE = ('contact_name', 'contact_phone', 'notes')


@households_bp.route('', methods=['GET'])
def list_households():
    return jsonify(dump_all(get_storage().get_all_households()))


@households_bp.route('/<int:household_id>', methods=['GET'])
def get_household(household_id):
    household = get_storage().get_household_by_id(household_id)
    if household is None:
        return jsonify({"message": "Household not found"}), 404
    return jsonify(household.to_dict())


@households_bp.route('', methods=['POST'])
def create_household():
    data = parse_body(HouseholdIn).model_dump()
    storage = get_storage()
    if storage.get_household_by_number(data['household_number']):
        raise ValidationError("Household number already exists")
    household = storage.create_household(data)
    return jsonify(household.to_dict()), 201


@households_bp.route('/<int:household_id>', methods=['PUT'])
def update_household(household_id):
    fields = parse_partial(HouseholdUpdate, nullable=HOUSEHOLD_NULLABLE)
    household = get_storage().update_household(household_id, fields)
    if household is None:
        return jsonify({"message": "Household not found"}), 404
    return jsonify(household.to_dict())


@households_bp.route('/<int:household_id>', methods=['DELETE'])
def delete_household(household_id):
    storage = get_storage()
    if storage.get_household_by_id(household_id) is None:
        return jsonify({"message": "Household not found"}), 404
    if not storage.delete_household(household_id):
        return jsonify({"message": "Household has an active rental and cannot be deleted"}), 400
    return '', 204


@households_bp.route('/<int:household_id>/rentals', methods=['GET'])
def household_rentals(household_id):
    storage = get_storage()
    if storage.get_household_by_id(household_id) is None:
        return jsonify({"message": "Household not found"}), 404
    return jsonify(dump_all(storage.get_rentals_by_household_id(household_id)))
