from flask import Blueprint, jsonify, request

from blueprints.utils import get_storage, parse_body, parse_partial, dump_all
from errors import ValidationError
from schemas import ParkingSpaceIn, ParkingSpaceUpdate

spaces_bp = Blueprint('parking_spaces', __name__)


@spaces_bp.route('', methods=['GET'])
def list_spaces():
    status = request.args.get('status')
    area = request.args.get('area')
    return jsonify(dump_all(get_storage().get_all_parking_spaces(status=status, area=area)))


@spaces_bp.route('/available', methods=['GET'])
def available_spaces():
    return jsonify(dump_all(get_storage().get_available_parking_spaces()))


@spaces_bp.route('/<int:space_id>', methods=['GET'])
def get_space(space_id):
    space = get_storage().get_parking_space_by_id(space_id)
    if space is None:
        return jsonify({"message": "Parking space not found"}), 404
    return jsonify(space.to_dict())


@spaces_bp.route('', methods=['POST'])
def create_space():
    data = parse_body(ParkingSpaceIn).model_dump()
    storage = get_storage()
    # Check if space number already exists
    if storage.get_parking_space_by_number(data['space_number']):
        raise ValidationError("Space number already exists")
    space = storage.create_parking_space(data)
    return jsonify(space.to_dict()), 201


@spaces_bp.route('/<int:space_id>', methods=['PUT'])
def update_space(space_id):
    fields = parse_partial(ParkingSpaceUpdate)
    space = get_storage().update_parking_space(space_id, fields)
    if space is None:
        return jsonify({"message": "Parking space not found"}), 404
    return jsonify(space.to_dict())


@spaces_bp.route('/<int:space_id>', methods=['DELETE'])
def delete_space(space_id):
    storage = get_storage()
    if storage.get_parking_space_by_id(space_id) is None:
        return jsonify({"message": "Parking space not found"}), 404
    if not storage.delete_parking_space(space_id):
        return jsonify({"message": "Parking space has an active rental and cannot be deleted"}), 400
    return '', 204


@spaces_bp.route('/<int:space_id>/rentals', methods=['GET'])
def space_rentals(space_id):
    storage = get_storage()
    if storage.get_parking_space_by_id(space_id) is None:
        return jsonify({"message": "Parking space not found"}), 404
    return jsonify(dump_all(storage.get_rentals_by_parking_space_id(space_id)))
