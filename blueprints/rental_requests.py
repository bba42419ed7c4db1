from flask import Blueprint, jsonify, request

from blueprints.utils import get_storage, parse_body, dump_all
from schemas import RentalRequestIn, RequestStatusIn, ParkingOfferIn

requests_bp = Blueprint('rental_requests', __name__)

# =========================================================
# 🅿️ "LOOKING FOR PARKING" REQUESTS (no login needed)
# =========================================================
@requests_bp.route('', methods=['GET'])
def list_requests():
    status = request.args.get('status')
    return jsonify(dump_all(get_storage().get_all_rental_requests(status=status)))


@requests_bp.route('/<int:request_id>', methods=['GET'])
def get_request(request_id):
    rental_request = get_storage().get_rental_request_by_id(request_id)
    if rental_request is None:
        return jsonify({"message": "Rental request not found"}), 404
    return jsonify(rental_request.to_dict())


@requests_bp.route('', methods=['POST'])
def create_request():
    # status is always PENDING on creation, whatever the body says
    data = parse_body(RentalRequestIn).model_dump()
    rental_request = get_storage().create_rental_request(data)
    return jsonify(rental_request.to_dict()), 201


@requests_bp.route('/<int:request_id>/status', methods=['PUT'])
def update_request_status(request_id):
    """Admin override, any status to any status."""
    status = parse_body(RequestStatusIn).status
    rental_request = get_storage().update_rental_request_status(request_id, status)
    if rental_request is None:
        return jsonify({"message": "Rental request not found"}), 404
    return jsonify(rental_request.to_dict())


# =========================================================
# 🤝 OFFERS (owner follows the shared link)
# =========================================================
@requests_bp.route('/<int:request_id>/offers', methods=['GET'])
def list_offers(request_id):
    return jsonify(dump_all(get_storage().get_parking_offers_by_request_id(request_id)))


@requests_bp.route('/<int:request_id>/offers', methods=['POST'])
def create_offer(request_id):
    data = parse_body(ParkingOfferIn).model_dump()
    offer = get_storage().create_parking_offer(request_id, data)
    if offer is None:
        return jsonify({"message": "Rental request not found"}), 404
    return jsonify(offer.to_dict()), 201
