"""
Address lookup routes used by the planner's address fields and map picks.
"""

from flask import Blueprint, request, jsonify

from extensions import limiter
from geocoding import GeocodingError
from services import get_geocoder

geocode_bp = Blueprint("geocode", __name__, url_prefix="/api/geocode")


def _result_dict(result):
    return {"display_name": result.display_name, "lat": result.lat, "lng": result.lng}


@geocode_bp.route("/search", methods=["GET"])
@limiter.limit("60 per minute")
def search():
    """GET /api/geocode/search?q=Prague&limit=5"""
    query = request.args.get("q", "")
    limit = min(10, max(1, request.args.get("limit", 5, type=int)))
    try:
        results = get_geocoder().search(query, limit=limit)
    except GeocodingError as e:
        return jsonify({"error": str(e)}), 502
    return jsonify({"success": True, "results": [_result_dict(r) for r in results]}), 200


@geocode_bp.route("/reverse", methods=["GET"])
@limiter.limit("60 per minute")
def reverse():
    """GET /api/geocode/reverse?lat=50.08&lng=14.43"""
    lat = request.args.get("lat", type=float)
    lng = request.args.get("lng", type=float)
    if lat is None or lng is None:
        return jsonify({"error": "lat and lng are required"}), 400
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        return jsonify({"error": "Coordinates out of range"}), 400

    try:
        result = get_geocoder().reverse(lat, lng)
    except GeocodingError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"success": True, "result": _result_dict(result)}), 200
