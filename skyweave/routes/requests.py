import os
from datetime import datetime
from flask import Blueprint, jsonify, request, send_file
from skyweave.integrations.errors import RequestNotFoundError
from skyweave.integrations.weather import supported_date_range
from skyweave.services.request_service import RequestService

requests_bp = Blueprint('requests', __name__)


@requests_bp.errorhandler(RequestNotFoundError)
def request_not_found(e):
    return jsonify({'error': 'Request not found'}), 404


@requests_bp.route('/date-range')
def date_range():
    """Dates the pipeline can produce weather for: a year back to 16 days ahead."""
    earliest, latest = supported_date_range()
    return jsonify({'min_date': earliest.isoformat(), 'max_date': latest.isoformat()})


@requests_bp.route('', methods=['POST'])
def create_request():
    """Start a new request from a multipart form (photo, location, date, time_of_day)."""
    location = (request.form.get('location') or '').strip()
    date_str = (request.form.get('date') or '').strip()
    time_of_day = (request.form.get('time_of_day') or '').strip()
    user_id = (request.form.get('user_id') or '').strip() or None
    photo = request.files.get('photo')

    missing = [name for name, value in (('location', location), ('date', date_str)) if not value]
    if not photo or not photo.filename:
        missing.append('photo')
    if missing:
        return jsonify({'error': f'Missing fields: {missing}'}), 400

    try:
        target_date = datetime.strptime(date_str, '%Y-%m-%d').date()
    except ValueError:
        return jsonify({'error': 'Invalid date format. Use YYYY-MM-DD'}), 400

    req = RequestService().create_request(user_id, location, target_date, time_of_day, photo)
    return jsonify({'id': req.id, 'user_id': req.user_id, 'status': req.status}), 202


@requests_bp.route('/<request_id>')
def get_request(request_id):
    req = RequestService().get_request(request_id)
    return jsonify(req.to_dict())


@requests_bp.route('/<request_id>/confirm', methods=['POST'])
def confirm_request(request_id):
    service = RequestService()
    started = service.confirm(request_id)
    req = service.get_request(request_id)
    return jsonify({'id': request_id, 'status': req.status, 'started': started}), 202 if started else 200


@requests_bp.route('/<request_id>/cancel', methods=['POST'])
def cancel_request(request_id):
    service = RequestService()
    if not service.cancel(request_id):
        req = service.get_request(request_id)
        return jsonify({'error': f'Request cannot be cancelled in status {req.status}'}), 409
    return jsonify({'id': request_id, 'status': 'cancelled'})


@requests_bp.route('/<request_id>/image')
def result_image(request_id):
    path = RequestService().result_image_path(request_id)
    if not path:
        return jsonify({'error': 'Image not ready'}), 404
    # send_file resolves relative paths against the package root, not the cwd
    return send_file(os.path.abspath(path), mimetype='image/jpeg')
