import logging

from flask import Blueprint, jsonify, request

from checkin_service.auth import admin_required, check_admin_secret, issue_admin_token, revoke_current_token
from checkin_service.exceptions import CheckinError, InvalidInput, Unauthorized
from checkin_service.routes.common import json_body
from checkin_service.services.code_issuer import issue_codes
from checkin_service.services.ledger import list_records, lookup, release
from checkin_service.services.scanner import scan

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


def _identity_key(data):
    return data.get('code') or data.get('email')


@admin_bp.route('/login', methods=['POST'])
def login():
    """
    Exchange the admin password for a session token
    ---
    tags:
      - Admin
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - password
          properties:
            password:
              type: string
    responses:
      200:
        description: Login successful
      401:
        description: Invalid password
    """
    data = json_body()
    if not check_admin_secret(data.get('password')):
        logger.warning("Failed admin login from %s", request.remote_addr)
        raise Unauthorized('Invalid password')

    return jsonify({'message': 'Login successful', 'access_token': issue_admin_token()}), 200


@admin_bp.route('/logout', methods=['POST'])
@admin_required
def logout():
    """
    Revoke the current admin session token
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    responses:
      200:
        description: Logout successful
      400:
        description: The bearer token is not a session token
      401:
        description: Unauthorized
    """
    revoke_current_token()
    return jsonify({'message': 'Logout successful'}), 200


@admin_bp.route('/generate-codes', methods=['POST'])
@admin_required
def generate_codes():
    """
    Generate a batch of unique registration codes
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            count:
              type: integer
              minimum: 1
              maximum: 100
              default: 1
            hold:
              type: boolean
              default: false
              description: Store the codes as UNISSUED until released
    responses:
      201:
        description: Codes generated
      400:
        description: Invalid count
      401:
        description: Unauthorized
      503:
        description: Code space exhausted
    """
    data = json_body()
    hold = data.get('hold', False)
    if not isinstance(hold, bool):
        raise InvalidInput('hold must be a boolean')

    codes = issue_codes(data.get('count', 1), hold=hold)
    return jsonify({'message': 'Codes generated successfully', 'codes': codes}), 201


@admin_bp.route('/release-codes', methods=['POST'])
@admin_required
def release_codes():
    """
    Release held codes so attendees can redeem them
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - codes
          properties:
            codes:
              type: array
              items:
                type: string
    responses:
      200:
        description: Codes released
      404:
        description: Unknown code
      409:
        description: Code is not held
    """
    data = json_body()
    records = release(data.get('codes'))
    return jsonify({'message': 'Codes released successfully', 'data': [r.to_dict() for r in records]}), 200


@admin_bp.route('/users', methods=['GET'])
@admin_required
def list_users():
    """
    List all code records, newest first
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: state
        in: query
        type: string
        enum: [UNISSUED, ISSUED, REDEEMED]
      - name: page
        in: query
        type: integer
        default: 1
      - name: per_page
        in: query
        type: integer
        default: 50
    responses:
      200:
        description: Code records
      401:
        description: Unauthorized
    """
    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', 50, type=int)
    if page < 1 or per_page < 1:
        raise InvalidInput('page and per_page must be positive')

    result = list_records(request.args.get('state'), page, per_page)
    return jsonify({
        "success": True,
        "data": result['data'],
        "pagination": result['pagination']
    }), 200


@admin_bp.route('/codes/<code>', methods=['GET'])
@admin_required
def get_code(code):
    """
    Look up a code in any state
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - name: code
        in: path
        type: string
        required: true
    responses:
      200:
        description: Code record
      404:
        description: Code not found
    """
    record = lookup(code, require_redeemed=False)
    return jsonify({"success": True, "data": record.to_dict()}), 200


@admin_bp.route('/scan', methods=['POST'])
@admin_required
def scan_code():
    """
    Record a door entry for a registered attendee
    ---
    tags:
      - Admin
    security:
      - Bearer: []
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            code:
              type: string
            email:
              type: string
    responses:
      200:
        description: Ticket scanned, valid is true
      404:
        description: Invalid code or attendee not registered, valid is false
      409:
        description: Entry limit reached, valid is false
    """
    try:
        record = scan(_identity_key(json_body()))
    except CheckinError as e:
        # gate UI keys off `valid`
        body = e.to_dict()
        body['valid'] = False
        return jsonify(body), e.status_code

    return jsonify({
        'valid': True,
        'message': 'Ticket scanned successfully',
        'record': record.to_dict()
    }), 200
