from flask import Blueprint, jsonify

from checkin_service.routes.common import json_body
from checkin_service.services.ledger import lookup, redeem

public_bp = Blueprint('public', __name__)


@public_bp.route('/register', methods=['POST'])
def register():
    """
    Redeem a registration code
    ---
    tags:
      - Attendees
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required:
            - code
            - name
          properties:
            code:
              type: string
            name:
              type: string
            email:
              type: string
    responses:
      200:
        description: Registration successful
      400:
        description: Invalid input or code already used
      404:
        description: Invalid code
      409:
        description: Email already registered
    """
    data = json_body()
    record = redeem(data.get('code'), data.get('name'), data.get('email'))
    return jsonify(record.to_dict()), 200


@public_bp.route('/login', methods=['POST'])
def login():
    """
    Look up a registered attendee by code or email
    ---
    tags:
      - Attendees
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
        description: Attendee record
      404:
        description: Invalid code or user not registered
    """
    data = json_body()
    record = lookup(data.get('code') or data.get('email'))
    return jsonify(record.to_dict()), 200
