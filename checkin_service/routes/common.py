from flask import request

from checkin_service.exceptions import InvalidInput


def json_body():
    """The request's JSON object, or {} when there is no body. Any other JSON value is rejected."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise InvalidInput('Request body must be a JSON object')
    return data
