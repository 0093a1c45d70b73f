from flask import Blueprint, current_app, jsonify, request

message_bp = Blueprint("custom_message", __name__)


def _service():
    return current_app.extensions["schedule_service"]


# text sent to customers with every booking confirmation
@message_bp.get("/custom-message")
def get_custom_message():
    message = _service().get_custom_message()
    if message is None:
        return jsonify(message="", updated_at=None), 200
    return jsonify(message.to_dict()), 200


@message_bp.put("/custom-message")
def update_custom_message():
    data = request.get_json(silent=True) or {}
    message = _service().set_custom_message(data.get("message"))
    return jsonify(message.to_dict()), 200
