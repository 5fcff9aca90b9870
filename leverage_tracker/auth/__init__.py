from flask import current_app, jsonify, redirect, request, url_for

from ..errors import InvalidTokenError
from ..extensions import get_store, login_manager
from .tokens import bearer_token, read_token

API_BLUEPRINTS = {'auth', 'leverages'}


@login_manager.user_loader
def load_user(user_id):
    return get_store().get_user(int(user_id))


@login_manager.request_loader
def load_user_from_request(req):
    token = bearer_token(req)
    if token is None:
        return None
    try:
        claims = read_token(token)
    except InvalidTokenError as exc:
        # the API answers 403; dashboard pages treat the request as anonymous
        if req.blueprint in API_BLUEPRINTS:
            raise
        current_app.logger.debug("Ignoring bearer token on %s: %s", req.path, exc.message)
        return None
    return get_store().get_user(claims["user_id"])


@login_manager.unauthorized_handler
def unauthorized():
    if request.blueprint in API_BLUEPRINTS:
        return jsonify({"error": "Access token required"}), 401
    return redirect(url_for('main.login', next=request.path))
