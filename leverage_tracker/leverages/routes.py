import json

from flask import Blueprint, Response, jsonify, request
from flask_login import current_user, login_required

from .. import services
from ..extensions import get_store
from ..fields import validated
from ..progression import ACTIVE
from .forms import LeverageForm, StepForm

leverages_bp = Blueprint('leverages', __name__, url_prefix='/api')

API_FORM = {"csrf": False}


@leverages_bp.route('/user')
@login_required
def user_info():
    facts = get_store().bankroll_facts(current_user.id)
    payload = current_user.public()
    payload.update(facts.to_dict())
    return jsonify(payload)


@leverages_bp.route('/leverages')
@login_required
def list_leverages():
    status = request.args.get('status', ACTIVE)
    progressions = services.list_progressions(get_store(), current_user.id, status)
    return jsonify([p.to_record() for p in progressions])


@leverages_bp.route('/leverages', methods=['POST'])
@login_required
def create_leverage():
    form = validated(LeverageForm(meta=API_FORM))
    progression = services.open_progression(
        get_store(),
        current_user.id,
        name=form.name.data,
        initial_value=form.initial_value.data,
        odd=form.odd.data,
        max_steps=form.max_steps.data,
    )
    return jsonify({"message": "Leverage created successfully", "leverage": progression.to_record()}), 201


@leverages_bp.route('/leverages/<int:leverage_id>', methods=['PUT'])
@login_required
def update_leverage(leverage_id):
    form = validated(StepForm(meta=API_FORM))
    progression = services.set_step(get_store(), current_user.id, leverage_id, form.current_step.data)
    return jsonify({"message": "Leverage updated successfully", "leverage": progression.to_record()})


@leverages_bp.route('/leverages/<int:leverage_id>/reset', methods=['PUT'])
@login_required
def reset_leverage(leverage_id):
    progression = services.reset_progression(get_store(), current_user.id, leverage_id)
    return jsonify({"message": "Leverage reset successfully", "leverage": progression.to_record()})


@leverages_bp.route('/leverages/<int:leverage_id>/complete', methods=['PATCH'])
@login_required
def complete_leverage(leverage_id):
    snapshot = services.close_progression(get_store(), current_user.id, leverage_id)
    payload = {"message": "Leverage completed successfully"}
    payload.update(snapshot.to_dict())
    return jsonify(payload)


@leverages_bp.route('/leverages/<int:leverage_id>', methods=['DELETE'])
@login_required
def delete_leverage(leverage_id):
    services.delete_progression(get_store(), current_user.id, leverage_id)
    return jsonify({"message": "Leverage deleted successfully"})


@leverages_bp.route('/leverages/export')
@login_required
def export_leverages():
    """Download every leverage of the user as a JSON backup."""
    progressions = get_store().list_all(current_user.id)
    body = json.dumps([p.to_record() for p in progressions], indent=2)
    return Response(
        body,
        mimetype='application/json',
        headers={'Content-Disposition': 'attachment; filename=leverages_backup.json'},
    )
