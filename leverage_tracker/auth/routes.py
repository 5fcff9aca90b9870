from flask import Blueprint, jsonify
from flask_login import current_user, login_required

from .. import services
from ..extensions import get_store
from ..fields import validated
from .forms import LoginForm, RegisterForm
from .tokens import issue_token

auth_bp = Blueprint('auth', __name__, url_prefix='/api')

# JSON bodies carry a bearer token instead of a CSRF cookie
API_FORM = {"csrf": False}


def _session_payload(account, message):
    user = account.public()
    user["bankroll"] = account.initial_bankroll
    return {"message": message, "token": issue_token(account), "user": user}


@auth_bp.route('/register', methods=['POST'])
def register():
    form = validated(RegisterForm(meta=API_FORM))
    account = services.register_account(
        get_store(),
        name=form.name.data,
        password=form.password.data,
        age=form.age.data,
        bankroll=form.bankroll.data,
    )
    return jsonify(_session_payload(account, 'User created successfully'))


@auth_bp.route('/login', methods=['POST'])
def login():
    form = validated(LoginForm(meta=API_FORM))
    account = services.authenticate(get_store(), form.name.data, form.password.data)
    return jsonify(_session_payload(account, 'Logged in successfully'))


@auth_bp.route('/verify')
@login_required
def verify():
    return jsonify({"user": current_user.public()})
