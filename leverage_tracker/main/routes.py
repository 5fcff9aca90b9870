from urllib.parse import urlparse

from flask import Blueprint, current_app, flash, redirect, render_template, request, url_for
from flask_login import current_user, login_required, login_user, logout_user

from .. import services
from ..auth.forms import LoginForm, RegisterForm
from ..errors import AuthenticationError, InputError, NotFoundError, StorageError
from ..extensions import get_store
from ..fields import first_error
from ..leverages.forms import ActionForm, LeverageForm
from .state import DashboardState, load_dashboard_state

main_bp = Blueprint("main", __name__)


@main_bp.app_template_filter("money")
def money(value):
    return f"{value or 0:,.2f}"


def _safe_next():
    target = request.args.get("next")
    if not target:
        return None
    parsed = urlparse(target)
    if parsed.scheme or parsed.netloc or not target.startswith("/"):
        return None
    return target


def _storage_failure(what, *args):
    current_app.logger.exception("Dashboard action failed for user %s: " + what, current_user.id, *args)
    flash("Something went wrong on our side. Please try again.", "danger")


def _run_action(action, success_message, *args):
    """Validate the CSRF-only form, run a service call, flash the outcome."""
    form = ActionForm()
    if not form.validate_on_submit():
        flash(first_error(form), "danger")
        return None
    try:
        result = action(get_store(), current_user.id, *args)
    except (InputError, NotFoundError) as exc:
        flash(exc.message, "danger")
        return None
    except StorageError:
        _storage_failure("%s on leverage %s", action.__name__, args[0])
        return None
    if success_message:
        flash(success_message, "success")
    return result


@main_bp.route("/")
@login_required
def index():
    try:
        state = load_dashboard_state(get_store(), current_user)
    except StorageError:
        # the user stays logged in; the next reload will try again
        current_app.logger.exception("Could not refresh dashboard for user %s", current_user.id)
        flash("Could not load your leverages right now. Try reloading the page.", "warning")
        state = DashboardState.empty(current_user._get_current_object())

    warning = state.bankroll.warning()
    if warning:
        flash(warning, "warning")

    return render_template(
        "dashboard.html",
        state=state,
        form=LeverageForm(),
        action_form=ActionForm(),
    )


@main_bp.route("/leverage/<int:leverage_id>")
@login_required
def leverage_detail(leverage_id):
    try:
        state = load_dashboard_state(get_store(), current_user, selected_id=leverage_id)
    except NotFoundError as exc:
        flash(exc.message, "danger")
        return redirect(url_for("main.index"))
    except StorageError:
        _storage_failure("loading leverage %s", leverage_id)
        return redirect(url_for("main.index"))
    return render_template("leverage_detail.html", state=state, leverage=state.selected, action_form=ActionForm())


@main_bp.route("/leverage/new", methods=["POST"])
@login_required
def new_leverage():
    form = LeverageForm()
    if not form.validate_on_submit():
        flash(first_error(form), "danger")
        return redirect(url_for("main.index"))
    try:
        progression = services.open_progression(
            get_store(),
            current_user.id,
            name=form.name.data,
            initial_value=form.initial_value.data,
            odd=form.odd.data,
            max_steps=form.max_steps.data,
        )
    except InputError as exc:
        flash(exc.message, "danger")
    except StorageError:
        _storage_failure("creating leverage %s", form.name.data)
    else:
        flash(f'Leverage "{progression.name}" created!', "success")
    return redirect(url_for("main.index"))


@main_bp.route("/leverage/<int:leverage_id>/advance", methods=["POST"])
@login_required
def advance(leverage_id):
    result = _run_action(services.step_progression, None, leverage_id, True)
    if result is not None and not result[1]:
        flash("Already on the last bet.", "info")
    return redirect(url_for("main.leverage_detail", leverage_id=leverage_id))


@main_bp.route("/leverage/<int:leverage_id>/retreat", methods=["POST"])
@login_required
def retreat(leverage_id):
    result = _run_action(services.step_progression, None, leverage_id, False)
    if result is not None and not result[1]:
        flash("Already on the first bet.", "info")
    return redirect(url_for("main.leverage_detail", leverage_id=leverage_id))


@main_bp.route("/leverage/<int:leverage_id>/reset", methods=["POST"])
@login_required
def reset(leverage_id):
    _run_action(services.reset_progression, "Leverage reset to day 1.", leverage_id)
    return redirect(url_for("main.index"))


@main_bp.route("/leverage/<int:leverage_id>/close", methods=["POST"])
@login_required
def close(leverage_id):
    snapshot = _run_action(services.close_progression, None, leverage_id)
    if snapshot is not None:
        sign = "+" if snapshot.profit >= 0 else "-"
        flash(f"Leverage closed at {snapshot.final_value:,.2f} ({sign}{abs(snapshot.profit):,.2f}).", "success")
    return redirect(url_for("main.index"))


@main_bp.route("/leverage/<int:leverage_id>/delete", methods=["POST"])
@login_required
def delete(leverage_id):
    _run_action(services.delete_progression, "Leverage deleted.", leverage_id)
    return redirect(url_for("main.index"))


@main_bp.route("/login", methods=["GET", "POST"])
def login():
    if current_user.is_authenticated:
        return redirect(url_for("main.index"))
    form = LoginForm()
    if form.validate_on_submit():
        try:
            account = services.authenticate(get_store(), form.name.data, form.password.data)
        except AuthenticationError as exc:
            flash(exc.message, "danger")
        else:
            login_user(account)
            flash(f"Welcome back, {account.name}!", "success")
            return redirect(_safe_next() or url_for("main.index"))
    elif form.errors:
        flash(first_error(form), "danger")
    return render_template("login.html", form=form)


@main_bp.route("/register", methods=["GET", "POST"])
def register():
    if current_user.is_authenticated:
        return redirect(url_for("main.index"))
    form = RegisterForm()
    if form.validate_on_submit():
        try:
            account = services.register_account(
                get_store(),
                name=form.name.data,
                password=form.password.data,
                age=form.age.data,
                bankroll=form.bankroll.data,
            )
        except InputError as exc:
            flash(exc.message, "danger")
        else:
            login_user(account)
            flash("Account created. Good luck!", "success")
            return redirect(url_for("main.index"))
    elif form.errors:
        flash(first_error(form), "danger")
    return render_template("register.html", form=form)


@main_bp.route("/logout", methods=["POST"])
@login_required
def logout():
    logout_user()
    flash("Logged out.", "success")
    return redirect(url_for("main.login"))
