"""Routes for the auth blueprint."""

from firebase_admin import firestore
from flask import current_app, flash, g, redirect, render_template, url_for

from groupchat.errors import AuthError, ValidationError

from . import bp
from .forms import LoginForm, RegisterForm
from .identity import get_identity
from .services import AccountService


@bp.route("/register", methods=["GET", "POST"])
def register():
    """Create an account and sign in."""
    if g.get("user"):
        return redirect(url_for("group.view_groups"))

    form = RegisterForm()
    error = ""
    if form.validate_on_submit():
        db = firestore.client()
        identity = get_identity()
        try:
            credential = AccountService.register(
                db,
                identity,
                form.username.data,
                form.email.data,
                form.password.data,
            )
            identity.start_session(credential)
            return redirect(url_for("group.view_groups"))
        except (AuthError, ValidationError) as e:
            current_app.logger.info(f"Registration rejected: {e.message}")
            error = e.message

    return render_template("auth/register.html", form=form, error=error)


@bp.route("/login", methods=["GET", "POST"])
def login():
    """Sign in with a username and password."""
    if g.get("user"):
        return redirect(url_for("group.view_groups"))

    form = LoginForm()
    error = ""
    if form.validate_on_submit():
        db = firestore.client()
        identity = get_identity()
        try:
            credential = AccountService.login(
                db, identity, form.username.data, form.password.data
            )
            identity.start_session(credential)
            return redirect(url_for("group.view_groups"))
        except (AuthError, ValidationError) as e:
            current_app.logger.info(f"Login rejected: {e.message}")
            error = e.message

    return render_template("auth/login.html", form=form, error=error)


@bp.route("/logout")
def logout():
    """End the session and release the user's live queries."""
    get_identity().sign_out()
    flash("You have been logged out.", "success")
    return redirect(url_for("auth.login"))
