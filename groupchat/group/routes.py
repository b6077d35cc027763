"""Routes for the group blueprint."""

from firebase_admin import firestore
from flask import (
    current_app,
    flash,
    g,
    jsonify,
    redirect,
    render_template,
    url_for,
)

from groupchat.auth.decorators import login_required
from groupchat.errors import NotFoundError, ValidationError
from groupchat.sync import get_sync_client
from groupchat.sync.media import pick_image

from . import bp
from .forms import GroupForm, ImageForm, MessageForm
from .services import GroupService


def _load_group(group_id):
    """Fetch a group the current user belongs to, or None."""
    db = firestore.client()
    try:
        return GroupService.get_group_for_member(db, group_id, g.user["uid"])
    except NotFoundError as e:
        flash(e.message, "danger")
        return None


@bp.route("/", methods=["GET"])
@login_required
def view_groups():
    """Display the groups the user is a member of."""
    screen = get_sync_client().open_group_list(g.user["uid"])
    state = screen.state()
    return render_template(
        "group/groups.html",
        groups=state["records"],
        error=state["error"],
        live=state["live"],
    )


@bp.route("/state", methods=["GET"])
@login_required
def groups_state():
    """Return the group list view state as JSON."""
    screen = get_sync_client().open_group_list(g.user["uid"])
    return jsonify(screen.state())


@bp.route("/create", methods=["GET", "POST"])
@login_required
def create_group():
    """Create a new group with the selected members."""
    client = get_sync_client()
    uid = g.user["uid"]
    screen = client.open_create_group(uid)
    state = screen.state()

    form = GroupForm()
    form.members.choices = GroupService.member_choices(state["records"])
    error = state["error"]

    if form.validate_on_submit():
        try:
            group_id = client.writes.create_group(
                form.name.data, uid, form.members.data
            )
        except ValidationError as e:
            error = e.message
        else:
            client.close_create_group(uid)
            return redirect(url_for(".view_group", group_id=group_id))

    return render_template(
        "group/create_group.html", form=form, error=error, live=state["live"]
    )


@bp.route("/create/state", methods=["GET"])
@login_required
def users_state():
    """Return the candidate member list view state as JSON."""
    screen = get_sync_client().open_create_group(g.user["uid"])
    return jsonify(screen.state())


@bp.route("/<string:group_id>", methods=["GET"])
@login_required
def view_group(group_id):
    """Display a group's message thread."""
    group = _load_group(group_id)
    if group is None:
        return redirect(url_for(".view_groups"))

    screen = get_sync_client().open_thread(g.user["uid"], group_id)
    state = screen.state()
    return render_template(
        "group/chat.html",
        group=group,
        group_id=group_id,
        messages=state["records"],
        sending=state["sending"],
        error=state["error"],
        form=MessageForm(),
        image_form=ImageForm(),
        current_user_id=g.user["uid"],
    )


@bp.route("/<string:group_id>/state", methods=["GET"])
@login_required
def thread_state(group_id):
    """Return the thread view state as JSON."""
    if _load_group(group_id) is None:
        return jsonify({"error": "Group not found."}), 404
    screen = get_sync_client().open_thread(g.user["uid"], group_id)
    return jsonify(screen.state())


@bp.route("/<string:group_id>/send", methods=["POST"])
@login_required
def send_message(group_id):
    """Send a text message.

    Empty messages are dropped and failed sends are only logged.
    """
    if _load_group(group_id) is None:
        return redirect(url_for(".view_groups"))

    form = MessageForm()
    if form.validate_on_submit():
        screen = get_sync_client().open_thread(g.user["uid"], group_id)
        try:
            screen.send_text(g.user, form.text.data)
        except ValidationError as e:
            current_app.logger.debug(f"Dropped message to {group_id}: {e.message}")
        except Exception as e:
            current_app.logger.error(f"Failed to send message to {group_id}: {e}")

    return redirect(url_for(".view_group", group_id=group_id))


@bp.route("/<string:group_id>/image", methods=["POST"])
@login_required
def send_image(group_id):
    """Send an image message."""
    if _load_group(group_id) is None:
        return redirect(url_for(".view_groups"))

    form = ImageForm()
    if form.validate_on_submit():
        try:
            picked = pick_image(form.image.data)
        except ValidationError as e:
            flash(e.message, "danger")
            return redirect(url_for(".view_group", group_id=group_id))

        if picked is not None:
            screen = get_sync_client().open_thread(g.user["uid"], group_id)
            try:
                screen.send_image(g.user, picked)
            except Exception as e:
                current_app.logger.error(f"Failed to send image to {group_id}: {e}")

    return redirect(url_for(".view_group", group_id=group_id))
