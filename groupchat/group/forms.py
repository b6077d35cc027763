"""Forms for the group blueprint."""

from flask_wtf import FlaskForm
from flask_wtf.file import FileAllowed, FileField
from wtforms import SelectMultipleField, StringField, TextAreaField, widgets
from wtforms.validators import DataRequired, Optional


class MultiCheckboxField(SelectMultipleField):
    """A multiple-select rendered as a list of checkboxes."""

    widget = widgets.ListWidget(prefix_label=False)
    option_widget = widgets.CheckboxInput()


class GroupForm(FlaskForm):
    """Form for creating a new group."""

    name = StringField("Group Name", validators=[DataRequired()])
    members = MultiCheckboxField(
        "Members", validators=[DataRequired(message="Select at least one member.")]
    )


class MessageForm(FlaskForm):
    """Form for sending a text message."""

    text = TextAreaField("Message", render_kw={"placeholder": "Type message..."})


class ImageForm(FlaskForm):
    """Form for sending an image message."""

    image = FileField(
        "Image",
        validators=[FileAllowed(["jpg", "png", "jpeg", "gif", "webp"]), Optional()],
    )
