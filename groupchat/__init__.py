"""Initialize the Flask app and its extensions."""

import json
import os

import firebase_admin
from firebase_admin import credentials, firestore
from flask import Flask, current_app, g, session

from .auth.identity import EXTENSION_KEY as IDENTITY_KEY
from .auth.identity import IdentityProvider
from .constants import (
    MESSAGE_CACHE_WINDOW,
    SCREEN_IDLE_TIMEOUT,
    USERS_COLLECTION,
)
from .extensions import csrf
from .sync.client import release_user_screens


def _init_firebase(app):
    """Initialize the Firebase Admin SDK from the environment."""
    cred = None
    project_id = os.environ.get("FIREBASE_PROJECT_ID")

    # First, try to load from environment variable (for production)
    cred_json = os.environ.get("FIREBASE_CREDENTIALS_JSON")
    if cred_json:
        try:
            cred_info = json.loads(cred_json)
            project_id = cred_info.get("project_id") or project_id
            cred = credentials.Certificate(cred_info)
        except (json.JSONDecodeError, ValueError) as e:
            app.logger.error(f"Error parsing FIREBASE_CREDENTIALS_JSON: {e}")

    # If env var fails or is not present, try loading from file (for local dev)
    if not cred:
        cred_path = os.path.join(
            os.path.dirname(os.path.dirname(__file__)), "firebase_credentials.json"
        )
        if os.path.exists(cred_path):
            try:
                with open(cred_path, "r") as f:
                    cred_info = json.load(f)
                project_id = cred_info.get("project_id") or project_id
                cred = credentials.Certificate(cred_path)
            except (json.JSONDecodeError, ValueError) as e:
                app.logger.error(f"Error loading credentials from file: {e}")

    # If both methods fail, fallback to default credentials
    if not cred:
        try:
            cred = credentials.ApplicationDefault()
        except Exception as e:
            app.logger.error(
                f"Could not find any valid credentials (env, file, or default): {e}"
            )

    if cred and not firebase_admin._apps:
        options = {"projectId": project_id} if project_id else None
        try:
            firebase_admin.initialize_app(cred, options)
        except ValueError:
            # This can happen if the app is already initialized, which is fine.
            app.logger.info("Firebase app already initialized.")


def create_app(test_config=None):
    """Create and configure an instance of the Flask application."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get("SECRET_KEY") or "dev",
        FIREBASE_WEB_API_KEY=os.environ.get("FIREBASE_WEB_API_KEY"),
        MESSAGE_CACHE_DIR=os.environ.get("MESSAGE_CACHE_DIR")
        or os.path.join(app.instance_path, "message_cache"),
        MESSAGE_CACHE_WINDOW=int(
            os.environ.get("MESSAGE_CACHE_WINDOW") or MESSAGE_CACHE_WINDOW
        ),
        SCREEN_IDLE_TIMEOUT=float(
            os.environ.get("SCREEN_IDLE_TIMEOUT") or SCREEN_IDLE_TIMEOUT
        ),
    )

    if test_config:
        app.config.update(test_config)

    # Initialize Firebase Admin SDK only if not in testing mode
    if not app.config.get("TESTING"):
        _init_firebase(app)

    # Ensure the instance folder exists
    try:
        os.makedirs(app.instance_path)
    except OSError:
        pass

    # Initialize extensions
    csrf.init_app(app)

    identity = IdentityProvider(app.config.get("FIREBASE_WEB_API_KEY"))

    def on_auth_state_changed(uid, credential):
        """Release the live queries of a user who signed out."""
        if credential is None:
            release_user_screens(current_app, uid)

    identity.on_auth_state_changed(on_auth_state_changed)
    app.extensions[IDENTITY_KEY] = identity

    # Register blueprints
    from . import auth as auth_bp

    app.register_blueprint(auth_bp.bp)

    from . import group as group_bp

    app.register_blueprint(group_bp.bp)

    from . import error_handlers

    app.register_blueprint(error_handlers.error_handlers_bp)

    # the index is the login page, which forwards signed-in users to their groups
    app.add_url_rule("/", endpoint="auth.login", methods=["GET", "POST"])

    @app.route("/health")
    def health_check():
        """Perform a simple health check."""
        return "OK", 200

    @app.before_request
    def load_logged_in_user():
        """If a user_id is in the session, load the user data from Firestore and store it in g."""
        user_id = session.get("user_id")
        g.user = None
        if user_id is None:
            return

        try:
            db = firestore.client()
            user_doc = db.collection(USERS_COLLECTION).document(user_id).get()
            if user_doc.exists:
                g.user = user_doc.to_dict()
                g.user["uid"] = user_id  # Ensure uid is in the user object
                g.user.setdefault("email", session.get("email"))
            else:
                # User ID in session but no user in DB. Sign the session out.
                identity.sign_out()
                current_app.logger.warning(
                    f"User {user_id} in session but not found in Firestore."
                )
        except Exception as e:
            current_app.logger.error(f"Error loading user from session: {e}")
            identity.sign_out()  # Sign out on error to be safe

    return app
