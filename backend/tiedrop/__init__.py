from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:3000",
    "http://127.0.0.1:3000",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)

from tiedrop.broadcast import Broadcaster  # noqa: E402

broadcaster = Broadcaster()


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from tiedrop.socketio_events import CHAT_NAMESPACE, register_socketio_handlers

    def _emit_to(event, payload, sid):
        socketio.emit(event, payload, to=sid, namespace=CHAT_NAMESPACE)

    broadcaster.init_app(flask_app, _emit_to)
    register_socketio_handlers()

    from tiedrop.storage import EXTENSION_KEY, build_storage
    flask_app.extensions[EXTENSION_KEY] = build_storage(flask_app)

    from tiedrop.auth import auth
    flask_app.register_blueprint(auth)

    from tiedrop.api.scores import scores
    flask_app.register_blueprint(scores, url_prefix='/api')

    from tiedrop.errors import IntegrityViolation, StorageUnavailable

    @flask_app.errorhandler(StorageUnavailable)
    def handle_storage_unavailable(exc):
        flask_app.logger.error(f"[storage-unavailable] {exc}")
        return jsonify({'success': False, 'error': 'Storage unavailable'}), 503

    @flask_app.errorhandler(IntegrityViolation)
    def handle_integrity_violation(exc):
        flask_app.logger.error(f"[integrity-violation] {exc}")
        return jsonify({'success': False, 'error': 'Internal data error'}), 500

    from tiedrop.storage import get_storage

    @login_manager.user_loader
    def load_user(user_id):
        return get_storage().get_identity(user_id)

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'error': 'Not authenticated'}), 401

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the leaderboard tables."""
        import tiedrop.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
