from flask import Flask, jsonify
from flask_cors import CORS
from flask_jwt_extended import JWTManager

from splitledger.config import Config
from splitledger.errors import LedgerError
from splitledger.extensions import init_mongo, set_store

jwt = JWTManager()


def create_app(config_class=Config, store=None):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Disable strict slashes to prevent 308 redirects that break CORS preflight
    app.url_map.strict_slashes = False

    # Allow the mobile client and web dev servers to talk to Flask
    CORS(
        app,
        supports_credentials=True,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}}
    )
    jwt.init_app(app)

    # An injected store (tests) skips the Mongo connection entirely
    if store is None:
        from splitledger.store import MongoLedgerStore
        database = init_mongo(app)
        store = MongoLedgerStore(database, max_retries=app.config["STORE_MAX_RETRIES"])
        store.ensure_indexes()
    set_store(store)

    register_error_handlers(app)

    # Register API blueprints
    from splitledger.auth.routes import auth_bp
    from splitledger.users.routes import users_bp
    from splitledger.groups.routes import groups_bp
    from splitledger.expenses.routes import expenses_bp

    app.register_blueprint(auth_bp, url_prefix='/api/v1/auth')
    app.register_blueprint(users_bp, url_prefix='/api/v1/users')
    app.register_blueprint(groups_bp, url_prefix='/api/v1/groups')
    app.register_blueprint(expenses_bp, url_prefix='/api/v1/expenses')

    @app.route("/api/v1/health", methods=["GET"])
    def health():
        return jsonify({"success": True, "message": "OK"})

    return app


def register_error_handlers(app):

    @app.errorhandler(LedgerError)
    def handle_ledger_error(error):
        app.logger.warning("[API] %s %s: %s", error.status_code, error.code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"success": False, "message": "Route not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({"success": False, "message": "Method not allowed"}), 405

    @app.errorhandler(500)
    def handle_server_error(error):
        app.logger.exception("[API] Unhandled error")
        return jsonify({"success": False, "message": "Server error"}), 500

    @jwt.unauthorized_loader
    def handle_missing_token(reason):
        return jsonify({"success": False, "message": "Access token required"}), 401

    @jwt.invalid_token_loader
    def handle_invalid_token(reason):
        return jsonify({"success": False, "message": "Invalid token"}), 401

    @jwt.expired_token_loader
    def handle_expired_token(jwt_header, jwt_payload):
        return jsonify({"success": False, "message": "Token expired"}), 401
