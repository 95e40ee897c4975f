import pymysql
pymysql.install_as_MySQLdb()
from flask import Flask
from flask_cors import CORS

from .config import DevConfig
from .extensions import db, migrate, jwt, ma
from .utils.errors import register_error_handlers
from .api import (
    rental_routes,
    order_routes,
    inventory_routes,
)


def create_app(config_class=DevConfig) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_class)

    # Storefront origins (comma separated)
    origins = [o.strip() for o in str(app.config.get("CORS_ORIGINS") or "").split(",") if o.strip()]
    CORS(
        app,
        resources={r"/api/*": {"origins": origins or "*"}},
        supports_credentials=True,
    )

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)

    # Blueprints
    app.register_blueprint(rental_routes.bp, url_prefix="/api/rentals")
    app.register_blueprint(order_routes.bp, url_prefix="/api/orders")
    app.register_blueprint(inventory_routes.bp, url_prefix="/api/inventory")

    register_error_handlers(app)

    @app.get("/api/health")
    def health_check():
        return {"status": "ok", "service": "garment-rental-engine"}

    return app
