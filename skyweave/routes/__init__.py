def register_blueprints(app):
    from skyweave.routes.health import health_bp
    from skyweave.routes.requests import requests_bp
    from skyweave.routes.admin import admin_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(requests_bp, url_prefix='/api/requests')
    app.register_blueprint(admin_bp, url_prefix='/api/admin')
