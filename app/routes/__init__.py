def register_blueprints(app):
    from app.routes.health import health_bp
    from app.routes.calendar import calendar_bp
    from app.routes.geocode import geocode_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(calendar_bp)
    app.register_blueprint(geocode_bp)
