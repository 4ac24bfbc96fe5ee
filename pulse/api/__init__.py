# -*- coding: utf-8 -*-
"""API blueprints"""


def register_blueprints(app):
    from pulse.api.state import bp as state_bp
    from pulse.api.guests import bp as guests_bp

    app.register_blueprint(state_bp)
    app.register_blueprint(guests_bp)
