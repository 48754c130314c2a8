from flask import Flask


def create_app(config_path=None, store_root=None):
    """Flask application factory."""
    app = Flask(__name__)

    from edgefit.main.edge_solver.config import load_config
    from edgefit.main.workspace import Workspace

    if config_path is not None:
        extraction_config, matching_config = load_config(config_path)
    else:
        extraction_config, matching_config = None, None

    app.extensions['edgefit'] = Workspace(extraction_config, matching_config, store_root)

    # Register blueprints
    from edgefit.main import main_bp
    app.register_blueprint(main_bp)

    return app
