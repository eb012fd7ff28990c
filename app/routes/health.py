from flask import Blueprint, current_app, jsonify

health_bp = Blueprint('health', __name__)


@health_bp.route('/health')
def health():
    return jsonify({'status': 'ok'})


@health_bp.route('/ready')
def ready():
    store = current_app.extensions.get('weather_cache_store')
    if store is None:
        return jsonify({'status': 'ready', 'cache': 'disabled'})

    db_ok = store.ping()
    status = 'ready' if db_ok else 'not_ready'
    code = 200 if db_ok else 503
    return jsonify({'status': status, 'cache': 'enabled', 'db': db_ok}), code
