from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Live quiz socket server is running.'})


@main.route('/health')
def health():
    from livequiz import REGISTRY_KEY
    registry = current_app.extensions[REGISTRY_KEY]
    return jsonify({'status': 'ok', 'sessions': len(registry)})
