from flask import Blueprint, current_app, jsonify

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the chessroom server!'})

@main.route('/health')
def health():
    return jsonify({'status': 'healthy', 'rooms': len(current_app.extensions['rooms'])})
