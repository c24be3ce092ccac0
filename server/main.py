import os
from flask import Flask
from flask_cors import CORS
from flask_restful import Api
from .routes import init_routes
from .models import StoreManager
from slotstore.constants import DEFAULT_STORE_PATH, DEFAULT_CAPACITY


def create_app(config=None):
    app = Flask(__name__)
    app.config['SLOTSTORE_PATH'] = os.environ.get('SLOTSTORE_PATH', DEFAULT_STORE_PATH)
    app.config['SLOTSTORE_CAPACITY'] = int(os.environ.get('SLOTSTORE_CAPACITY', DEFAULT_CAPACITY))
    app.config['SLOTSTORE_SYNC'] = os.environ.get('SLOTSTORE_SYNC', '') == '1'
    if config:
        app.config.update(config)

    CORS(app) # Enable CORS for frontend communication
    api = Api(app)

    # Initialize Routes
    init_routes(api)

    # Open (or create) the store once; requests share it under a lock
    app.config['STORE_MANAGER'] = StoreManager(app.config['SLOTSTORE_PATH'],
                                               app.config['SLOTSTORE_CAPACITY'],
                                               app.config['SLOTSTORE_SYNC'])

    return app
