import logging

from flask import Flask
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from .cache import TTLCache
from .config import Config
from .maintenance import start_sweeper
from .metadata import MetadataService, default_sources

__version__ = Config.SERVICE_VERSION

logger = logging.getLogger(__name__)


def create_app(overrides=None, metadata_sources=None):
    """Build the Flask app.

    ``overrides`` update the env-derived config. ``metadata_sources``
    replaces the default metadata fallback chain.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if overrides:
        app.config.update(overrides)
    if app.config.get('TESTING'):
        app.config['START_SWEEPER'] = False

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)
    CORS(app, origins=app.config['CORS_ORIGINS'])
    logging.getLogger('yt_dlp').setLevel(logging.WARNING)

    cache = TTLCache(app.config['CACHE_TTL'])
    if metadata_sources is None:
        metadata_sources = default_sources(app.config)
    state = {
        'cache': cache,
        'metadata': MetadataService(cache, metadata_sources),
        'sweeper': None,
    }
    app.extensions['ytdownloader'] = state

    if app.config['START_SWEEPER']:
        state['sweeper'] = start_sweeper(cache, app.config['TEMP_DIR'],
                                         app.config['TEMP_FILE_MAX_AGE'],
                                         app.config['CACHE_SWEEP_INTERVAL'])
        logger.info(f"Cache enabled with {app.config['CACHE_TTL']} second duration")

    from .routes import bp
    app.register_blueprint(bp)
    return app
