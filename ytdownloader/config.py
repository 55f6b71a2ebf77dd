import os
import tempfile


def _env_int(name, default):
    value = os.environ.get(name)
    if value is None or value == '':
        return default
    return int(value)


def _env_list(name, default):
    value = os.environ.get(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(',') if item.strip()]


class Config:
    """Settings loaded into ``app.config``. Environment variables override defaults."""

    SERVICE_NAME = 'YTDownloader API'
    SERVICE_VERSION = '2.0.0'

    # In-memory metadata cache
    CACHE_TTL = _env_int('CACHE_TTL', 5 * 60)
    CACHE_SWEEP_INTERVAL = _env_int('CACHE_SWEEP_INTERVAL', 60 * 60)

    # Temporary downloads
    TEMP_DIR = os.environ.get('TEMP_DIR', os.path.join(tempfile.gettempdir(), 'ytdownloader'))
    TEMP_FILE_MAX_AGE = _env_int('TEMP_FILE_MAX_AGE', 60 * 60)

    # yt-dlp process
    YTDLP_BINARY = os.environ.get('YTDLP_BINARY', 'yt-dlp')
    DOWNLOAD_TIMEOUT = _env_int('DOWNLOAD_TIMEOUT', 15 * 60)
    STREAM_CHUNK_SIZE = _env_int('STREAM_CHUNK_SIZE', 64 * 1024)

    # Alternate services
    HTTP_TIMEOUT = _env_int('HTTP_TIMEOUT', 5)
    CONVERTER_TIMEOUT = _env_int('CONVERTER_TIMEOUT', 10)
    INVIDIOUS_INSTANCES = _env_list('INVIDIOUS_INSTANCES', [
        'https://vid.puffyan.us',
        'https://invidious.fdn.fr',
        'https://yt.artemislena.eu',
    ])

    CORS_ORIGINS = _env_list('CORS_ORIGINS', ['*'])
    START_SWEEPER = True
