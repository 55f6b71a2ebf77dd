import logging
from datetime import datetime, timezone

from flask import Blueprint, Response, current_app, jsonify, redirect, request

from . import downloads, sources
from .errors import AllSourcesFailed, ExtractionError
from .utils import extract_video_id, is_valid_youtube_url, watch_url

logger = logging.getLogger(__name__)

bp = Blueprint('ytdownloader', __name__)

MEDIA_KINDS = ('mp4', 'mp3')


def _metadata():
    return current_app.extensions['ytdownloader']['metadata']


def _requested_video_id():
    """(raw value, parsed id) from ``videoId`` or ``url`` query parameters."""
    raw = (request.args.get('videoId') or request.args.get('url') or '').strip()
    return raw, extract_video_id(raw)


def _quality_height(value):
    if not value:
        return None
    value = value.strip().lower().rstrip('p')
    return value if value.isdigit() else None


def _error(error, status, **extra):
    body = {'success': False, 'error': error}
    body.update(extra)
    return jsonify(body), status


@bp.route('/')
def home():
    return jsonify({
        'status': 'running',
        'service': current_app.config['SERVICE_NAME'],
        'version': current_app.config['SERVICE_VERSION'],
    })


@bp.route('/health')
@bp.route('/ping')
def health_check():
    return jsonify({
        'status': 'OK',
        'service': current_app.config['SERVICE_NAME'],
        'version': current_app.config['SERVICE_VERSION'],
        'timestamp': datetime.now(timezone.utc).isoformat(),
    })


@bp.route('/info')
def video_info():
    """Bare metadata record, resolved through the fallback chain."""
    raw, video_id = _requested_video_id()
    if not raw:
        return jsonify({'error': 'Missing videoId'}), 400
    if not video_id:
        return jsonify({'error': 'Invalid videoId'}), 400

    try:
        info, _ = _metadata().lookup(video_id)
    except AllSourcesFailed as e:
        logger.error(f"Info error: {e}")
        return jsonify({'error': 'Failed to get video info'}), 500
    return jsonify(info)


@bp.route('/api/info')
def api_video_info():
    """Metadata wrapped in a success envelope, with a noembed last resort."""
    url = (request.args.get('url') or '').strip()
    if not url:
        return _error('URL is required', 400)
    if not is_valid_youtube_url(url):
        return _error('Invalid YouTube URL', 400)

    video_id = extract_video_id(url)
    try:
        info, meta = _metadata().lookup(video_id)
    except AllSourcesFailed as e:
        logger.error(f"Info error: {e}")
        fallback_info = sources.info_from_noembed(video_id, timeout=current_app.config['HTTP_TIMEOUT'])
        return jsonify({'success': True, 'data': fallback_info, 'fallback': True})

    return jsonify({'success': True, 'data': info, 'cached': meta['cached']})


@bp.route('/download')
def download():
    raw, video_id = _requested_video_id()
    if not raw:
        return Response('Missing videoId', status=400, mimetype='text/plain')
    if not video_id:
        return Response('Invalid videoId', status=400, mimetype='text/plain')

    kind = request.args.get('type', 'mp4').lower()
    if kind not in MEDIA_KINDS:
        return Response('Invalid type. Use mp4 or mp3', status=400, mimetype='text/plain')

    quality = _quality_height(request.args.get('quality'))
    return downloads.file_download(video_id, kind, quality, current_app.config)


@bp.route('/api/download')
def api_download():
    url = (request.args.get('url') or '').strip()
    if not url:
        return _error('URL is required', 400)
    if not is_valid_youtube_url(url):
        return _error('Invalid YouTube URL', 400)

    kind = request.args.get('format', 'mp4').lower()
    if kind not in MEDIA_KINDS:
        return _error('Invalid format. Use mp4 or mp3', 400)
    quality = request.args.get('quality', 'highest')

    try:
        return downloads.stream_download(url, kind, quality, current_app.config)
    except ExtractionError as e:
        logger.error(f"Download error: {e}")
        return _error('Download failed', 500, message=str(e))


@bp.route('/direct')
def direct():
    raw, video_id = _requested_video_id()
    if not raw:
        return _error('Missing videoId', 400)
    if not video_id:
        return _error('Invalid videoId', 400)

    kind = request.args.get('type', 'mp4').lower()
    if kind not in MEDIA_KINDS:
        return _error('Invalid type. Use mp4 or mp3', 400)

    media_url = downloads.direct_url(video_id, kind, request.args.get('quality'),
                                     current_app.config)
    if not media_url:
        return _error('All download methods failed', 500)
    return redirect(media_url)


@bp.route('/stream')
@bp.route('/api/stream')
def stream():
    raw, video_id = _requested_video_id()
    if not raw:
        return _error('URL is required', 400)
    if not video_id or ('videoId' not in request.args and not is_valid_youtube_url(raw)):
        return _error('Invalid YouTube URL', 400)

    try:
        media_url = downloads.stream_url(watch_url(video_id))
    except ExtractionError as e:
        logger.error(f"Stream error: {e}")
        return _error('Stream failed', 500)

    if not media_url:
        return _error('Could not get stream URL', 500)
    return redirect(media_url)


@bp.route('/api/download/alt')
def alt_download():
    url = (request.args.get('url') or '').strip()
    if not url:
        return _error('URL is required', 400)
    video_id = extract_video_id(url)
    if not video_id:
        return _error('Invalid YouTube URL', 400)

    kind = request.args.get('format', 'mp4').lower()
    download_url = sources.converter_download_url(video_id, kind,
                                                  timeout=current_app.config['CONVERTER_TIMEOUT'])
    if not download_url:
        return _error('All download methods failed', 500)
    return redirect(download_url)


@bp.route('/alternatives')
def alternatives():
    raw, video_id = _requested_video_id()
    if not raw:
        return _error('Missing videoId', 400)
    if not video_id:
        return _error('Invalid videoId', 400)

    kind = request.args.get('format', 'mp4').lower()
    return jsonify({
        'success': True,
        'video_id': video_id,
        'alternatives': sources.alternative_links(video_id, kind),
    })
