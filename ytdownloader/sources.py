"""Alternate public services used when yt-dlp cannot resolve a video."""
import logging
from urllib.parse import quote

import requests

from .errors import SourceError
from .extractor import get_random_user_agent
from .utils import format_duration, watch_url

logger = logging.getLogger(__name__)

YOUTUBEI_PLAYER_URL = 'https://www.youtube.com/youtubei/v1/player'
YOUTUBEI_CLIENT = {
    'clientName': 'WEB',
    'clientVersion': '2.20231219.01.00',
    'hl': 'en',
    'gl': 'US',
}
NOEMBED_URL = 'https://noembed.com/embed'

CONVERTER_APIS = [
    'https://api.vevioz.com/api/button/{fmt}/{video_id}',
    'https://yt5s.io/api/ajaxSearch',
    'https://loader.to/ajax/download.php',
]

ALTERNATIVE_SITES = [
    ('vevioz', 'https://api.vevioz.com/api/button/{fmt}/{video_id}'),
    ('loader.to', 'https://loader.to/api/button/?url={url}&f={fmt}'),
    ('y2mate', 'https://www.y2mate.com/youtube/{video_id}'),
    ('ssyoutube', 'https://ssyoutube.com/watch?v={video_id}'),
]


def default_thumbnail(video_id):
    return f"https://img.youtube.com/vi/{video_id}/hqdefault.jpg"


def _video_info(video_id, title, thumbnail, seconds, channel, view_count=None):
    return {
        'id': video_id,
        'title': title or 'YouTube Video',
        'thumbnail': thumbnail or default_thumbnail(video_id),
        'duration': format_duration(seconds),
        'channel': channel or 'Unknown',
        'view_count': int(view_count) if view_count else None,
        'formats': [],
    }


def info_from_invidious(video_id, instances, timeout=5):
    """Query Invidious instances in order; the first one that answers wins."""
    for instance in instances:
        try:
            response = requests.get(f"{instance.rstrip('/')}/api/v1/videos/{video_id}",
                                    timeout=timeout)
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Invidious instance {instance} failed: {e}")
            continue
        if not isinstance(data, dict) or not data.get('title'):
            logger.warning(f"Invidious instance {instance} returned no video details")
            continue

        thumbnails = data.get('videoThumbnails') or []
        if len(thumbnails) > 3:
            thumbnail = thumbnails[3].get('url')
        elif thumbnails:
            thumbnail = thumbnails[0].get('url')
        else:
            thumbnail = None
        return _video_info(video_id, data.get('title'), thumbnail,
                           data.get('lengthSeconds'), data.get('author'),
                           data.get('viewCount'))

    raise SourceError('All invidious instances failed')


def info_from_youtubei(video_id, timeout=5):
    """Ask YouTube's internal player endpoint for video details."""
    payload = {
        'videoId': video_id,
        'context': {'client': YOUTUBEI_CLIENT},
    }
    headers = {
        'Content-Type': 'application/json',
        'User-Agent': get_random_user_agent(),
    }
    try:
        response = requests.post(YOUTUBEI_PLAYER_URL, json=payload, headers=headers,
                                 timeout=timeout)
        response.raise_for_status()
        details = response.json()['videoDetails']
    except (requests.RequestException, ValueError, KeyError) as e:
        raise SourceError(f"youtubei player request failed: {e}") from e

    thumbnails = (details.get('thumbnail') or {}).get('thumbnails') or []
    thumbnail = thumbnails[-1].get('url') if thumbnails else None
    return _video_info(video_id, details.get('title'), thumbnail,
                       details.get('lengthSeconds'), details.get('author'),
                       details.get('viewCount'))


def info_from_noembed(video_id, timeout=5):
    """oEmbed metadata from noembed.com. Never fails: returns a placeholder instead."""
    try:
        response = requests.get(NOEMBED_URL,
                                params={'url': watch_url(video_id), 'format': 'json'},
                                timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"noembed lookup failed for {video_id}: {e}")
        data = {}

    return _video_info(video_id, data.get('title'), data.get('thumbnail_url'),
                       None, data.get('author_name'))


def converter_download_url(video_id, fmt='mp4', timeout=10):
    """Ask third-party converter APIs for a download URL; None when all fail."""
    url = watch_url(video_id)
    payload = {'q': url, 'vt': fmt, 'url': url, 'format': fmt}
    headers = {
        'User-Agent': get_random_user_agent(),
        'Content-Type': 'application/x-www-form-urlencoded',
    }
    for template in CONVERTER_APIS:
        api = template.format(fmt=fmt, video_id=video_id)
        try:
            response = requests.post(api, data=payload, headers=headers, timeout=timeout)
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Converter API {api} failed: {e}")
            continue

        if isinstance(data, dict):
            download_url = data.get('d_url') or data.get('downloadUrl')
            if download_url:
                return download_url
        logger.warning(f"Converter API {api} returned no download URL")
    return None


def alternative_links(video_id, fmt='mp4'):
    url = quote(watch_url(video_id), safe='')
    return [
        {'name': name, 'url': template.format(video_id=video_id, fmt=fmt, url=url)}
        for name, template in ALTERNATIVE_SITES
    ]
