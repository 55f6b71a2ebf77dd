"""Thin wrappers around yt-dlp, used both as a library and as a process.

The library path (``yt_dlp.YoutubeDL``) resolves metadata and direct media
URLs. The process path runs the ``yt-dlp`` binary for JSON dumps, temp-file
downloads with post-processing, and piping media bytes to stdout.
"""
import glob
import json
import logging
import os
import random
import subprocess

import yt_dlp

from .errors import ExtractionError
from .utils import format_duration, format_size, watch_url

logger = logging.getLogger(__name__)

# Rotating user agents to prevent bot detection
USER_AGENTS = [
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
    'Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:120.0) Gecko/20100101 Firefox/120.0',
    'Mozilla/5.0 (iPhone; CPU iPhone OS 16_6 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1'
]

MEDIA_TYPES = {
    'mp4': 'video/mp4',
    'mp3': 'audio/mpeg',
}


def get_random_user_agent():
    return random.choice(USER_AGENTS)


def get_ytdl_options():
    """Get yt-dlp options with anti-bot measures"""
    return {
        'quiet': True,
        'no_warnings': True,
        'noplaylist': True,
        'extract_flat': False,
        'referer': 'https://www.youtube.com/',
        'http_headers': {
            'User-Agent': get_random_user_agent(),
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.5',
            'Sec-Fetch-Mode': 'navigate',
        },
        'cookiefile': None,
        'extractor_args': {
            'youtube': {
                'skip': ['hls', 'dash', 'translated_subs']
            }
        }
    }


def extract_info(url):
    """Run yt-dlp in-process and return its raw info dict."""
    try:
        with yt_dlp.YoutubeDL(get_ytdl_options()) as ydl:
            info = ydl.extract_info(url, download=False)
    except Exception as e:
        raise ExtractionError(f"yt-dlp could not extract {url}: {e}") from e
    if not info:
        raise ExtractionError(f"yt-dlp returned no info for {url}")
    return info


def has_video(fmt):
    return fmt.get('vcodec') not in (None, 'none')


def has_audio(fmt):
    return fmt.get('acodec') not in (None, 'none')


def is_direct(fmt):
    url = fmt.get('url')
    return bool(url) and 'manifest.googlevideo.com' not in url


def _best_thumbnail(info):
    if info.get('thumbnail'):
        return info['thumbnail']
    thumbnails = info.get('thumbnails') or []
    if thumbnails:
        return thumbnails[-1].get('url')
    return None


def to_video_info(info):
    """Normalise a raw yt-dlp info dict into the VideoInfo record."""
    formats = []
    for fmt in info.get('formats') or []:
        if not (has_video(fmt) or has_audio(fmt)) or not is_direct(fmt):
            continue
        height = fmt.get('height')
        formats.append({
            'format_id': fmt.get('format_id'),
            'quality': fmt.get('format_note') or (f"{height}p" if height else 'Unknown'),
            'container': fmt.get('ext'),
            'has_video': has_video(fmt),
            'has_audio': has_audio(fmt),
            'filesize': format_size(fmt.get('filesize') or fmt.get('filesize_approx')),
            'url': fmt.get('url'),
        })

    view_count = info.get('view_count')
    return {
        'id': info.get('id'),
        'title': info.get('title'),
        'thumbnail': _best_thumbnail(info),
        'duration': format_duration(info.get('duration')),
        'channel': info.get('channel') or info.get('uploader') or 'Unknown',
        'view_count': int(view_count) if view_count else None,
        'formats': formats,
    }


def _rank(fmt):
    return (fmt.get('height') or 0, fmt.get('tbr') or 0)


def choose_format(formats, quality='highest'):
    """Pick a format carrying both audio and video.

    ``quality`` is ``highest``, ``lowest`` or a height such as ``720`` or
    ``720p``. An unmatched height falls back to the highest format.
    """
    combined = [fmt for fmt in formats if has_video(fmt) and has_audio(fmt) and is_direct(fmt)]
    if not combined:
        return None

    quality = str(quality or 'highest').lower().rstrip('p')
    if quality == 'lowest':
        return min(combined, key=_rank)
    if quality.isdigit():
        height = int(quality)
        matches = [fmt for fmt in combined if fmt.get('ext') == 'mp4' and fmt.get('height') == height]
        if matches:
            return max(matches, key=_rank)
    return max(combined, key=_rank)


def best_audio(formats):
    """Audio-only format with the highest bitrate, or None."""
    audio = [fmt for fmt in formats if has_audio(fmt) and not has_video(fmt) and is_direct(fmt)]
    if not audio:
        return None
    return max(audio, key=lambda fmt: fmt.get('abr') or fmt.get('tbr') or 0)


def stream_selector(kind, quality=None):
    """yt-dlp ``-f`` expression for a single-file stream to stdout."""
    if kind == 'mp3':
        return 'bestaudio'
    quality = str(quality or 'highest').lower().rstrip('p')
    if quality == 'lowest':
        return 'worst[ext=mp4]/worst'
    if quality.isdigit():
        return f"best[ext=mp4][height<={quality}]/best[height<={quality}]/best"
    return 'best[ext=mp4]/best'


def dump_json(video_id, binary='yt-dlp', timeout=60):
    """Metadata from the yt-dlp process (``--dump-json``)."""
    cmd = [binary, '--skip-download', '--dump-json', watch_url(video_id)]
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ExtractionError(f"yt-dlp process failed: {e}") from e

    if result.returncode != 0:
        logger.debug(result.stderr)
        raise ExtractionError(f"yt-dlp exited with code {result.returncode}")
    try:
        return json.loads(result.stdout)
    except ValueError as e:
        raise ExtractionError(f"yt-dlp returned invalid JSON: {e}") from e


def download_args(kind, quality, output_template, url):
    if kind == 'mp3':
        return ['-x', '--audio-format', 'mp3', '--audio-quality', '0',
                '-o', output_template, url]
    selector = f"best[height<={quality}]" if quality else 'best[ext=mp4]'
    return ['-f', selector, '-o', output_template,
            '--merge-output-format', 'mp4', url]


def remove_partial_files(base_path):
    for path in glob.glob(glob.escape(base_path) + '*'):
        try:
            os.remove(path)
        except OSError as e:
            logger.error(f"Error cleaning up temp file {path}: {e}")


def download_file(url, base_path, kind='mp4', quality=None, binary='yt-dlp', timeout=900):
    """Download ``url`` through the yt-dlp process into ``base_path.<ext>``.

    Returns the path of the finished file. Leftovers of a failed run are removed.
    """
    output_file = f"{base_path}.{kind}"
    cmd = [binary] + download_args(kind, quality, f"{base_path}.%(ext)s", url)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except (OSError, subprocess.TimeoutExpired) as e:
        remove_partial_files(base_path)
        raise ExtractionError(f"yt-dlp process failed: {e}") from e

    if result.returncode != 0:
        logger.info(result.stderr)
        remove_partial_files(base_path)
        raise ExtractionError(f"yt-dlp failed with code {result.returncode}")
    if not os.path.exists(output_file):
        remove_partial_files(base_path)
        raise ExtractionError('Output file not found')
    return output_file


def open_stream(url, selector, binary='yt-dlp', buffer_size=64 * 1024):
    """Start a yt-dlp process writing the selected media to stdout."""
    cmd = [binary, '-f', selector, '--no-part', '--quiet', '-o', '-', url]
    try:
        return subprocess.Popen(cmd, stdout=subprocess.PIPE, stderr=subprocess.DEVNULL,
                                bufsize=buffer_size)
    except OSError as e:
        raise ExtractionError(f"yt-dlp process failed: {e}") from e
