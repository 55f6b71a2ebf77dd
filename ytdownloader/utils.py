import re
import time

VIDEO_ID_PATTERNS = [
    re.compile(r'(?:v=|youtu\.be/|shorts/|embed/|/v/)([A-Za-z0-9_-]{11})'),
    re.compile(r'^([A-Za-z0-9_-]{11})$'),
]

YOUTUBE_URL_REGEX = re.compile(
    r'(https?://)?(www\.|m\.|music\.)?(youtube|youtu|youtube-nocookie)\.(com|be)/'
    r'(watch\?v=|embed/|v/|shorts/|.+\?v=)?([A-Za-z0-9_-]{11})')


def extract_video_id(value):
    """Extract YouTube video ID from various URL formats or a bare ID"""
    if not value:
        return None
    value = value.strip()
    for pattern in VIDEO_ID_PATTERNS:
        match = pattern.search(value)
        if match:
            return match.group(1)
    return None


def is_valid_youtube_url(url):
    """Validate YouTube URL"""
    if not url:
        return False
    url = url.strip()
    return YOUTUBE_URL_REGEX.match(url) is not None and extract_video_id(url) is not None


def watch_url(video_id):
    return f"https://www.youtube.com/watch?v={video_id}"


def format_duration(seconds):
    """Format seconds as M:SS, or H:MM:SS from one hour up"""
    try:
        seconds = int(seconds)
    except (TypeError, ValueError):
        return 'Unknown'
    if seconds <= 0:
        return 'Unknown'

    hours, remainder = divmod(seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_size(bytes_size):
    """Convert bytes to human readable format"""
    if not bytes_size:
        return 'Unknown'
    units = ['B', 'KB', 'MB', 'GB']
    size = float(bytes_size)
    unit = 0
    while size >= 1024 and unit < len(units) - 1:
        size /= 1024
        unit += 1
    return f"{size:.1f} {units[unit]}"


def timestamp_ms():
    return int(time.time() * 1000)


def attachment_filename(prefix, ext, video_id=None):
    if video_id:
        return f"{prefix}_{video_id}_{timestamp_ms()}.{ext}"
    return f"{prefix}_{timestamp_ms()}.{ext}"


def content_disposition(filename):
    return f'attachment; filename="{filename}"'
