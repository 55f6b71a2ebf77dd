import logging

from . import extractor, sources
from .errors import AllSourcesFailed, YTDownloaderError
from .utils import watch_url

logger = logging.getLogger(__name__)


def cache_key(video_id):
    return f"info:{video_id}"


class MetadataService:
    """Cache-aside lookup over an ordered chain of metadata sources.

    ``sources`` is a list of ``(name, fetch)`` pairs where ``fetch`` takes a
    video id and returns a VideoInfo dict or raises a ``YTDownloaderError``.
    """

    def __init__(self, cache, sources):
        self.cache = cache
        self.sources = list(sources)

    def lookup(self, video_id):
        key = cache_key(video_id)
        cached = self.cache.get(key)
        if cached is not None:
            return cached['data'], {'cached': True, 'source': cached['source']}

        errors = []
        for name, fetch in self.sources:
            try:
                info = fetch(video_id)
            except YTDownloaderError as e:
                logger.warning(f"Method {name} failed for {video_id}: {e}")
                errors.append((name, e))
                continue
            if not info:
                errors.append((name, None))
                continue

            self.cache.set(key, {'data': info, 'source': name})
            return info, {'cached': False, 'source': name}

        raise AllSourcesFailed(video_id, errors)


def default_sources(config):
    """Default chain: yt-dlp library, Invidious, youtubei, yt-dlp process."""
    timeout = config['HTTP_TIMEOUT']
    binary = config['YTDLP_BINARY']
    instances = config['INVIDIOUS_INSTANCES']

    return [
        ('ytdlp', lambda video_id: extractor.to_video_info(extractor.extract_info(watch_url(video_id)))),
        ('invidious', lambda video_id: sources.info_from_invidious(video_id, instances, timeout)),
        ('youtubei', lambda video_id: sources.info_from_youtubei(video_id, timeout)),
        ('ytdlp-cli', lambda video_id: extractor.to_video_info(extractor.dump_json(video_id, binary))),
    ]
