class YTDownloaderError(Exception):
    """Base class for errors raised by the service."""


class ExtractionError(YTDownloaderError):
    """yt-dlp could not resolve the video (library or process)."""


class SourceError(YTDownloaderError):
    """An alternate metadata or converter service failed."""


class AllSourcesFailed(YTDownloaderError):
    """Every source in a fallback chain failed."""

    def __init__(self, video_id, errors):
        self.video_id = video_id
        self.errors = errors
        names = ', '.join(name for name, _ in errors) or 'none'
        super().__init__(f"Could not fetch video info for {video_id} (tried: {names})")
