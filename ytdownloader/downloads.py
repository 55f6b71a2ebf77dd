import logging
import os

from flask import Response, redirect

from . import extractor, sources
from .errors import ExtractionError
from .extractor import MEDIA_TYPES
from .utils import attachment_filename, content_disposition, timestamp_ms, watch_url

logger = logging.getLogger(__name__)


def _remove_file(path):
    try:
        if os.path.exists(path):
            os.remove(path)
            logger.info(f"Cleaned up temporary file: {path}")
    except OSError as e:
        logger.error(f"Error cleaning up temp file {path}: {e}")


def file_download(video_id, kind, quality, config):
    """Download to a temp file with the yt-dlp process and send it as an attachment.

    Falls back to a converter service redirect, then to a 500 text response.
    """
    os.makedirs(config['TEMP_DIR'], exist_ok=True)
    base_path = os.path.join(config['TEMP_DIR'], f"{video_id}_{timestamp_ms()}")

    try:
        path = extractor.download_file(watch_url(video_id), base_path, kind, quality,
                                       binary=config['YTDLP_BINARY'],
                                       timeout=config['DOWNLOAD_TIMEOUT'])
    except ExtractionError as e:
        logger.error(f"Download error for {video_id}: {e}")
        download_url = sources.converter_download_url(video_id, kind,
                                                      timeout=config['CONVERTER_TIMEOUT'])
        if download_url:
            return redirect(download_url)
        return Response('Download failed. YouTube may have blocked this video.',
                        status=500, mimetype='text/plain')

    filename = attachment_filename('video' if kind == 'mp4' else 'audio', kind)
    headers = {
        'Content-Disposition': content_disposition(filename),
        'Content-Length': str(os.path.getsize(path)),
    }
    response = Response(iter_file(path, config['STREAM_CHUNK_SIZE']),
                        mimetype=MEDIA_TYPES[kind], headers=headers)
    # HEAD responses close the body without iterating it
    response.call_on_close(lambda: _remove_file(path))
    return response


def iter_file(path, chunk_size):
    """Yield a finished download in chunks and delete it once the body is done."""
    try:
        with open(path, 'rb') as f:
            while True:
                chunk = f.read(chunk_size)
                if not chunk:
                    break
                yield chunk
    finally:
        _remove_file(path)


def stop_process(process):
    """Kill yt-dlp if it is still running, then reap it."""
    if process.poll() is None:
        logger.info('Client disconnected, stopping yt-dlp')
        process.kill()
    process.stdout.close()
    return process.wait()


def iter_process_output(process, chunk_size, first_chunk=b''):
    """Yield the process stdout in chunks; kill the process if the client goes away."""
    completed = False
    try:
        if first_chunk:
            yield first_chunk
        while True:
            chunk = process.stdout.read(chunk_size)
            if not chunk:
                break
            yield chunk
        completed = True
    finally:
        if not completed:
            stop_process(process)

    process.stdout.close()
    returncode = process.wait()
    if returncode:
        logger.error(f"Stream error: yt-dlp exited with code {returncode}")


def pipe_response(url, selector, kind, filename, config):
    """Stream media bytes from a yt-dlp process into the response body."""
    chunk_size = config['STREAM_CHUNK_SIZE']
    process = extractor.open_stream(url, selector, binary=config['YTDLP_BINARY'],
                                    buffer_size=chunk_size)

    first_chunk = process.stdout.read(chunk_size)
    if not first_chunk:
        process.stdout.close()
        returncode = process.wait()
        raise ExtractionError(f"yt-dlp produced no output (exit code {returncode})")

    headers = {'Content-Disposition': content_disposition(filename)}
    response = Response(iter_process_output(process, chunk_size, first_chunk),
                        mimetype=MEDIA_TYPES[kind], headers=headers)
    response.call_on_close(lambda: stop_process(process))
    return response


def stream_download(url, kind, quality, config):
    """Redirect to a direct audio URL or pipe the selected format.

    Raises ``ExtractionError`` when nothing could be resolved.
    """
    info = extractor.extract_info(url)
    filename = attachment_filename('video', kind, info.get('id'))
    formats = info.get('formats') or []

    if kind == 'mp3':
        audio = extractor.best_audio(formats)
        if audio:
            return redirect(audio['url'])
        return pipe_response(url, extractor.stream_selector('mp3'), kind, filename, config)

    return pipe_response(url, extractor.stream_selector('mp4', quality), kind, filename, config)


def stream_url(url):
    """URL of the highest combined audio+video format, or None."""
    info = extractor.extract_info(url)
    fmt = extractor.choose_format(info.get('formats') or [], 'highest')
    return fmt['url'] if fmt else None


def direct_url(video_id, kind, quality, config):
    """Direct media URL from yt-dlp, else from a converter service, else None."""
    try:
        info = extractor.extract_info(watch_url(video_id))
        formats = info.get('formats') or []
        if kind == 'mp3':
            fmt = extractor.best_audio(formats)
        else:
            fmt = extractor.choose_format(formats, quality or 'highest')
        if fmt:
            return fmt['url']
        logger.warning(f"No direct {kind} format for {video_id}")
    except ExtractionError as e:
        logger.warning(f"Direct URL extraction failed for {video_id}: {e}")

    return sources.converter_download_url(video_id, kind, timeout=config['CONVERTER_TIMEOUT'])
