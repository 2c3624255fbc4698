"""
Remote video source: URL validation and audio-only download via yt-dlp.
"""

import logging
import mimetypes
import re
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path

from django.conf import settings

from .exceptions import InvalidSourceURL, VideoFetchError

logger = logging.getLogger(__name__)

_ID = r"([a-zA-Z0-9_-]{11})(?:[?&#/].*)?$"
YOUTUBE_URL_PATTERNS = [
    re.compile(r"^(?:https?://)?(?:www\.|m\.)?youtube\.com/watch\?(?:.*&)?v=" + _ID),
    re.compile(r"^(?:https?://)?youtu\.be/" + _ID),
    re.compile(r"^(?:https?://)?(?:www\.)?youtube\.com/(?:embed|v|shorts|live)/" + _ID),
]

# yt-dlp picks m4a when available; webm/opus otherwise.
AUDIO_FORMAT = "bestaudio[ext=m4a]/bestaudio"
_EXTRA_AUDIO_TYPES = {".m4a": "audio/mp4", ".webm": "audio/webm", ".opus": "audio/ogg"}


def extract_video_id(url: str) -> str | None:
    url = (url or "").strip()
    for pattern in YOUTUBE_URL_PATTERNS:
        m = pattern.match(url)
        if m:
            return m.group(1)
    return None


@dataclass
class AudioStream:
    data: bytes
    mime_type: str


class YouTubeAudioFetcher:
    """Fetches the best audio-only stream of a video fully into memory."""

    def __init__(self, binary: str | None = None, timeout: int | None = None, max_bytes: int | None = None):
        self.binary = binary or settings.YT_DLP_BINARY
        self.timeout = timeout or settings.VIDEO_FETCH_TIMEOUT_SECONDS
        self.max_bytes = max_bytes or settings.VIDEO_MAX_AUDIO_BYTES

    def validate_url(self, url: str) -> bool:
        return extract_video_id(url) is not None

    def fetch_audio_stream(self, url: str) -> AudioStream:
        if not self.validate_url(url):
            raise InvalidSourceURL(url)

        with tempfile.TemporaryDirectory(prefix="yt-audio-") as tmp:
            out_dir = Path(tmp)
            cmd = [
                self.binary,
                "--no-playlist",
                "--quiet",
                "-f", AUDIO_FORMAT,
                "--max-filesize", str(self.max_bytes),
                "-o", str(out_dir / "source.%(ext)s"),
                url.strip(),
            ]
            try:
                subprocess.run(
                    cmd,
                    check=True,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    timeout=self.timeout,
                )
            except subprocess.CalledProcessError as e:
                err = e.stderr.decode("utf-8", errors="ignore") if e.stderr else str(e)
                raise VideoFetchError(f"yt-dlp failed (rc={e.returncode}): {err[:300]}") from e
            except (subprocess.TimeoutExpired, OSError) as e:
                raise VideoFetchError(f"yt-dlp could not fetch audio: {e}") from e

            downloaded = sorted(out_dir.glob("source.*"))
            if not downloaded:
                # --max-filesize makes yt-dlp skip silently rather than fail.
                raise VideoFetchError("No audio stream downloaded (missing or over size limit)")

            path = downloaded[0]
            data = path.read_bytes()

        mime_type = _EXTRA_AUDIO_TYPES.get(path.suffix.lower())
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or "audio/mp4"
        logger.info("Fetched %d bytes of audio (%s) from %s", len(data), mime_type, url)
        return AudioStream(data=data, mime_type=mime_type)
