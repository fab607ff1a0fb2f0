import os
import subprocess
import uuid
from dataclasses import dataclass

from errors import SizeUnsatisfiable, TranscodeError
from logger import logger
from platforms.base import VIDEO, NormalizedMedia
import config


@dataclass(frozen=True)
class VideoProfile:
    max_dimension: int
    crf: int
    audio_bitrate: str = "128k"
    preset: str = "medium"


# Tried in order; each rung is smaller than the one before
DEFAULT_PROFILES = (
    VideoProfile(max_dimension=1280, crf=28),
    VideoProfile(max_dimension=720, crf=32),
)


def scale_filter(max_dimension):
    """Shrink the longest side to ``max_dimension`` (never enlarge), even sizes."""
    m = max_dimension
    return (
        f"scale='if(gte(iw,ih),trunc(min({m},iw)/2)*2,-2)'"
        f":'if(gte(iw,ih),-2,trunc(min({m},ih)/2)*2)'"
    )


def build_command(source_path, output_path, profile, ffmpeg=None):
    return [
        ffmpeg or config.FFMPEG_BINARY,
        "-hide_banner",
        "-loglevel", "error",
        "-y",
        "-i", source_path,
        "-vf", scale_filter(profile.max_dimension),
        "-c:v", "libx264",
        "-preset", profile.preset,
        "-crf", str(profile.crf),
        "-pix_fmt", "yuv420p",
        "-c:a", "aac",
        "-b:a", profile.audio_bitrate,
        "-movflags", "+faststart",
        output_path,
    ]


class VideoNormalizer:
    """Transcode a video to MP4 under the destination size limit.

    Each profile is one ffmpeg pass; the output size is checked after
    every pass and the first one that fits wins. When the last profile is
    still too large the video is given up on with SizeUnsatisfiable.
    """

    def __init__(self, max_bytes=None, profiles=DEFAULT_PROFILES, timeout=None):
        self.max_bytes = max_bytes or config.BLUESKY_MAX_VIDEO_SIZE
        self.profiles = tuple(profiles)
        self.timeout = timeout or config.VIDEO_TRANSCODE_TIMEOUT
        if not self.profiles:
            raise ValueError("At least one video profile is required")

    def _transcode(self, source_path, output_path, profile):
        cmd = build_command(source_path, output_path, profile)
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise TranscodeError(f"ffmpeg not found: {cmd[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise TranscodeError(f"ffmpeg timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise TranscodeError(
                f"ffmpeg exited with {result.returncode}: {(result.stderr or '')[-800:]}"
            )
        if not os.path.exists(output_path):
            raise TranscodeError("ffmpeg produced no output")
        return os.path.getsize(output_path)

    def normalize(self, buffer, workdir, alt_text=""):
        stem = uuid.uuid4().hex
        source_path = os.path.join(workdir, f"{stem}_source")
        try:
            with open(source_path, "wb") as f:
                f.write(buffer.data)
        except OSError as e:
            raise TranscodeError(f"Could not stage video for ffmpeg: {e}") from e

        size = None
        for i, profile in enumerate(self.profiles):
            output_path = os.path.join(workdir, f"{stem}_{i}.mp4")
            size = self._transcode(source_path, output_path, profile)
            logger.debug(
                f"Transcoded video to {size} bytes "
                f"({profile.max_dimension}px, crf {profile.crf})"
            )
            if size <= self.max_bytes:
                try:
                    with open(output_path, "rb") as f:
                        data = f.read()
                except OSError as e:
                    raise TranscodeError(f"Could not read ffmpeg output: {e}") from e
                return NormalizedMedia(
                    kind=VIDEO,
                    data=data,
                    mime_type="video/mp4",
                    max_bytes=self.max_bytes,
                    alt_text=alt_text,
                )
            os.remove(output_path)

        raise SizeUnsatisfiable(
            f"Video still {size} bytes after {len(self.profiles)} profile(s) "
            f"(limit {self.max_bytes})"
        )
