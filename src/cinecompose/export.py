"""Export: render a plan to frames, encode, and mux with the source audio.

Frames are piped straight into ffmpeg (libx264, yuv420p) through
imageio-ffmpeg. The source audio is extracted on a background thread
while frames render; it only touches the source file, never the decode
handle the renderer owns. If audio extraction or muxing fails the
silent video is delivered instead.
"""

import logging
import shutil
import subprocess
import tempfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path

import imageio_ffmpeg

from .errors import MediaError
from .formats import FPS, bitrate, output_size
from .models import CompositionPlan
from .renderer import FrameRenderer, RenderState


logger = logging.getLogger(__name__)

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()


@dataclass
class ExportResult:
    state: RenderState
    output: Path | None
    frames: int
    has_audio: bool
    message: str = ""


# ── ffmpeg helpers ───────────────────────────────────────────────


def extract_audio(source: str | Path, output: str | Path, duration: float) -> Path:
    """Re-encode the source's audio track to AAC, trimmed to duration.

    Raises:
        subprocess.CalledProcessError: No audio stream, or ffmpeg failed.
    """
    cmd = [
        _FFMPEG, "-y",
        "-i", str(source),
        "-t", f"{duration:.3f}",
        "-vn", "-c:a", "aac", "-b:a", "192k",
        str(output),
    ]
    subprocess.run(cmd, check=True, capture_output=True)
    return Path(output)


def mux(video: str | Path, audio: str | Path, output: str | Path) -> None:
    """Combine a video-only file and an audio file without re-encoding video."""
    cmd = [
        _FFMPEG, "-y",
        "-i", str(video),
        "-i", str(audio),
        "-map", "0:v:0", "-map", "1:a:0",
        "-c:v", "copy", "-c:a", "copy",
        "-shortest",
        str(output),
    ]
    subprocess.run(cmd, check=True, capture_output=True)


# ── Job ──────────────────────────────────────────────────────────


class ExportJob:
    """One export, Idle -> Preparing -> Rendering -> Muxed -> Done | Failed."""

    def __init__(
        self,
        plan: CompositionPlan,
        source: str | Path,
        output: str | Path,
        aspect_ratio: str = "9:16",
        quality: str = "1080p",
        assets: dict | None = None,
        fps: int = FPS,
        batch_size: int = 3,
        progress_every: int = 10,
        decoder=None,
    ):
        self.plan = plan
        self.source = Path(source)
        self.output = Path(output)
        self.quality = quality
        self.fps = fps
        self.size = output_size(aspect_ratio, quality)
        self.renderer = FrameRenderer(
            plan,
            decoder if decoder is not None else self.source,
            self.size,
            assets=assets,
            fps=fps,
            batch_size=batch_size,
            progress_every=progress_every,
        )

    @property
    def state(self) -> RenderState:
        return self.renderer.state

    def _write_video(self, path: Path, on_progress) -> int:
        writer = imageio_ffmpeg.write_frames(
            str(path),
            self.size,
            fps=self.fps,
            codec="libx264",
            bitrate=bitrate(self.quality),
            quality=None,
            pix_fmt_out="yuv420p",
            macro_block_size=2,
        )
        count = 0
        try:
            try:
                writer.send(None)
                for frame in self.renderer.iter_frames(on_progress):
                    writer.send(frame)
                    count += 1
            finally:
                writer.close()
        except MediaError:
            raise
        except (OSError, RuntimeError) as exc:
            raise MediaError(f"Encoding failed after {count} frames: {exc}") from exc
        return count

    def run(self, on_progress=None) -> ExportResult:
        """Render, encode and mux.

        Raises:
            MediaError: The source could not be loaded or seeked. The job
                state is FAILED.
        """
        self.output.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.TemporaryDirectory(prefix="cinecompose-") as tmp:
            tmp = Path(tmp)
            video_path = tmp / "video.mp4"
            audio_path = tmp / "audio.m4a"

            try:
                self.renderer.prepare()
                with ThreadPoolExecutor(max_workers=1) as pool:
                    audio = pool.submit(extract_audio, self.source, audio_path, self.plan.duration)
                    frames = self._write_video(video_path, on_progress)
                    audio_error = audio.exception()
            except Exception as exc:
                self.renderer.state = RenderState.FAILED
                logger.error("Export failed: %s", exc)
                raise
            finally:
                self.renderer.close()

            has_audio = False
            if audio_error is None:
                try:
                    mux(video_path, audio_path, self.output)
                    has_audio = True
                except subprocess.CalledProcessError as exc:
                    logger.warning("Muxing audio failed, exporting silent video: %s",
                                   exc.stderr.decode(errors="replace")[-500:] if exc.stderr else exc)
            else:
                logger.warning("No audio extracted, exporting silent video: %s", audio_error)
            if not has_audio:
                shutil.copyfile(video_path, self.output)
            self.renderer.state = RenderState.MUXED

        self.renderer.state = RenderState.DONE
        return ExportResult(
            state=self.state,
            output=self.output,
            frames=frames,
            has_audio=has_audio,
            message=f"{frames} frames, {self.size[0]}x{self.size[1]}"
                    + ("" if has_audio else ", no audio"),
        )


def export_plan(
    plan: CompositionPlan,
    source: str | Path,
    output: str | Path,
    aspect_ratio: str = "9:16",
    quality: str = "1080p",
    assets: dict | None = None,
    on_progress=None,
    **kwargs,
) -> ExportResult:
    """Render a plan to a muxed mp4. See ExportJob for keyword options."""
    job = ExportJob(plan, source, output, aspect_ratio, quality, assets, **kwargs)
    return job.run(on_progress)
