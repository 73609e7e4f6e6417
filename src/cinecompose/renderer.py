"""Frame-by-frame renderer for a composition plan.

The renderer owns one decode handle on the source video for the whole job
and seeks it strictly in frame order. Overlay assets are decoded up front
in small concurrent batches; after that nothing else is loaded.

Per frame, at t = index / fps:
  1. Read the source frame at t.
  2. Apply camera effects and colour grade to the centre-cropped base.
  3. Draw the active B-roll item.
  4. Draw transition, flash, vignette and letterbox overlays.
  5. Draw the active caption, then the segment keyword label.
"""

import enum
import logging
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import numpy as np

from .caption_render import draw_caption, draw_keyword
from .common import load_clip, load_image, parse_hex_color
from .effects import apply_color_grade, apply_frame_overlays, camera_transform, draw_base_frame, grade_chain
from .errors import AssetError, MediaError
from .formats import FPS, total_frames
from .models import CompositionPlan
from .overlays import active_overlay, draw_broll
from .presets import THEMES


logger = logging.getLogger(__name__)


class RenderState(enum.Enum):
    IDLE = "idle"
    PREPARING = "preparing"
    RENDERING = "rendering"
    MUXED = "muxed"
    DONE = "done"
    FAILED = "failed"


class FrameRenderer:
    """Render a CompositionPlan over a source video, one frame at a time.

    Args:
        plan: The plan to render.
        source: Path to the source video, or an already-open clip-like
            object with `duration` and `get_frame(t)`.
        size: Output (width, height).
        assets: asset_ref -> image path for overlay items.
        fps: Output frame rate.
        batch_size: Overlay images decoded concurrently per batch.
        progress_every: Progress callback interval in frames.
    """

    def __init__(
        self,
        plan: CompositionPlan,
        source,
        size: tuple[int, int],
        assets: dict | None = None,
        fps: int = FPS,
        batch_size: int = 3,
        progress_every: int = 10,
    ):
        self.plan = plan
        self.source = source
        self.width, self.height = size
        self.assets = dict(assets or {})
        self.fps = fps
        self.batch_size = max(1, batch_size)
        self.progress_every = max(1, progress_every)
        self.state = RenderState.IDLE
        self.images: dict[str, np.ndarray] = {}
        self.clip = None
        self.highlight = parse_hex_color(THEMES.get(plan.theme, THEMES["volt"]).highlight)

    @property
    def frame_count(self) -> int:
        return total_frames(self.plan.duration, self.fps)

    # ── Preparing ────────────────────────────────────────────────

    def prepare(self) -> None:
        """Open the source and decode every overlay image.

        Raises:
            MediaError: The source video cannot be loaded.
        """
        self.state = RenderState.PREPARING
        try:
            if isinstance(self.source, (str, Path)):
                self.clip = load_clip(self.source, self.fps)
            else:
                self.clip = self.source
            self._preload_assets()
        except Exception:
            self.state = RenderState.FAILED
            raise

    def _preload_assets(self) -> None:
        refs = []
        for item in self.plan.overlays:
            if item.asset_ref in refs:
                continue
            if item.asset_ref not in self.assets:
                logger.warning("No image for overlay %s (asset %s); skipped", item.id, item.asset_ref)
                continue
            refs.append(item.asset_ref)

        with ThreadPoolExecutor(max_workers=self.batch_size) as pool:
            for i in range(0, len(refs), self.batch_size):
                batch = refs[i:i + self.batch_size]
                futures = {ref: pool.submit(load_image, self.assets[ref]) for ref in batch}
                for ref, future in futures.items():
                    try:
                        self.images[ref] = future.result()
                    except AssetError as exc:
                        logger.warning("Overlay asset %s skipped: %s", ref, exc)
        logger.info("Preloaded %d/%d overlay images", len(self.images), len(refs))

    # ── Rendering ────────────────────────────────────────────────

    def source_frame(self, t: float) -> np.ndarray:
        """Decode the source at t. Times past the stream end clamp to its last frame.

        Raises:
            MediaError: The decoder fails.
        """
        last = max(0.0, float(self.clip.duration) - 1.0 / self.fps)
        try:
            return self.clip.get_frame(min(t, last))
        except MediaError:
            raise
        except Exception as exc:
            raise MediaError(f"Seek to {t:.3f}s failed: {exc}") from exc

    def render_frame(self, index: int) -> np.ndarray:
        """Composite frame `index` of the output. Returns (h, w, 3) uint8."""
        if self.clip is None:
            raise RuntimeError("prepare() must be called before rendering")
        plan = self.plan
        t = index / self.fps
        w, h = self.width, self.height

        src = self.source_frame(t)
        scale, tx, ty = camera_transform(plan.effects, t, w, h)
        frame = draw_base_frame(src, w, h, scale, tx, ty)
        frame = apply_color_grade(frame, grade_chain(plan.effects, t))

        item = active_overlay(plan.overlays, t)
        if item is not None and item.asset_ref in self.images:
            draw_broll(frame, item, self.images[item.asset_ref], t)

        frame = apply_frame_overlays(frame, plan.effects, t)
        frame = draw_caption(frame, plan.captions, t, self.highlight)
        return draw_keyword(frame, plan.segments, plan.captions, t, self.highlight, plan.theme)

    def iter_frames(self, on_progress=None):
        """Yield every output frame in order.

        on_progress(fraction) is called every `progress_every` frames and
        once more with 1.0 at the end.

        Raises:
            MediaError: A seek failed. Any error while rendering leaves
                the state FAILED.
        """
        total = self.frame_count
        self.state = RenderState.RENDERING
        try:
            for index in range(total):
                yield self.render_frame(index)
                if on_progress is not None and (index + 1) % self.progress_every == 0:
                    on_progress((index + 1) / total)
        except Exception:
            self.state = RenderState.FAILED
            raise
        if on_progress is not None:
            on_progress(1.0)

    def close(self) -> None:
        # Only close handles we opened ourselves.
        if self.clip is not None and self.clip is not self.source:
            self.clip.close()
        self.clip = None
