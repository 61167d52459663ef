"""Temporal accumulation for the live preview.

Each frame renders a cheap, low-sample image and blends it with the history
of earlier frames:

    new = lerp(current, history, history_alpha)
        = (1 - history_alpha) * current + history_alpha * history

history_alpha is 0.9 while the camera is still, so noise averages out over
a few dozen frames, and 0 on a frame where the camera moved, so the preview
never smears an old viewpoint over the new one. Every frame uses a different
seed so successive frames carry independent noise.

Blending happens on the host in display space (gamma-encoded, [0, 1]), not
in linear radiance. Averaging gamma-encoded frames is slightly darker than
averaging linear ones; the preview accepts that since it is only a
presentation of the frames, not part of the render result.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from tracer.core.progressive import ProgressiveRenderer
    >>> from tracer.scene.presets import create_demo_camera, create_demo_scene
    >>>
    >>> renderer = ProgressiveRenderer(160, 90)
    >>> scene = create_demo_scene()
    >>> camera = create_demo_camera(160 / 90)
    >>> for _ in range(10):
    ...     image = renderer.render_frame(camera, scene)
"""

import numpy as np
import numpy.typing as npt

from tracer.camera.thin_lens import ThinLensCamera
from tracer.core.renderer import MAX_IMAGE_HEIGHT, MAX_IMAGE_WIDTH, render_array
from tracer.scene.world import Scene

# Blend weight of the history while the camera is still
DEFAULT_HISTORY_ALPHA = 0.9

# Defaults for a cheap preview frame
DEFAULT_SAMPLES_PER_FRAME = 1
DEFAULT_PREVIEW_DEPTH = 8


def blend_history(
    current: npt.NDArray[np.float32],
    history: npt.NDArray[np.float32] | None,
    history_alpha: float,
) -> npt.NDArray[np.float32]:
    """Blend a new frame with the accumulated history.

    Args:
        current: The frame just rendered.
        history: The previous accumulation, or None on the first frame.
        history_alpha: Weight of the history in [0, 1].

    Returns:
        lerp(current, history, history_alpha), or a copy of current when
        there is no history.
    """
    if history is None or history.shape != current.shape:
        return current.astype(np.float32, copy=True)
    blended = (1.0 - history_alpha) * current + history_alpha * history
    return blended.astype(np.float32)


class ProgressiveRenderer:
    """A live-preview renderer that blends successive low-sample frames.

    Attributes:
        width: Frame width in pixels.
        height: Frame height in pixels.
    """

    def __init__(
        self,
        width: int,
        height: int,
        history_alpha: float = DEFAULT_HISTORY_ALPHA,
        samples_per_frame: int = DEFAULT_SAMPLES_PER_FRAME,
        max_depth: int = DEFAULT_PREVIEW_DEPTH,
        seed: int = 0,
    ) -> None:
        """Initialize the progressive renderer.

        Args:
            width: Frame width in pixels (max 2048).
            height: Frame height in pixels (max 2048).
            history_alpha: History weight while the camera is still.
            samples_per_frame: Rays per pixel per frame.
            max_depth: Bounces per path.
            seed: Base seed; frame k renders with seed + k.

        Raises:
            ValueError: If dimensions are out of range or history_alpha is
                outside [0, 1].
        """
        if width <= 0 or height <= 0 or width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Frame dimensions ({width}x{height}) must be within "
                f"1..{MAX_IMAGE_WIDTH}x1..{MAX_IMAGE_HEIGHT}"
            )
        if not 0.0 <= history_alpha <= 1.0:
            raise ValueError(f"history_alpha must be in [0, 1], got {history_alpha}")

        self._width = width
        self._height = height
        self._history_alpha = history_alpha
        self._samples_per_frame = samples_per_frame
        self._max_depth = max_depth
        self._seed = seed
        self._frame_index = 0
        self._history: npt.NDArray[np.float32] | None = None

    @property
    def width(self) -> int:
        """Get the frame width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the frame height."""
        return self._height

    @property
    def history_alpha(self) -> float:
        return self._history_alpha

    @property
    def frame_count(self) -> int:
        """Number of frames rendered since construction."""
        return self._frame_index

    def reset(self) -> None:
        """Drop the accumulated history; the next frame starts fresh."""
        self._history = None

    def resize(self, width: int, height: int) -> None:
        """Change the frame size and drop the history.

        Raises:
            ValueError: If dimensions are out of range.
        """
        if width <= 0 or height <= 0 or width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
            raise ValueError(
                f"Frame dimensions ({width}x{height}) must be within "
                f"1..{MAX_IMAGE_WIDTH}x1..{MAX_IMAGE_HEIGHT}"
            )
        self._width = width
        self._height = height
        self.reset()

    def render_frame(
        self,
        camera: ThinLensCamera,
        scene: Scene,
        camera_moved: bool = False,
    ) -> npt.NDArray[np.float32]:
        """Render one frame and fold it into the history.

        Args:
            camera: Camera for this frame.
            scene: Scene to render.
            camera_moved: True if the camera changed since the last frame;
                the history weight is 0 for this frame.

        Returns:
            The blended image as float32 RGB in [0, 1], shape
            (height, width, 3), row 0 at the bottom.
        """
        frame = render_array(
            camera,
            scene,
            self._width,
            self._height,
            self._samples_per_frame,
            self._max_depth,
            seed=self._seed + self._frame_index,
            channel_order="rgba",
        )
        self._frame_index += 1

        current = frame[:, :, :3].astype(np.float32) / 255.0
        alpha = 0.0 if camera_moved else self._history_alpha
        self._history = blend_history(current, self._history, alpha)
        return self._history

    def get_image_numpy(self) -> npt.NDArray[np.float32] | None:
        """Get the current accumulation, or None before the first frame."""
        return self._history

    def get_image_uint8(self) -> npt.NDArray[np.uint8] | None:
        """Get the current accumulation as 8-bit RGB."""
        if self._history is None:
            return None
        return np.clip(self._history * 255.0 + 0.5, 0.0, 255.0).astype(np.uint8)

    def __repr__(self) -> str:
        """Return a string representation of the renderer state."""
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"frames={self.frame_count})"
        )
