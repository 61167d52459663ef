"""Interactive fly-through preview using Taichi GGUI.

The preview renders one sample per pixel per frame at a fraction of the
window resolution and blends frames with ProgressiveRenderer, so the image
sharpens while the camera is still and resets as soon as it moves.

Controls:
    - W/S: move forward/backward
    - A/D: move left/right
    - Q/E: move down/up
    - Left mouse drag: look around (pitch limited to +/-85 degrees)
    - Escape: close the window

FlyCamera holds the camera state and its per-frame update is plain Python,
so it can be tested without a window.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.gpu)
    >>> from tracer.preview.interactive import InteractivePreview
    >>> from tracer.scene.presets import create_demo_scene
    >>>
    >>> preview = InteractivePreview(1280, 720)
    >>> preview.run(create_demo_scene())
"""

from __future__ import annotations

import math
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING

import numpy as np
import taichi as ti

from tracer.camera.thin_lens import ThinLensCamera

if TYPE_CHECKING:
    import numpy.typing as npt

    from tracer.core.progressive import ProgressiveRenderer
    from tracer.scene.world import Scene

# =============================================================================
# Fly Camera
# =============================================================================

# Degrees per pixel of mouse motion per second, for (yaw, pitch)
LOOK_SENSITIVITY = (-10.0, 10.0)

# World units per second
MOVE_SPEED = 1.0

PITCH_LIMIT = 85.0

# Preview camera lens
PREVIEW_VFOV = 100.0
PREVIEW_APERTURE = 0.025
PREVIEW_FOCUS_DIST = 1.0

# Fraction of the window resolution that is actually traced
DEFAULT_RESOLUTION_SCALE = 0.325


def _rotation_matrix(yaw_degrees: float, pitch_degrees: float) -> npt.NDArray[np.float64]:
    """Rotation that applies pitch about X, then yaw about Y."""
    yaw = math.radians(yaw_degrees)
    pitch = math.radians(pitch_degrees)
    cy, sy = math.cos(yaw), math.sin(yaw)
    cp, sp = math.cos(pitch), math.sin(pitch)
    rot_y = np.array([[cy, 0.0, sy], [0.0, 1.0, 0.0], [-sy, 0.0, cy]])
    rot_x = np.array([[1.0, 0.0, 0.0], [0.0, cp, -sp], [0.0, sp, cp]])
    return rot_y @ rot_x


@dataclass
class FlyCamera:
    """First-person camera state driven by mouse look and WASD/QE movement.

    At yaw = 0 and pitch = 0 the camera looks down +Z. Local movement axes
    are +Z forward, +X left and +Y up, rotated into world space by the
    current orientation.

    Attributes:
        position: Eye position in world space.
        yaw: Rotation about the world Y axis, in degrees.
        pitch: Rotation about the camera X axis, in degrees. Positive looks
            down. Always within [-PITCH_LIMIT, PITCH_LIMIT].
    """

    position: npt.NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    yaw: float = 0.0
    pitch: float = 0.0

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=np.float64).copy()
        self.pitch = float(np.clip(self.pitch, -PITCH_LIMIT, PITCH_LIMIT))

    @property
    def rotation(self) -> npt.NDArray[np.float64]:
        return _rotation_matrix(self.yaw, self.pitch)

    @property
    def forward(self) -> npt.NDArray[np.float64]:
        """Unit view direction in world space."""
        return self.rotation @ np.array([0.0, 0.0, 1.0])

    def update(
        self,
        mouse_delta: tuple[float, float],
        movement: tuple[float, float, float],
        dt: float,
    ) -> bool:
        """Advance the camera by one frame.

        Args:
            mouse_delta: Mouse motion this frame in pixels (dx, dy), with dy
                positive when the mouse moves down the screen.
            movement: Local movement input (x, y, z), each clamped to [-1, 1].
            dt: Frame time in seconds.

        Returns:
            True if the camera moved or turned, False otherwise.
        """
        yaw_delta = LOOK_SENSITIVITY[0] * mouse_delta[0] * dt
        pitch_delta = LOOK_SENSITIVITY[1] * mouse_delta[1] * dt
        self.yaw += yaw_delta
        self.pitch = float(np.clip(self.pitch + pitch_delta, -PITCH_LIMIT, PITCH_LIMIT))

        move = np.clip(np.asarray(movement, dtype=np.float64), -1.0, 1.0) * MOVE_SPEED * dt
        self.position = self.position + self.rotation @ move

        turned = yaw_delta * yaw_delta + pitch_delta * pitch_delta > 0.0
        moved = float(np.dot(move, move)) > 0.0
        return turned or moved

    def to_camera(self, aspect_ratio: float) -> ThinLensCamera:
        """Build the ThinLensCamera for the current state."""
        eye = self.position
        target = eye + self.forward
        return ThinLensCamera(
            lookfrom=(float(eye[0]), float(eye[1]), float(eye[2])),
            lookat=(float(target[0]), float(target[1]), float(target[2])),
            vup=(0.0, 1.0, 0.0),
            vfov=PREVIEW_VFOV,
            aspect_ratio=aspect_ratio,
            aperture=PREVIEW_APERTURE,
            focus_dist=PREVIEW_FOCUS_DIST,
        )


def movement_from_keys(pressed: set[str]) -> tuple[float, float, float]:
    """Map held keys to a local movement vector.

    Args:
        pressed: Lower-case names of the keys currently held.

    Returns:
        (x, y, z) with each component in {-1, 0, 1}.
    """
    x = (1.0 if "a" in pressed else 0.0) - (1.0 if "d" in pressed else 0.0)
    y = (1.0 if "e" in pressed else 0.0) - (1.0 if "q" in pressed else 0.0)
    z = (1.0 if "w" in pressed else 0.0) - (1.0 if "s" in pressed else 0.0)
    return (x, y, z)


def scaled_resolution(width: int, height: int, scale: float) -> tuple[int, int]:
    """Traced resolution for a window size, at least 1x1."""
    return (max(1, round(width * scale)), max(1, round(height * scale)))


# =============================================================================
# Preview Window
# =============================================================================


class InteractivePreview:
    """Fly-through preview window using Taichi GGUI.

    Attributes:
        width: Window width in pixels.
        height: Window height in pixels.
        render_width: Traced image width.
        render_height: Traced image height.
        camera: The fly camera state.
    """

    def __init__(
        self,
        width: int = 1280,
        height: int = 720,
        *,
        resolution_scale: float = DEFAULT_RESOLUTION_SCALE,
        max_depth: int = 50,
        camera: FlyCamera | None = None,
        title: str = "Tracer - Interactive Preview",
    ) -> None:
        """Initialize the preview.

        The window itself is created lazily by run().

        Args:
            width: Window width in pixels.
            height: Window height in pixels.
            resolution_scale: Fraction of the window resolution to trace.
            max_depth: Bounces per path.
            camera: Initial camera state (defaults to the origin, looking +Z).
            title: Window title.
        """
        self.width = width
        self.height = height
        self.render_width, self.render_height = scaled_resolution(width, height, resolution_scale)
        self.camera = camera if camera is not None else FlyCamera()
        self._max_depth = max_depth
        self._title = title

        self._window: ti.ui.Window | None = None
        self._canvas: ti.ui.Canvas | None = None
        self._renderer: ProgressiveRenderer | None = None
        self._last_cursor: tuple[float, float] | None = None

        # Indexed (x, y) with y = 0 at the bottom, like the render buffer rows
        self.display_image: ti.MatrixField = ti.Vector.field(
            3, dtype=ti.f32, shape=(self.render_width, self.render_height)
        )

    def _initialize_window(self) -> None:
        if self._window is not None:
            return
        self._window = ti.ui.Window(name=self._title, res=(self.width, self.height), vsync=True)
        self._canvas = self._window.get_canvas()

    def _ensure_renderer(self) -> ProgressiveRenderer:
        from tracer.core.progressive import ProgressiveRenderer

        if self._renderer is None:
            self._renderer = ProgressiveRenderer(
                self.render_width, self.render_height, max_depth=self._max_depth
            )
        return self._renderer

    def update_image(self, image: npt.NDArray[np.float32]) -> None:
        """Upload a (render_height, render_width, 3) image, row 0 at the bottom.

        Raises:
            ValueError: If the image shape does not match the traced size.
        """
        expected_shape = (self.render_height, self.render_width, 3)
        if image.shape != expected_shape:
            raise ValueError(f"Image shape {image.shape} doesn't match expected {expected_shape}")
        self.display_image.from_numpy(
            np.ascontiguousarray(np.transpose(image, (1, 0, 2)).astype(np.float32))
        )

    def _poll_input(self) -> tuple[tuple[float, float], tuple[float, float, float]]:
        """Read mouse motion and held keys from the window."""
        window = self._window
        assert window is not None

        for event in window.get_events(ti.ui.PRESS):
            if event.key == ti.ui.ESCAPE:
                window.running = False
            elif event.key == "p":
                self.export_png()

        cursor = window.get_cursor_pos()
        mouse_delta = (0.0, 0.0)
        if window.is_pressed(ti.ui.LMB) and self._last_cursor is not None:
            # Cursor coordinates are normalized with y up; convert to pixels, y down
            mouse_delta = (
                (cursor[0] - self._last_cursor[0]) * self.width,
                -(cursor[1] - self._last_cursor[1]) * self.height,
            )
        self._last_cursor = (cursor[0], cursor[1])

        pressed = {key for key in ("w", "a", "s", "d", "q", "e") if window.is_pressed(key)}
        return mouse_delta, movement_from_keys(pressed)

    def run(self, scene: Scene) -> None:
        """Run the preview loop until the window is closed.

        Args:
            scene: Scene to fly through.
        """
        self._initialize_window()
        renderer = self._ensure_renderer()
        window = self._window
        canvas = self._canvas
        assert window is not None and canvas is not None

        aspect_ratio = self.width / self.height
        last_frame = time.perf_counter()

        while window.running:
            now = time.perf_counter()
            dt = now - last_frame
            last_frame = now

            mouse_delta, movement = self._poll_input()
            camera_moved = self.camera.update(mouse_delta, movement, dt)

            image = renderer.render_frame(
                self.camera.to_camera(aspect_ratio), scene, camera_moved=camera_moved
            )
            self.update_image(image)

            canvas.set_image(self.display_image)
            window.show()

    def export_png(self) -> str | None:
        """Save the current accumulation to a timestamped PNG.

        Returns:
            The file name written, or None if nothing has been rendered.
        """
        from tracer.preview.export import save_png_from_array

        if self._renderer is None or self._renderer.get_image_numpy() is None:
            return None

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filename = f"preview_{timestamp}.png"
        save_png_from_array(self._renderer.get_image_numpy(), filename)
        print(f"Exported: {filename} ({self._renderer.frame_count} frames)")
        return filename

    def close(self) -> None:
        if self._window is not None:
            self._window.running = False

    @staticmethod
    def is_display_available() -> bool:
        """Check if a display is available for GUI rendering.

        Returns:
            True if a display is available, False for headless environments.
        """
        display = os.environ.get("DISPLAY")
        wayland = os.environ.get("WAYLAND_DISPLAY")

        if os.name == "nt":
            return True

        # On macOS, display is available unless in SSH without forwarding
        if os.uname().sysname == "Darwin":
            return not (os.environ.get("SSH_CONNECTION") and not display)

        return bool(display or wayland)
