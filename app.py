"""
neonspin - Desktop host
PyQt6 window that plays the part of the mobile scene: a perspective-projected
wireframe and star field drawn in a pyqtgraph canvas, a frame QTimer driving
SceneCoordinator.tick(), and mouse drags fed in as pan gestures.
"""

import time
from typing import Callable, Dict, Optional

import numpy as np
import pyqtgraph as pg
from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtWidgets import QLabel, QMainWindow, QVBoxLayout, QWidget

from audio_loop import AmbientLoop
from config import Config
from config_persistence import save_config
from gesture_translator import GesturePhase, GestureSample, pointer_release_samples
from logging_utils import log_event
from scene_coordinator import SceneCoordinator
from shapes import NeonColor, ShapeType, color_from_name, next_color, next_shape, shape_from_name
from star_field import StarFieldLayer, build_star_field

VIEW_EXTENT = 0.75      # Half-width of the visible projection plane
NEAR_PLANE = 0.2
VELOCITY_SMOOTHING = 0.5


class QtTimerHandle:
    def __init__(self, timer: QTimer, owner: set):
        self._timer = timer
        self._owner = owner

    def cancel(self) -> None:
        self._timer.stop()
        self._owner.discard(self._timer)


class QtTimerHost:
    """Haptic timers as single-shot QTimers, so pulses fire on the UI thread."""

    def __init__(self):
        self._timers: set = set()

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> QtTimerHandle:
        timer = QTimer()
        timer.setSingleShot(True)

        def fire():
            self._timers.discard(timer)
            callback()

        timer.timeout.connect(fire)
        self._timers.add(timer)
        timer.start(max(0, int(round(delay_s * 1000))))
        return QtTimerHandle(timer, self._timers)


def project(points: np.ndarray, camera_distance: float) -> tuple[np.ndarray, np.ndarray]:
    """Pinhole projection toward -z from (0, 0, camera_distance).
    Returns (xy, depth_scale); points behind the near plane get NaN."""
    depth = camera_distance - points[:, 2]
    scale = np.where(depth > NEAR_PLANE, 1.0 / np.maximum(depth, NEAR_PLANE), np.nan)
    xy = points[:, :2] * scale[:, None]
    return xy, scale


def transform_points(points: np.ndarray, transform: np.ndarray) -> np.ndarray:
    homogeneous = np.hstack([points, np.ones((len(points), 1))])
    return (homogeneous @ transform.T)[:, :3]


class SceneCanvas(pg.PlotWidget):
    """Wireframe + star field view that also acts as the pan gesture source"""

    def __init__(self, gesture_sink: Callable[[GestureSample], None],
                 camera_distance: float = 5.0, parent=None):
        super().__init__(parent)
        self.gesture_sink = gesture_sink
        self.camera_distance = camera_distance

        self.setBackground('#000008')
        self.setMouseEnabled(x=False, y=False)
        self.setMenuEnabled(False)
        self.setAspectLocked(True)
        self.setXRange(-VIEW_EXTENT, VIEW_EXTENT)
        self.setYRange(-VIEW_EXTENT, VIEW_EXTENT)
        self.hideAxis('left')
        self.hideAxis('bottom')
        self.hideButtons()

        self.star_items = [pg.ScatterPlotItem(pen=None) for _ in range(3)]
        for item in self.star_items:
            self.addItem(item)

        self.edge_glow = pg.PlotDataItem(connect='pairs')
        self.edge_curve = pg.PlotDataItem(connect='pairs')
        self.vertex_scatter = pg.ScatterPlotItem(size=9, pen=None)
        self.addItem(self.edge_glow)
        self.addItem(self.edge_curve)
        self.addItem(self.vertex_scatter)

        self._segments = np.zeros((0, 3))
        self._vertices = np.zeros((0, 3))

        # Pointer tracking for gesture velocity (points/s)
        self._last_pos: Optional[tuple[float, float]] = None
        self._last_time = 0.0
        self._velocity = (0.0, 0.0)

    def set_shape(self, shape: ShapeType, color: NeonColor) -> None:
        self._segments = shape.edge_segments()
        self._vertices = shape.vertices()
        r, g, b = (int(c * 255) for c in color.rgb)
        self.edge_glow.setPen(pg.mkPen((r, g, b, 70), width=7))
        self.edge_curve.setPen(pg.mkPen((r, g, b), width=2))
        self.vertex_scatter.setBrush(pg.mkBrush((r, g, b)))

    def draw_frame(self, transform: np.ndarray, layers: Dict[str, StarFieldLayer]) -> None:
        for item, layer in zip(self.star_items, layers.values()):
            if len(layer) == 0:
                item.setData([], [])
                continue
            xy, scale = project(layer.positions, self.camera_distance)
            visible = ~np.isnan(scale)
            sizes = np.clip(layer.sizes[visible] * scale[visible] * 400.0, 1.0, 6.0)
            alphas = (layer.opacities()[visible] * 255).astype(int)
            brushes = [pg.mkBrush(255, 255, 255, int(a)) for a in alphas]
            item.setData(xy[visible, 0], xy[visible, 1], size=sizes, brush=brushes)

        if len(self._segments):
            xy, _ = project(transform_points(self._segments, transform), self.camera_distance)
            self.edge_glow.setData(xy[:, 0], xy[:, 1])
            self.edge_curve.setData(xy[:, 0], xy[:, 1])
            vxy, _ = project(transform_points(self._vertices, transform), self.camera_distance)
            self.vertex_scatter.setData(vxy[:, 0], vxy[:, 1])

    # ------------------------------------------------------------------
    # Mouse -> pan gesture
    # ------------------------------------------------------------------

    def _sample(self, phase: GesturePhase, event) -> None:
        pos = event.position()
        position = (float(pos.x()), float(pos.y()))
        now = time.monotonic()
        if phase is GesturePhase.CHANGED and self._last_pos is not None:
            dt = max(1e-3, now - self._last_time)
            raw = ((position[0] - self._last_pos[0]) / dt, (position[1] - self._last_pos[1]) / dt)
            self._velocity = (
                VELOCITY_SMOOTHING * raw[0] + (1 - VELOCITY_SMOOTHING) * self._velocity[0],
                VELOCITY_SMOOTHING * raw[1] + (1 - VELOCITY_SMOOTHING) * self._velocity[1],
            )
        elif phase is GesturePhase.BEGAN:
            self._velocity = (0.0, 0.0)

        if phase is GesturePhase.ENDED:
            for sample in pointer_release_samples(position, self._velocity, now - self._last_time):
                self.gesture_sink(sample)
            self._last_pos = None
            self._velocity = (0.0, 0.0)
            return

        self._last_pos = position
        self._last_time = now
        self.gesture_sink(GestureSample(phase, position, self._velocity))

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self._sample(GesturePhase.BEGAN, event)
        event.accept()

    def mouseMoveEvent(self, event):
        if self._last_pos is not None:
            self._sample(GesturePhase.CHANGED, event)
        event.accept()

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton and self._last_pos is not None:
            self._sample(GesturePhase.ENDED, event)
        event.accept()


class NeonSpinWindow(QMainWindow):
    """Main window: canvas, status line, keyboard toggles"""

    def __init__(self, config: Config):
        super().__init__()
        self.config = config

        self.setWindowTitle("neonspin")
        self.setMinimumSize(360, 360)
        self.resize(720, 820)

        self.shape = shape_from_name(config.scene.shape)
        self.color = color_from_name(config.scene.color)

        self.star_field = build_star_field(config.particles.layer_count)
        self.coordinator = SceneCoordinator(config, emitters=self.star_field, timer_host=QtTimerHost())
        self.audio = AmbientLoop(config.audio)

        self.canvas = SceneCanvas(self.coordinator.handle_gesture, config.scene.camera_distance)
        self.canvas.set_shape(self.shape, self.color)
        self.status_label = QLabel()
        self.status_label.setStyleSheet("color: #8899aa; padding: 4px;")

        container = QWidget()
        layout = QVBoxLayout(container)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self.canvas, 1)
        layout.addWidget(self.status_label)
        container.setStyleSheet("background-color: #000008;")
        self.setCentralWidget(container)

        if config.audio.music_enabled:
            self.audio.set_music_enabled(True)
        self._update_status()

        self._last_frame_time = time.monotonic()
        self.frame_timer = QTimer()
        self.frame_timer.timeout.connect(self._on_frame)
        self.frame_timer.start(config.scene.frame_interval_ms)

    def _on_frame(self) -> None:
        now = time.monotonic()
        dt = min(0.1, now - self._last_frame_time)
        self._last_frame_time = now

        self.coordinator.tick(dt)
        for layer in self.star_field.values():
            layer.step(dt)
        self.canvas.draw_frame(self.coordinator.orientation.transform, self.star_field)

    def _update_status(self) -> None:
        haptics = "on" if self.config.haptic.enabled else "off"
        music = "on" if self.audio.is_playing else "off"
        self.status_label.setText(
            f"{self.shape.icon} {self.shape.display_name} · {self.color.value} · "
            f"haptics {haptics} [H] · music {music} [M] · shape [S] · color [C]"
        )

    def keyPressEvent(self, event):
        key = event.key()
        if key == Qt.Key.Key_H:
            self.coordinator.set_haptics_enabled(not self.config.haptic.enabled)
        elif key == Qt.Key.Key_M:
            self.config.audio.music_enabled = self.audio.toggle()
        elif key == Qt.Key.Key_S:
            self.shape = next_shape(self.shape)
            self.config.scene.shape = self.shape.value
            self.canvas.set_shape(self.shape, self.color)
        elif key == Qt.Key.Key_C:
            self.color = next_color(self.color)
            self.config.scene.color = self.color.value
            self.canvas.set_shape(self.shape, self.color)
        else:
            super().keyPressEvent(event)
            return
        self._update_status()

    def closeEvent(self, event):
        self.frame_timer.stop()
        self.coordinator.shutdown()
        self.audio.close()
        save_config(self.config)
        log_event("INFO", "App", "Closed")
        super().closeEvent(event)
