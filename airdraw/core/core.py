import argparse
import sys
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication

from airdraw.canvas.stroke import StrokeTracker
from airdraw.canvas.surface import DrawingSurface
from airdraw.core.config import BRUSH_SIZES, PALETTE, AppConfig, load_config
from airdraw.core.frame_loop import FrameCallbacks, FrameLoop
from airdraw.core.hit_test import HitTestRouter, RouterActions
from airdraw.core.init_state import InitializationStateMachine, InitState
from airdraw.core.logger import get_logger, setup_logging
from airdraw.core.scheduler import QtScheduler
from airdraw.core.tasks import QtTaskRunner, TaskOutcome
from airdraw.enhance.client import EnhanceClient, EnhanceResult
from airdraw.enhance.orchestrator import RequestOrchestrator, RequestState
from airdraw.ui.hit_test_service import WidgetHitTestService
from airdraw.ui.ui import MainWindow
from airdraw.vision.camera_service import CameraService
from airdraw.vision.frame_data import BrushState, FrameState
from airdraw.vision.gesture_detector import PinchClassifier
from airdraw.vision.hand_detector import HandDetector
from airdraw.vision.smoother import ExponentialSmoother

logger = get_logger("AppCore")

FPS_REPORT_EVERY = 30


def parse_args(argv: Sequence[str]) -> Tuple[argparse.Namespace, List[str]]:
    """Split our options from the ones meant for Qt."""
    parser = argparse.ArgumentParser(prog="airdraw", description="Draw in the air with a pinch gesture")
    parser.add_argument("--camera", type=int, default=None, help="Camera device index")
    parser.add_argument("--auto-start", action="store_true", help="Start tracking without the start button")
    parser.add_argument("--endpoint", default=None, help="Enhancement endpoint URL")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--no-log-file", action="store_true", help="Log to the console only")
    args, rest = parser.parse_known_args(list(argv[1:]))
    return args, [argv[0] if argv else "airdraw"] + rest


def apply_args(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    if args.camera is not None:
        config = replace(config, camera=replace(config.camera, index=args.camera))
    if args.auto_start:
        config = replace(config, interaction=replace(config.interaction, require_confirmation=False))
    if args.endpoint:
        config = replace(config, enhance=replace(config.enhance, endpoint_url=args.endpoint))
    if args.debug:
        config = replace(config, logging=replace(config.logging, debug=True))
    if args.no_log_file:
        config = replace(config, logging=replace(config.logging, log_to_file=False))
    return config


class AppCore:
    def __init__(self, sys_argv, config: Optional[AppConfig] = None):
        args, qt_argv = parse_args(sys_argv)
        self.config = apply_args(config or load_config(), args)
        setup_logging(self.config.logging)

        self.app = QApplication.instance() or QApplication(qt_argv)
        self.app.setStyle("Fusion")

        interaction = self.config.interaction
        self.brush = BrushState(color=interaction.default_color, size=interaction.default_brush_size)
        self.surface = DrawingSurface()
        self.tracker = StrokeTracker(self.surface)

        self.window = MainWindow(self.surface, PALETTE, BRUSH_SIZES, cursor_radius=interaction.cursor_radius)
        self.window.toolbar.set_selected_color(self.brush.color)
        self.window.toolbar.set_selected_size(self.brush.size)

        self.runner = QtTaskRunner()
        self.client = EnhanceClient(self.config.enhance.endpoint_url, timeout_s=self.config.enhance.timeout_s)
        self.orchestrator = RequestOrchestrator(
            send=self.client.enhance,
            snapshot=self.surface.snapshot,
            runner=self.runner,
            cooldown_ms=self.config.enhance.cooldown_ms,
            on_state_changed=self._on_enhance_state,
            on_result=self._on_enhance_result,
            on_countdown=self._on_countdown,
            on_started=self.window.hide_result,
        )
        self.countdown_timer = QTimer()
        self.countdown_timer.setInterval(self.config.enhance.countdown_step_ms)
        self.countdown_timer.timeout.connect(self.orchestrator.tick)

        self.router = HitTestRouter(
            WidgetHitTestService(self.window.stage),
            RouterActions(
                select_color=self.select_color,
                select_size=self.select_size,
                clear=self.clear_canvas,
                trigger_enhance=self.orchestrator.trigger,
            ),
            repeat_actions=interaction.repeat_actions,
        )

        self.camera = CameraService(
            camera_index=self.config.camera.index,
            resolution=(self.config.camera.width, self.config.camera.height),
        )
        self.detector: Optional[HandDetector] = None
        self.frame_loop: Optional[FrameLoop] = None
        # True while camera.open() runs on a worker; the worker owns the capture until then
        self._camera_opening = False

        self.init_state = InitializationStateMachine(
            require_confirmation=interaction.require_confirmation,
            on_activate=self._start_frame_loop,
            on_deactivate=self._stop_frame_loop,
            on_state_changed=self._on_init_state,
        )

        toolbar = self.window.toolbar
        toolbar.color_chosen.connect(self.select_color)
        toolbar.size_chosen.connect(self.select_size)
        toolbar.clear_requested.connect(self.clear_canvas)
        toolbar.enhance_requested.connect(self.orchestrator.trigger)
        self.window.init_overlay.start_requested.connect(self._on_start_requested)
        self.window.closing.connect(self.shutdown)

    def run(self):
        self.window.show()
        self._on_init_state(self.init_state.state)
        self._load_detector()
        return self.app.exec()

    # --- Initialization ---
    def _load_detector(self):
        logger.info("Loading hand detector")
        self.runner(lambda: HandDetector.create(self.config.detector), self._on_detector_loaded)

    def _on_detector_loaded(self, outcome: TaskOutcome):
        if self.init_state.state is InitState.STOPPED:
            if outcome.ok:
                outcome.value.close()
            return
        if not outcome.ok:
            self.init_state.detector_failed(outcome.error)
            return

        self.detector = outcome.value
        self.init_state.detector_ready()
        self._camera_opening = True
        self.runner(
            lambda: self.camera.open(ready_timeout_s=self.config.camera.ready_timeout_s),
            self._on_camera_opened,
        )

    def _on_camera_opened(self, outcome: TaskOutcome):
        self._camera_opening = False
        if self.init_state.state is InitState.STOPPED:
            self.camera.release()
            return
        if not outcome.ok:
            self.init_state.camera_failed(outcome.error)
            return
        self.init_state.camera_ready()

    def _on_start_requested(self):
        if self.init_state.awaiting_confirmation:
            self.init_state.confirm()

    def _on_init_state(self, state: InitState):
        self.window.show_init_state(state, self.init_state.error)

    def _start_frame_loop(self):
        interaction = self.config.interaction
        self.frame_loop = FrameLoop(
            frame_source=self.camera,
            detector=self.detector,
            tracker=self.tracker,
            router=self.router,
            overlay=self.window.cursor_overlay,
            brush=self.brush,
            viewport=self.window.stage.viewport,
            scheduler=QtScheduler(interaction.frame_interval_ms),
            classifier=PinchClassifier(self.config.pinch.threshold),
            smoother=ExponentialSmoother(self.config.smoothing.gain),
            callbacks=FrameCallbacks(
                on_video_frame=self.window.stage.set_video_frame,
                on_pinch_changed=self.window.set_pinch_active,
                on_frame_done=self._on_frame_done,
            ),
        )
        self.frame_loop.start()

    def _stop_frame_loop(self):
        if self.frame_loop is not None:
            self.frame_loop.stop()

    def _on_frame_done(self, state: FrameState):
        self.window.stage.update()
        if state.frame_count % FPS_REPORT_EVERY == 0:
            self.window.set_fps(state.fps)
            logger.debug("FPS: %.1f (skipped %d)", state.fps, state.skipped_frames)

    # --- Toolbar actions ---
    def select_color(self, color: str):
        if color == self.brush.color:
            return
        self.brush.color = color
        self.window.toolbar.set_selected_color(color)
        self.window.show_message(f"Color: {color}", 2000)

    def select_size(self, size: int):
        if size == self.brush.size:
            return
        self.brush.size = size
        self.window.toolbar.set_selected_size(size)
        self.window.show_message(f"Brush: {size}px", 2000)

    def clear_canvas(self):
        self.tracker.clear_surface(reset_stroke=self.config.interaction.clear_resets_stroke)
        self.window.hide_result()
        self.window.stage.update()

    # --- Enhancement ---
    def _on_enhance_state(self, state: RequestState):
        self.window.set_enhance_state(state, self.orchestrator.cooldown_remaining_ms())
        if state is RequestState.COOLDOWN:
            self.countdown_timer.start()
        else:
            self.countdown_timer.stop()

    def _on_countdown(self, remaining_ms: int):
        if self.orchestrator.state is RequestState.COOLDOWN:
            self.window.set_enhance_state(RequestState.COOLDOWN, remaining_ms)

    def _on_enhance_result(self, result: EnhanceResult):
        if result.ok:
            self.window.show_result(result.image, result.mime_type)
        else:
            self.window.show_message(result.message)

    # --- Shutdown ---
    def shutdown(self):
        logger.info("Shutting down")
        self.init_state.teardown()
        self.countdown_timer.stop()
        if self._camera_opening:
            logger.info("Camera still opening; it is released when the open completes")
        else:
            self.camera.release()
        if self.detector is not None:
            self.detector.close()
            self.detector = None
        self.client.close()


def main(argv: Optional[Sequence[str]] = None) -> int:
    core = AppCore(list(argv) if argv is not None else sys.argv)
    return core.run()
