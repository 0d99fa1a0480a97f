"""Tests for the renderer wiring and command-line entry points."""

import math
from unittest.mock import MagicMock

import moderngl as mgl
import numpy as np
import pytest
from moderngl_window.context.base import BaseWindow

from cubeviewer.config import ViewerConfig
from cubeviewer.core.controls import RotationState
from cubeviewer.core.errors import CapabilityUnavailable, ShaderCompileError
from cubeviewer.renderers import interactive_renderer, offline_renderer
from cubeviewer.renderers.base_renderer import BaseRenderer
from cubeviewer.renderers.interactive_renderer import CubeWindow
from cubeviewer.renderers.offline_renderer import OfflineRenderer, encode_video

WIDTH, HEIGHT = 8, 6


@pytest.fixture
def offscreen_ctx(mock_ctx):
    """Mock context whose framebuffer reads back a blank image."""
    mock_ctx.framebuffer.return_value.read.return_value = bytes(WIDTH * HEIGHT * 4)
    return mock_ctx


class TestBaseRenderer:

    def test_builds_session_from_config(self, mock_ctx):
        config = ViewerConfig(fov_degrees=60.0, distance=8.0, rotation_speed=0.01,
                              background=(0.0, 0.0, 0.0, 1.0))
        renderer = BaseRenderer(mock_ctx, config, width=400, height=200)

        transform = renderer.session.transform
        assert transform.fov == pytest.approx(math.radians(60.0))
        assert transform.distance == 8.0
        assert transform.aspect == pytest.approx(2.0)
        assert renderer.session.controller.rotation_speed == 0.01
        assert renderer.session.background == (0.0, 0.0, 0.0, 1.0)

        program_kwargs = mock_ctx.program.call_args.kwargs
        assert "aPosition" in program_kwargs["vertex_shader"]

    def test_rejects_old_context(self, mock_ctx):
        mock_ctx.version_code = 200
        with pytest.raises(CapabilityUnavailable):
            BaseRenderer(mock_ctx)
        mock_ctx.program.assert_not_called()

    def test_resize_updates_projection(self, mock_ctx):
        renderer = BaseRenderer(mock_ctx, width=400, height=400)
        renderer.resize(300, 100)
        assert renderer.session.transform.aspect == pytest.approx(3.0)
        assert (renderer.width, renderer.height) == (300, 100)


class TestOfflineRenderer:

    def test_render_frames_writes_pngs_and_turns_cube(self, offscreen_ctx, tmp_path):
        renderer = OfflineRenderer(width=WIDTH, height=HEIGHT, ctx=offscreen_ctx)
        drawn = renderer.render_frames(str(tmp_path / "frames"), frame_count=3, drag_step=10.0)

        assert drawn == 3
        assert sorted(p.name for p in (tmp_path / "frames").iterdir()) == [
            "frame_000000.png", "frame_000001.png", "frame_000002.png",
        ]
        assert renderer.rotation.about_y == pytest.approx(3 * 10.0 * 0.005)
        assert renderer.rotation.about_x == 0.0
        assert renderer.drag.gestures == []

    def test_render_frames_replays_given_gestures(self, offscreen_ctx, tmp_path):
        renderer = OfflineRenderer(width=WIDTH, height=HEIGHT, ctx=offscreen_ctx)
        gestures = [
            [(0.0, 0.0), (0.0, 20.0)],
            [(5.0, 5.0), (25.0, 5.0), (45.0, 5.0)],
        ]
        renderer.render_frames(str(tmp_path), frame_count=2, gestures=gestures)

        assert renderer.rotation.about_x == pytest.approx(20.0 * 0.005)
        assert renderer.rotation.about_y == pytest.approx(40.0 * 0.005)
        assert not renderer.session.controller.dragging
        assert renderer.drag.gestures == []

    def test_leftover_gestures_dropped_on_early_stop(self, offscreen_ctx, tmp_path):
        renderer = OfflineRenderer(width=WIDTH, height=HEIGHT, ctx=offscreen_ctx)
        renderer.session.stop()
        assert renderer.render_frames(str(tmp_path), frame_count=4) == 0
        assert renderer.drag.gestures == []
        assert renderer.rotation.about_y == 0.0

    def test_snapshot_shape(self, offscreen_ctx):
        renderer = OfflineRenderer(width=WIDTH, height=HEIGHT, ctx=offscreen_ctx)
        pixels = renderer.snapshot()
        assert pixels.shape == (HEIGHT, WIDTH, 4)
        assert pixels.dtype == np.uint8

    def test_frame_count_must_be_positive(self, offscreen_ctx, tmp_path):
        renderer = OfflineRenderer(width=WIDTH, height=HEIGHT, ctx=offscreen_ctx)
        with pytest.raises(ValueError):
            renderer.render_frames(str(tmp_path), frame_count=0)

    def test_encode_video_without_ffmpeg(self, monkeypatch, tmp_path):
        monkeypatch.setattr(offline_renderer.shutil, "which", lambda name: None)
        with pytest.raises(RuntimeError, match="FFmpeg"):
            encode_video(str(tmp_path), str(tmp_path / "out.mp4"))

    def test_main_exits_when_no_context(self, monkeypatch, tmp_path):
        def no_context():
            raise CapabilityUnavailable("no GPU")

        monkeypatch.setattr(offline_renderer, "create_standalone_context", no_context)
        with pytest.raises(SystemExit) as excinfo:
            offline_renderer.main(["--output", str(tmp_path)])
        assert excinfo.value.code == 1


class TestInteractiveMain:

    def test_setup_error_exits(self, monkeypatch):
        monkeypatch.setattr(CubeWindow, "viewer_config", None)
        monkeypatch.setattr(CubeWindow, "window_size", CubeWindow.window_size)

        def fail(config_cls, timer=None, args=None):
            raise ShaderCompileError("fragment", "0:1: error")

        monkeypatch.setattr(interactive_renderer.mglw, "run_window_config", fail)
        with pytest.raises(SystemExit) as excinfo:
            interactive_renderer.main([])
        assert excinfo.value.code == 1

    def test_config_applied_to_window(self, monkeypatch, tmp_path):
        monkeypatch.setattr(CubeWindow, "viewer_config", None)
        monkeypatch.setattr(CubeWindow, "window_size", CubeWindow.window_size)
        path = tmp_path / "viewer.yaml"
        path.write_text("window_size: [640, 480]\n")

        calls = []
        monkeypatch.setattr(interactive_renderer.mglw, "run_window_config",
                            lambda config_cls, timer=None, args=None: calls.append((config_cls, args)))
        interactive_renderer.main(["--config", str(path)])

        assert calls == [(CubeWindow, ["--config", str(path)])]
        assert CubeWindow.window_size == (640, 480)
        assert CubeWindow.viewer_config.window_size == (640, 480)


@pytest.fixture
def window(monkeypatch, program_factory):
    """CubeWindow on a mock context and window, as moderngl-window would build it."""
    monkeypatch.setattr(CubeWindow, "viewer_config", ViewerConfig())

    ctx = MagicMock(spec=mgl.Context)
    ctx.version_code = 330
    ctx.program.side_effect = lambda **kwargs: program_factory()

    wnd = MagicMock(spec=BaseWindow)
    wnd.buffer_size = (320, 240)
    wnd.keys = MagicMock(name="keys")
    return CubeWindow(ctx=ctx, wnd=wnd)


class TestCubeWindow:

    def test_viewport_from_window_buffer(self, window):
        assert window.session.transform.aspect == pytest.approx(320 / 240)
        assert window.wnd.render_func == window.on_render

    def test_drag_rotates_until_release(self, window):
        window.on_mouse_press_event(100, 100, 1)
        window.on_mouse_drag_event(150, 130, 50, 30)
        window.on_mouse_release_event(150, 130, 1)
        # Drag events after release are ignored
        window.on_mouse_drag_event(400, 400, 250, 270)

        rotation = window.rotation
        assert (rotation.about_x, rotation.about_y) == pytest.approx((0.15, 0.25))

    def test_right_button_does_not_rotate(self, window):
        window.on_mouse_press_event(100, 100, 2)
        window.on_mouse_drag_event(150, 130, 50, 30)
        assert window.rotation == RotationState(0.0, 0.0)

    def test_render_draws_cube(self, window):
        window.on_render(0.0, 0.016)
        window.session.vao.render.assert_called_once_with(mgl.TRIANGLES, vertices=36)
        window.wnd.close.assert_not_called()

    def test_resize_updates_projection(self, window):
        window.on_resize(640, 320)
        assert window.session.transform.aspect == pytest.approx(2.0)

    def test_r_key_resets_rotation(self, window):
        keys = window.wnd.keys
        window.rotation.about_x = 1.0
        window.rotation.about_y = 2.0

        window.on_key_event(keys.R, keys.ACTION_RELEASE, None)
        assert window.rotation == RotationState(1.0, 2.0)

        window.on_key_event(keys.R, keys.ACTION_PRESS, None)
        assert window.rotation == RotationState(0.0, 0.0)

    def test_stopped_session_closes_window(self, window):
        window.session.stop()
        window.on_render(0.0, 0.016)

        window.wnd.close.assert_called_once_with()
        window.session.vao.render.assert_not_called()

    def test_close_stops_session_and_releases(self, window):
        vao = window.session.vao
        window.on_close()

        assert window.session.stopped
        vao.release.assert_called_once_with()
