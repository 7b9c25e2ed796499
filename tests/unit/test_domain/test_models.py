"""Tests for the core domain models."""

from __future__ import annotations

import numpy as np
import pytest
from pydantic import TypeAdapter, ValidationError

from termcam.domain.models import (
    AppEvent,
    CameraSet,
    FrameReady,
    KeyPress,
    KeyPressed,
    RenderConfig,
    RenderedCell,
    RenderedFrame,
    RenderMode,
    TerminalResized,
    WindowScale,
)


class TestRenderMode:
    def test_cycle_order(self) -> None:
        assert RenderMode.COLORFUL_HALF_BLOCK.next() is RenderMode.COLORFUL
        assert RenderMode.COLORFUL.next() is RenderMode.GRAYSCALE
        assert RenderMode.GRAYSCALE.next() is RenderMode.GRAYSCALE_THRESHOLD
        assert RenderMode.GRAYSCALE_THRESHOLD.next() is RenderMode.THRESHOLD
        assert RenderMode.THRESHOLD.next() is RenderMode.COLORFUL_HALF_BLOCK

    @pytest.mark.parametrize("start", list(RenderMode))
    def test_cycle_has_period_five(self, start: RenderMode) -> None:
        mode = start
        seen = set()
        for _ in range(5):
            seen.add(mode)
            mode = mode.next()
        assert mode is start
        assert len(seen) == 5

    def test_every_mode_has_a_label(self) -> None:
        assert all(mode.label for mode in RenderMode)


class TestWindowScale:
    def test_toggle(self) -> None:
        assert WindowScale.FULL.toggled() is WindowScale.SMALL
        assert WindowScale.SMALL.toggled() is WindowScale.FULL

    def test_zero_divisor_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            WindowScale(0)


class TestCameraSet:
    def test_advance_wraps(self) -> None:
        cameras = CameraSet(devices=(0, 1, 4), active=0)
        assert cameras.advance().active_device == 1
        assert cameras.advance().advance().active_device == 4
        assert cameras.advance().advance().advance().active_device == 0

    @pytest.mark.parametrize("count", [1, 2, 5])
    def test_advancing_n_times_returns_to_start(self, count: int) -> None:
        start = CameraSet(devices=tuple(range(count)), active=count - 1)
        cameras = start
        for _ in range(count):
            cameras = cameras.advance()
        assert cameras == start

    def test_advance_is_a_new_value(self, two_cameras: CameraSet) -> None:
        advanced = two_cameras.advance()
        assert two_cameras.active == 0
        assert advanced.active == 1

    def test_empty_set_has_no_active_device(self) -> None:
        cameras = CameraSet()
        assert cameras.active_device is None
        assert cameras.advance() == cameras

    def test_advance_without_selection_picks_first(self) -> None:
        cameras = CameraSet(devices=(3, 5), active=None)
        assert cameras.advance().active_device == 3

    @pytest.mark.parametrize("active", [-1, 2, 10])
    def test_out_of_range_active_fails_fast(self, active: int) -> None:
        with pytest.raises(ValidationError):
            CameraSet(devices=(0, 1), active=active)

    def test_active_requires_devices(self) -> None:
        with pytest.raises(ValidationError):
            CameraSet(devices=(), active=0)

    def test_from_devices_prefers_requested(self) -> None:
        assert CameraSet.from_devices([0, 2, 3], preferred=2).active_device == 2
        assert CameraSet.from_devices([0, 2, 3], preferred=7).active_device == 0
        assert CameraSet.from_devices([]).active is None

    def test_merged_keeps_active_device(self) -> None:
        cameras = CameraSet(devices=(0, 2), active=1)
        merged = cameras.merged([0, 5])
        assert merged.devices == (0, 2, 5)
        assert merged.active_device == 2

    def test_merged_without_selection(self) -> None:
        assert CameraSet().merged([3, 1]) == CameraSet(devices=(1, 3), active=0)

    def test_frozen(self, two_cameras: CameraSet) -> None:
        with pytest.raises(ValidationError):
            two_cameras.active = 1  # type: ignore[misc]


class TestRenderConfig:
    def test_target_size_small_scale(self) -> None:
        config = RenderConfig(display_size=(100, 40), window_scale=WindowScale.SMALL, mode=RenderMode.COLORFUL)
        assert config.target_size() == (50, 20)

    def test_target_size_half_block_is_doubled(self) -> None:
        config = RenderConfig(
            display_size=(100, 40),
            window_scale=WindowScale.SMALL,
            mode=RenderMode.COLORFUL_HALF_BLOCK,
        )
        assert config.target_size() == (100, 40)
        assert config.cell_size() == (50, 20)

    @pytest.mark.parametrize(
        "mode",
        [RenderMode.COLORFUL, RenderMode.GRAYSCALE, RenderMode.GRAYSCALE_THRESHOLD, RenderMode.THRESHOLD],
    )
    def test_target_size_full_scale(self, mode: RenderMode) -> None:
        config = RenderConfig(display_size=(81, 33), window_scale=WindowScale.FULL, mode=mode)
        assert config.target_size() == (81, 33)

    def test_defaults(self) -> None:
        config = RenderConfig(display_size=(10, 10))
        assert config.mode is RenderMode.COLORFUL_HALF_BLOCK
        assert config.window_scale is WindowScale.SMALL
        assert config.ui_locked is False
        assert config.cameras.active is None

    def test_negative_size_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RenderConfig(display_size=(-1, 10))

    def test_zero_scale_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RenderConfig(display_size=(10, 10), window_scale=0)

    def test_scale_from_int(self) -> None:
        config = RenderConfig(display_size=(10, 10), window_scale=1)
        assert config.window_scale is WindowScale.FULL


class TestRenderedFrame:
    def _frame(self, background: bool = True) -> RenderedFrame:
        glyphs = np.array([["▀", "▄"], ["█", " "]], dtype="<U1")
        fg = np.arange(12, dtype=np.uint8).reshape(2, 2, 3)
        bg = np.full((2, 2, 3), 200, dtype=np.uint8) if background else None
        return RenderedFrame(glyphs=glyphs, foreground=fg, background=bg, mode=RenderMode.COLORFUL_HALF_BLOCK)

    def test_dimensions(self) -> None:
        frame = self._frame()
        assert (frame.width, frame.height) == (2, 2)
        assert not frame.is_empty

    def test_cell_access(self) -> None:
        frame = self._frame()
        assert frame.cell(1, 0) == RenderedCell(glyph="▄", foreground=(3, 4, 5), background=(200, 200, 200))

    def test_cell_without_background(self) -> None:
        assert self._frame(background=False).cell(0, 1).background is None

    def test_rows_are_row_major(self) -> None:
        rows = list(self._frame().rows())
        assert [cell.glyph for cell in rows[0]] == ["▀", "▄"]
        assert [cell.glyph for cell in rows[1]] == ["█", " "]

    def test_arrays_are_read_only(self) -> None:
        frame = self._frame()
        with pytest.raises(ValueError):
            frame.foreground[0, 0, 0] = 1

    def test_shape_mismatch_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RenderedFrame(
                glyphs=np.full((2, 3), "█", dtype="<U1"),
                foreground=np.zeros((3, 2, 3), dtype=np.uint8),
                mode=RenderMode.COLORFUL,
            )

    def test_empty_placeholder(self) -> None:
        frame = RenderedFrame.empty()
        assert frame.is_empty
        assert (frame.width, frame.height) == (0, 0)


class TestEvents:
    def test_key_chord(self) -> None:
        assert KeyPress(name="l", ctrl=True).chord == "ctrl+l"
        assert KeyPress(name="escape").chord == "escape"

    def test_discriminated_union(self) -> None:
        adapter = TypeAdapter(AppEvent)
        event = adapter.validate_python({"event_type": "terminal_resized", "width": 80, "height": 24})
        assert isinstance(event, TerminalResized)
        key_event = adapter.validate_python({"event_type": "key_pressed", "key": {"name": "m"}})
        assert isinstance(key_event, KeyPressed)
        assert key_event.key.name == "m"

    def test_frame_ready_holds_frame(self) -> None:
        frame = RenderedFrame.empty()
        assert FrameReady(frame=frame).frame is frame
