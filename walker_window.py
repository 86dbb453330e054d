"""GTK3 transparent strip window that hosts the walkers.

A borderless, always-on-top, RGBA-transparent window spanning the bottom
of the primary monitor. The drawing area's allocation is the logical
surface size, its scale factor the device pixel ratio, and a GLib
timeout stands in for the per-refresh frame callback.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Callable

import cairo
import gi

gi.require_version("Gtk", "3.0")
gi.require_version("Gdk", "3.0")
from gi.repository import Gdk, GLib, Gtk  # noqa: E402

from manager import FrameLoop, WalkerManager  # noqa: E402
from sprite_sheet import CairoCanvas, SpriteSheet  # noqa: E402

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 1000 // 60
INITIAL_HEIGHT = 140
SCALE_OPTIONS = (0.2, 0.4, 0.6, 1.0, 1.5, 2.0)


class WalkerWindow(Gtk.Window):
    """Transparent floating strip for X11.

    Uses POPUP type to bypass the window manager, so the strip is never
    tiled and always rendered on top.
    """

    def __init__(
        self,
        sheet_path: str,
        walkers: int = 1,
        scale: float | None = None,
        on_scale_changed: Callable[[float], None] | None = None,
    ) -> None:
        super().__init__(type=Gtk.WindowType.POPUP)

        self._sheet_path = sheet_path
        self._population = max(1, walkers)
        self._initial_scale = scale
        self._on_scale_changed = on_scale_changed

        self.manager = WalkerManager()
        self.loop = FrameLoop(self.manager, self._schedule, self._queue_redraw)
        self._sheet: SpriteSheet | None = None
        self._canvas: CairoCanvas | None = None
        self._frame_timer_id: int | None = None
        self._strip_height = INITIAL_HEIGHT

        self._setup_window()
        self._setup_drawing()
        self._setup_input()
        self._place_on_screen()
        GLib.idle_add(self._load_sheet)

    # ------------------------------------------------------------------
    # Window configuration
    # ------------------------------------------------------------------

    def _setup_window(self) -> None:
        self.set_decorated(False)
        self.set_keep_above(True)
        self.stick()
        self.set_skip_taskbar_hint(True)
        self.set_skip_pager_hint(True)

        screen = self.get_screen()
        visual = screen.get_rgba_visual()
        if visual is not None:
            self.set_visual(visual)
            logger.debug("RGBA visual enabled")
        else:
            logger.warning("RGBA visual not available")

        self.set_app_paintable(True)
        self.set_type_hint(Gdk.WindowTypeHint.DOCK)
        self.connect("realize", self._on_realize)
        self.connect("destroy", self._on_destroy)

    def _setup_drawing(self) -> None:
        self._drawing_area = Gtk.DrawingArea()
        self._drawing_area.connect("draw", self._on_draw)
        self._drawing_area.connect("size-allocate", self._on_size_allocate)
        self._drawing_area.connect("notify::scale-factor", self._on_scale_factor)
        self.add(self._drawing_area)

    def _setup_input(self) -> None:
        self.add_events(Gdk.EventMask.BUTTON_PRESS_MASK)
        self.connect("button-press-event", self._on_button_press)

    def _get_primary_monitor_geometry(self) -> Gdk.Rectangle:
        screen = self.get_screen()
        monitor = screen.get_primary_monitor()
        return screen.get_monitor_geometry(monitor)

    def _place_on_screen(self) -> None:
        """Span the bottom edge of the primary monitor."""
        geom = self._get_primary_monitor_geometry()
        self.set_size_request(geom.width, self._strip_height)
        self._drawing_area.set_size_request(geom.width, self._strip_height)
        self.resize(geom.width, self._strip_height)
        self.move(geom.x, geom.y + geom.height - self._strip_height)
        logger.debug("Strip placed at (%d, %d) size %dx%d",
                     geom.x, geom.y + geom.height - self._strip_height,
                     geom.width, self._strip_height)

    # ------------------------------------------------------------------
    # Sheet loading
    # ------------------------------------------------------------------

    def _load_sheet(self) -> bool:
        sheet = SpriteSheet.load(self._sheet_path)
        if sheet is None:
            logger.warning("Walkers never started: no sprite sheet")
            return False
        self._sheet = sheet
        self._canvas = CairoCanvas(sheet, self.manager.stage.surface)
        self.manager.sheet_loaded(sheet.width, sheet.height)

        self._strip_height = self.manager.stage.geometry.preferred_height()
        self._place_on_screen()

        self.manager.ensure_population(self._population)
        if self._initial_scale is not None:
            self.manager.set_scale(self._initial_scale)
        self._sync_surface()
        self.loop.start(self._now())
        return False

    # ------------------------------------------------------------------
    # Frame scheduling
    # ------------------------------------------------------------------

    @staticmethod
    def _now() -> float:
        return GLib.get_monotonic_time() / 1000.0

    def _schedule(self, callback: Callable[[float], None]) -> None:
        self._frame_timer_id = GLib.timeout_add(
            FRAME_INTERVAL_MS, self._on_frame_timer, callback)

    def _on_frame_timer(self, callback: Callable[[float], None]) -> bool:
        self._frame_timer_id = None
        callback(self._now())
        return False

    def _queue_redraw(self) -> None:
        self._drawing_area.queue_draw()

    def _stop_timers(self) -> None:
        self.loop.stop()
        if self._frame_timer_id is not None:
            GLib.source_remove(self._frame_timer_id)
            self._frame_timer_id = None

    # ------------------------------------------------------------------
    # Surface size
    # ------------------------------------------------------------------

    def _sync_surface(self) -> None:
        alloc = self._drawing_area.get_allocation()
        self.manager.resize(alloc.width, alloc.height,
                            self._drawing_area.get_scale_factor())

    def _on_size_allocate(self, widget: Gtk.DrawingArea,
                          allocation: Gdk.Rectangle) -> None:
        self.manager.resize(allocation.width, allocation.height,
                            widget.get_scale_factor())

    def _on_scale_factor(self, widget: Gtk.DrawingArea, pspec: object) -> None:
        logger.debug("Scale factor changed to %d", widget.get_scale_factor())
        self._sync_surface()

    # ------------------------------------------------------------------
    # Drawing
    # ------------------------------------------------------------------

    def _on_draw(self, widget: Gtk.DrawingArea, ctx: cairo.Context) -> bool:
        ctx.set_operator(cairo.OPERATOR_SOURCE)
        ctx.set_source_rgba(0, 0, 0, 0)
        ctx.paint()
        ctx.set_operator(cairo.OPERATOR_OVER)

        if self._canvas is None:
            return True
        self.manager.render(self._canvas)
        self._canvas.present(ctx)
        return True

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def _on_button_press(self, widget: Gtk.Window, event: Gdk.EventButton) -> bool:
        if event.button == 3:
            self._show_context_menu(event)
            return True
        return False

    def _show_context_menu(self, event: Gdk.EventButton) -> None:
        menu = Gtk.Menu()

        scale_item = Gtk.MenuItem(label="Scale")
        scale_sub = Gtk.Menu()
        current_scale = self.manager.scale
        if current_scale is None and self.manager.walkers:
            current_scale = self.manager.walkers[0].scale
        group = None
        for s in SCALE_OPTIONS:
            radio = Gtk.RadioMenuItem(label=f"{s:.1f}x", group=group)
            group = radio
            radio.set_active(current_scale is not None
                             and abs(s - current_scale) < 0.01)
            radio.connect("toggled", self._on_menu_scale, s)
            scale_sub.append(radio)
        scale_item.set_submenu(scale_sub)
        menu.append(scale_item)

        menu.append(Gtk.SeparatorMenuItem())

        add_item = Gtk.MenuItem(label="Add walker")
        add_item.set_sensitive(self._sheet is not None)
        add_item.connect("activate", self._on_menu_add_walker)
        menu.append(add_item)

        sleep_item = Gtk.MenuItem(label="Sleep")
        sleep_item.set_sensitive(bool(self.manager.walkers))
        sleep_item.connect("activate", self._on_menu_sleep)
        menu.append(sleep_item)

        menu.append(Gtk.SeparatorMenuItem())

        quit_item = Gtk.MenuItem(label="Quit")
        quit_item.connect("activate", self._on_menu_quit)
        menu.append(quit_item)

        menu.show_all()
        menu.popup_at_pointer(event)

    def _on_menu_scale(self, widget: Gtk.RadioMenuItem, scale: float) -> None:
        if not widget.get_active():
            return
        applied = self.manager.set_scale(scale)
        if self._on_scale_changed is not None:
            self._on_scale_changed(applied)

    def _on_menu_add_walker(self, widget: Gtk.MenuItem) -> None:
        surface = self.manager.stage.surface
        walker = self.manager.add_walker(x=surface.logical_width / 2)
        logger.info("Added walker at x=%.0f", walker.x)

    def _on_menu_sleep(self, widget: Gtk.MenuItem) -> None:
        for walker in self.manager.walkers:
            walker.set_state("sleep", 5000)

    def _on_menu_quit(self, widget: Gtk.MenuItem) -> None:
        self._stop_timers()
        Gtk.main_quit()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _on_realize(self, widget: Gtk.Window) -> None:
        """Disable compositor shadow/border on this window."""
        try:
            xid = self.get_window().get_xid()
            subprocess.Popen(
                ["xprop", "-id", str(xid),
                 "-f", "_COMPTON_SHADOW", "32c",
                 "-set", "_COMPTON_SHADOW", "0"],
                stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL,
            )
            logger.debug("Set _COMPTON_SHADOW=0 on xid %d", xid)
        except Exception:
            logger.debug("Could not set _COMPTON_SHADOW")

    def _on_destroy(self, widget: Gtk.Window) -> None:
        self._stop_timers()
        Gtk.main_quit()
