#!/usr/bin/env python
"""
VidéoScramble — Desktop GUI
Dark-themed Tkinter window showing the original and the scrambled stream side by side.
Start/Stop toggles processing; the key can be changed live and applies from the next frame.
"""

import argparse
import logging
import os
import queue
import sys
import tkinter as tk
from tkinter import ttk

import cv2
from PIL import Image, ImageTk

# Ensure the package is importable from a source checkout
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from vidscramble import config
from vidscramble.errors import KeyParseError, ScrambleError
from vidscramble.frame_transform import Direction
from vidscramble.keys import parse_key
from vidscramble.pipeline import Pipeline, PipelineState

log = logging.getLogger("vidscramble.gui")

# ── Color Palette ─────────────────────────────────────────────────────────────
BG_DARK      = "#0d1117"
BG_PANEL     = "#161b22"
BG_CARD      = "#21262d"
BG_INPUT     = "#1c2128"
ACCENT       = "#58a6ff"
ACCENT_HOVER = "#79c0ff"
SUCCESS      = "#3fb950"
DANGER       = "#f85149"
TEXT_PRIMARY = "#e6edf3"
TEXT_MUTED   = "#8b949e"
BORDER       = "#30363d"

POLL_MS = 15


# ── Helper Widgets ────────────────────────────────────────────────────────────

class StyledButton(tk.Button):
    def __init__(self, parent, text, command=None, color=ACCENT, **kw):
        super().__init__(
            parent, text=text, command=command,
            bg=color, fg=BG_DARK, activebackground=ACCENT_HOVER,
            activeforeground=BG_DARK, relief="flat", cursor="hand2",
            font=("Segoe UI", 10, "bold"), padx=14, pady=7,
            bd=0, **kw
        )
        self.bind("<Enter>", lambda e: self.config(bg=ACCENT_HOVER))
        self.bind("<Leave>", lambda e: self.config(bg=color))


class StatusBar(tk.Label):
    def __init__(self, parent, **kw):
        super().__init__(parent, text="Ready", bg=BG_PANEL, fg=TEXT_MUTED,
                         font=("Segoe UI", 9), anchor="w", padx=10, **kw)

    def set(self, msg, color=TEXT_MUTED):
        self.config(text=msg, fg=color)

    def success(self, msg): self.set("✔  " + msg, SUCCESS)
    def error(self, msg):   self.set("✘  " + msg, DANGER)
    def info(self, msg):    self.set("ℹ  " + msg, ACCENT)


class FramePane(tk.Frame):
    """Title + image label; keeps a reference to the current PhotoImage."""

    def __init__(self, parent, title):
        super().__init__(parent, bg=BG_CARD)
        tk.Label(self, text=title, bg=BG_CARD, fg=ACCENT,
                 font=("Segoe UI", 11, "bold"), anchor="w").pack(fill="x", pady=(0, 6))
        self._label = tk.Label(self, bg=BG_INPUT, width=60, height=20)
        self._label.pack(fill="both", expand=True)
        self._photo = None

    def show(self, frame):
        if frame.ndim == 3:
            frame = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        h, w = frame.shape[:2]
        if w > config.DISPLAY_MAX_WIDTH:
            scale = config.DISPLAY_MAX_WIDTH / w
            frame = cv2.resize(frame, (config.DISPLAY_MAX_WIDTH, max(1, int(h * scale))),
                               interpolation=cv2.INTER_NEAREST)
        self._photo = ImageTk.PhotoImage(Image.fromarray(frame))
        self._label.config(image=self._photo, width=0, height=0)


# ── Main Application ──────────────────────────────────────────────────────────

class ScrambleApp(tk.Tk):
    def __init__(self, run_config: config.RunConfig):
        super().__init__()
        self.title("VidéoScramble")
        self.geometry("1000x600")
        self.minsize(760, 480)
        self.configure(bg=BG_DARK)

        self._run = run_config
        self._ui_queue = queue.Queue()
        self.pipeline = Pipeline(
            output_path=run_config.output_path,
            key=run_config.key,
            direction=run_config.direction,
            display=self._show_frames,
            marshal=self._ui_queue.put,
            on_state_change=self._on_state_change,
            on_finished=self._on_finished,
            on_error=self._on_error,
        )

        self._style_ttk()
        self._build_header()
        self._build_body()
        self._update_key_label()

        self.protocol("WM_DELETE_WINDOW", self._on_close)
        self.after(POLL_MS, self._drain_ui_queue)

    def _style_ttk(self):
        style = ttk.Style(self)
        style.theme_use("clam")

    def _build_header(self):
        hdr = tk.Frame(self, bg=BG_PANEL, height=56)
        hdr.pack(fill="x", side="top")
        hdr.pack_propagate(False)
        tk.Label(hdr, text="🎬  VidéoScramble", bg=BG_PANEL, fg=TEXT_PRIMARY,
                 font=("Segoe UI", 15, "bold")).pack(side="left", padx=20)
        tk.Label(hdr, text=os.path.basename(self._run.input_path), bg=BG_PANEL,
                 fg=TEXT_MUTED, font=("Segoe UI", 9)).pack(side="left", padx=(0, 20))
        tk.Frame(self, bg=BORDER, height=1).pack(fill="x")

    def _build_body(self):
        # Status bar first so it keeps its place at the bottom
        self._status = StatusBar(self)
        self._status.pack(fill="x", side="bottom")
        tk.Frame(self, bg=BORDER, height=1).pack(fill="x", side="bottom")

        controls = tk.Frame(self, bg=BG_CARD)
        controls.pack(fill="x", side="bottom", padx=0, pady=0)

        self._button = StyledButton(controls, "Start Processing", self._toggle)
        self._button.pack(side="left", padx=20, pady=12)

        tk.Label(controls, text="Key", bg=BG_CARD, fg=TEXT_MUTED,
                 font=("Segoe UI", 9)).pack(side="left")
        self._key_var = tk.StringVar(value=str(self._run.key))
        entry = tk.Entry(controls, textvariable=self._key_var, bg=BG_INPUT, fg=TEXT_PRIMARY,
                         insertbackground=TEXT_PRIMARY, relief="flat",
                         font=("Consolas", 10), bd=4, width=22)
        entry.pack(side="left", padx=(6, 16))
        entry.bind("<Return>", self._on_key_entered)

        self._key_label = tk.Label(controls, bg=BG_CARD, fg=TEXT_PRIMARY,
                                   font=("Segoe UI", 9), anchor="w")
        self._key_label.pack(side="left", fill="x", expand=True)

        panes = tk.Frame(self, bg=BG_CARD)
        panes.pack(fill="both", expand=True)
        self._original = FramePane(panes, "Original")
        self._original.pack(side="left", fill="both", expand=True, padx=(20, 10), pady=16)
        self._processed = FramePane(panes, "Processed")
        self._processed.pack(side="left", fill="both", expand=True, padx=(10, 20), pady=16)

    # ── Controls ──────────────────────────────────────────────────────────────

    def _toggle(self):
        if self.pipeline.state is PipelineState.IDLE:
            try:
                self.pipeline.start(self._run.input_path)
            except ScrambleError as ex:
                self._status.error(str(ex))
                return
            self._status.info(f"Processing {os.path.basename(self._run.input_path)}…")
        else:
            self.pipeline.stop()

    def _on_key_entered(self, _event=None):
        try:
            key = parse_key(self._key_var.get())
        except KeyParseError as ex:
            self._key_var.set(str(self._run.key))
            self._status.error(str(ex))
            return
        self._run.key = key
        self.pipeline.set_key(key)
        self._update_key_label()
        self._status.success(f"Key updated to {key}")

    def _update_key_label(self):
        self._key_label.config(text=self._run.status_line())

    # ── Pipeline callbacks (run on the Tk thread via the queue) ───────────────

    def _drain_ui_queue(self):
        try:
            while True:
                callback = self._ui_queue.get_nowait()
                callback()
        except queue.Empty:
            pass
        finally:
            self.after(POLL_MS, self._drain_ui_queue)

    def _show_frames(self, original, processed):
        self._original.show(original)
        self._processed.show(processed)

    def _on_state_change(self, state):
        if state is PipelineState.IDLE:
            self._button.config(text="Start Processing")
        else:
            self._button.config(text="Stop Processing")

    def _on_finished(self, output_path, frames):
        self._status.success(f"Video saved to {output_path} ({frames} frames)")

    def _on_error(self, error):
        self._status.error(str(error))

    def _on_close(self):
        self.pipeline.on_shutdown_requested()
        # let the worker finalize the container before the process goes away
        self.pipeline.wait(timeout=2.0)
        self.destroy()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Scramble or unscramble video rows with a key.")
    parser.add_argument("input", nargs="?", default=config.DEFAULT_INPUT)
    parser.add_argument("--output", default=config.DEFAULT_OUTPUT)
    parser.add_argument("--key", default=str(config.DEFAULT_KEY))
    parser.add_argument("--decrypt", action="store_true",
                        help="apply the inverse permutation")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)
    try:
        args.key = parse_key(args.key)
    except KeyParseError as ex:
        parser.error(str(ex))
    return args


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    if not os.path.exists(args.input):
        log.warning("File not found at: %s", os.path.abspath(args.input))

    run_config = config.RunConfig(
        input_path=args.input,
        output_path=args.output,
        key=args.key,
        direction=Direction.from_encrypt(not args.decrypt),
    )
    app = ScrambleApp(run_config)
    app.mainloop()


if __name__ == "__main__":
    main()
