from __future__ import annotations

import logging
import threading
import tkinter as tk
from pathlib import Path
from tkinter import filedialog, messagebox
from tkinter import ttk

from PIL import Image, ImageTk

import collage


logger = logging.getLogger("collage.gui")

PREVIEW_MAX = 720


class CollageGui(tk.Tk):
    def __init__(self) -> None:
        super().__init__()
        self.title("Collage Maker")
        self.geometry("980x720")

        self.session = collage.CollageSession(ratio="1:1", resample=Image.Resampling.BILINEAR)
        self._last_result: collage.CollageResult | None = None
        self._preview_tk: ImageTk.PhotoImage | None = None
        self._progress: ttk.Progressbar | None = None

        self.ratio_var = tk.StringVar(value=self.session.ratio)
        self.recursive_var = tk.BooleanVar(value=False)
        self.images_var = tk.StringVar(value="Images: 0")
        self.status_var = tk.StringVar(value="")
        self.stats_var = tk.StringVar(value="")

        self._build_ui()

    def _build_ui(self) -> None:
        self.columnconfigure(1, weight=1)
        self.rowconfigure(0, weight=1)

        left = ttk.Frame(self, padding=12)
        left.grid(row=0, column=0, sticky="nsw")

        right = ttk.Frame(self, padding=12)
        right.grid(row=0, column=1, sticky="nsew")
        right.columnconfigure(0, weight=1)
        right.rowconfigure(0, weight=1)

        ttk.Label(left, text="Canvas size").grid(row=0, column=0, sticky="w")
        ratio_row = ttk.Frame(left)
        ratio_row.grid(row=1, column=0, sticky="w", pady=(4, 10))
        for i, ratio in enumerate(collage.ASPECT_RATIOS):
            ttk.Radiobutton(
                ratio_row,
                text=ratio,
                value=ratio,
                variable=self.ratio_var,
                command=self._on_ratio_changed,
            ).grid(row=0, column=i, padx=(0, 6))

        add_row = ttk.Frame(left)
        add_row.grid(row=2, column=0, sticky="ew", pady=(0, 4))
        add_row.columnconfigure(0, weight=1)
        add_row.columnconfigure(1, weight=1)
        self.add_files_btn = ttk.Button(add_row, text="Add photos...", command=self._on_add_files)
        self.add_files_btn.grid(row=0, column=0, sticky="ew")
        self.add_folder_btn = ttk.Button(add_row, text="Add folder...", command=self._on_add_folder)
        self.add_folder_btn.grid(row=0, column=1, sticky="ew", padx=(8, 0))
        ttk.Checkbutton(left, text="Include subfolders", variable=self.recursive_var).grid(
            row=3, column=0, sticky="w", pady=(0, 10)
        )

        ttk.Label(left, textvariable=self.images_var, foreground="#444").grid(row=4, column=0, sticky="w", pady=(0, 10))

        btn_row = ttk.Frame(left)
        btn_row.grid(row=5, column=0, sticky="ew", pady=(8, 8))
        btn_row.columnconfigure(0, weight=1)
        btn_row.columnconfigure(1, weight=1)
        self.clear_btn = ttk.Button(btn_row, text="Clear all", command=self._on_clear)
        self.clear_btn.grid(row=0, column=0, sticky="ew")
        self.refresh_btn = ttk.Button(btn_row, text="Regenerate", command=self._on_regenerate)
        self.refresh_btn.grid(row=0, column=1, sticky="ew", padx=(8, 0))

        self.save_btn = ttk.Button(left, text="Save collage", command=self._on_save)
        self.save_btn.grid(row=6, column=0, sticky="ew")

        self._progress = ttk.Progressbar(left, mode="indeterminate")
        self._progress.grid(row=7, column=0, sticky="ew", pady=(8, 0))

        ttk.Separator(left, orient="horizontal").grid(row=8, column=0, sticky="ew", pady=(10, 10))
        ttk.Label(left, textvariable=self.status_var, foreground="#444").grid(row=9, column=0, sticky="w")
        ttk.Label(left, textvariable=self.stats_var, foreground="#444").grid(row=10, column=0, sticky="w", pady=(6, 0))

        self.preview_label = ttk.Label(right)
        self.preview_label.grid(row=0, column=0, sticky="nsew")

    def _set_busy(self, busy: bool) -> None:
        state = "disabled" if busy else "normal"
        self.save_btn.configure(state=state)
        if self._progress is not None:
            if busy:
                self._progress.start(10)
            else:
                self._progress.stop()

    def _update_count(self) -> None:
        self.images_var.set(f"Images: {self.session.image_count}")

    def _on_add_files(self) -> None:
        paths = filedialog.askopenfilenames(
            filetypes=[("Images", " ".join(f"*{e}" for e in sorted(collage.SUPPORTED_EXTS))), ("All", "*.*")],
        )
        if not paths:
            return
        self.session.add_images(Path(p) for p in paths)
        self._update_count()
        self._run_render()

    def _on_add_folder(self) -> None:
        folder = filedialog.askdirectory()
        if not folder:
            return
        try:
            files = collage.iter_image_files(Path(folder), recursive=bool(self.recursive_var.get()))
        except FileNotFoundError as e:
            messagebox.showerror("Error", str(e))
            return
        if not files:
            messagebox.showinfo("Collage", f"No images found in: {folder}")
            return
        self.session.add_images(sorted(files))
        self._update_count()
        self._run_render()

    def _on_clear(self) -> None:
        self.session.clear()
        self._last_result = None
        self._preview_tk = None
        self.preview_label.configure(image="")
        self._update_count()
        self.status_var.set("")
        self.stats_var.set("")

    def _on_ratio_changed(self) -> None:
        self.session.set_ratio(self.ratio_var.get())
        if self.session.image_count:
            self._run_render()

    def _on_regenerate(self) -> None:
        if not self.session.image_count:
            return
        self.session.regenerate()
        self._run_render()

    def _render(self) -> None:
        try:
            result = self.session.render()
            if result is None:
                return

            preview = result.image.copy()
            preview.thumbnail((PREVIEW_MAX, PREVIEW_MAX))

            st = collage.layout_stats(result.plan)
            tiles_line = f"tiles: n={int(st['tiles'])}; max/min={st['max_min_ratio']:.2f}; cv={st['area_cv']:.2f}"
            if result.report.missing:
                tiles_line += f"    blank: {len(result.report.missing)}"

            def update_ui() -> None:
                # a newer request may have finished first
                if not self.session.is_current(result.generation):
                    return
                self._last_result = result
                self._preview_tk = ImageTk.PhotoImage(preview)
                self.preview_label.configure(image=self._preview_tk)
                self.status_var.set(
                    f"{result.ratio}  {result.canvas.width}x{result.canvas.height}  imgs={len(result.report.drawn)}"
                )
                self.stats_var.set(tiles_line)

            self.after(0, update_ui)
        except Exception as e:
            logger.exception("render failed")
            msg = str(e)
            self.after(0, lambda m=msg: messagebox.showerror("Error", m))
        finally:
            self.after(0, lambda: self._set_busy(False))

    def _run_render(self) -> None:
        self._set_busy(True)
        self.status_var.set("Rendering...")
        self.stats_var.set("")
        th = threading.Thread(target=self._render, daemon=True)
        th.start()

    def _on_save(self) -> None:
        result = self._last_result
        if result is None or not self.session.is_current(result.generation):
            messagebox.showinfo("Collage", "Nothing to save yet")
            return

        path = filedialog.asksaveasfilename(
            initialfile=collage.export_name(result.ratio),
            defaultextension=".png",
            filetypes=[("PNG", "*.png"), ("JPEG", "*.jpg;*.jpeg"), ("All", "*.*")],
        )
        if not path:
            return

        def save_worker() -> None:
            try:
                self.after(0, lambda: self._set_busy(True))
                out_path = collage.save_collage(result.image, Path(path))
                self.after(0, lambda: messagebox.showinfo("Collage", f"Saved: {out_path}"))
            except (OSError, ValueError) as e:
                msg = str(e)
                self.after(0, lambda m=msg: messagebox.showerror("Error", m))
            finally:
                self.after(0, lambda: self._set_busy(False))

        threading.Thread(target=save_worker, daemon=True).start()


def main() -> int:
    collage.configure_logging("INFO")
    app = CollageGui()
    app.mainloop()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
