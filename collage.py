from __future__ import annotations

import argparse
from concurrent import futures
from concurrent.futures import ThreadPoolExecutor, as_completed
import io
import logging
import math
import os
import random
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Mapping, Sequence, Tuple, Union

from PIL import Image, ImageOps


LOGGER_NAME = "collage"
logger = logging.getLogger(LOGGER_NAME)

SUPPORTED_EXTS = {".jpg", ".jpeg", ".png", ".webp", ".bmp", ".tif", ".tiff", ".gif"}

# split fraction is drawn uniformly from this range for every cut
SPLIT_FRACTION_RANGE = (0.3, 0.7)
# regions whose w/h falls inside this band get a coin-flip axis
SQUARE_BAND = (0.8, 1.2)

JPEG_QUALITY = 92

# allow large images; keep a very high limit to avoid PIL warning spam
Image.MAX_IMAGE_PIXELS = max(int(getattr(Image, "MAX_IMAGE_PIXELS", 0) or 0), 250_000_000)

ImageSource = Union[str, "os.PathLike[str]", bytes, bytearray, Image.Image]
Color = Tuple[int, int, int]


class CollageError(Exception):
    pass


class InvalidAspectRatio(CollageError, ValueError):
    def __init__(self, ratio: str) -> None:
        super().__init__(f"unknown aspect ratio {ratio!r}; use one of {', '.join(ASPECT_RATIOS)}")
        self.ratio = ratio


class InvalidCanvasSize(CollageError, ValueError):
    def __init__(self, width: float, height: float) -> None:
        super().__init__(f"canvas size must be positive, got {width}x{height}")
        self.width = width
        self.height = height


class LayoutError(CollageError):
    pass


class ImageDecodeFailure(CollageError):
    def __init__(self, source: object, reason: str, index: int | None = None) -> None:
        super().__init__(f"cannot decode {_describe(source)}: {reason}")
        self.source = source
        self.reason = reason
        self.index = index


class CompositeIncomplete(CollageError):
    def __init__(self, failed: Sequence[int], failures: Mapping[int, ImageDecodeFailure] | None = None) -> None:
        idx = ", ".join(str(i) for i in failed)
        super().__init__(f"{len(failed)} image(s) could not be decoded: indices [{idx}]")
        self.failed = tuple(failed)
        self.failures = dict(failures or {})


def _effective_workers(workers: int) -> int:
    if workers <= 0:
        cpu = os.cpu_count() or 4
        return min(32, max(1, cpu * 2))
    return max(1, int(workers))


def _describe(source: object) -> str:
    if isinstance(source, Image.Image):
        return f"<image {source.width}x{source.height}>"
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} bytes>"
    return str(source)


# --------------------------------------------------------------------------
# canvas sizing
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class CanvasSpec:
    width: int
    height: int

    @property
    def aspect(self) -> float:
        return self.width / self.height


ASPECT_PRESETS: dict[str, CanvasSpec] = {
    "1:1": CanvasSpec(1200, 1200),
    "16:9": CanvasSpec(1920, 1080),
    "9:16": CanvasSpec(1080, 1920),
    "1:3": CanvasSpec(1080, 3240),
    "3:1": CanvasSpec(3240, 1080),
}

ASPECT_RATIOS: tuple[str, ...] = tuple(ASPECT_PRESETS)


def canvas_for_ratio(ratio: str) -> CanvasSpec:
    try:
        return ASPECT_PRESETS[ratio]
    except (KeyError, TypeError):
        raise InvalidAspectRatio(ratio) from None


def parse_canvas(ratio: str | None, size: str | None) -> CanvasSpec:
    if size:
        parts = size.lower().replace("×", "x").replace("x", ":").split(":")
        if len(parts) != 2:
            raise ValueError("--size must be like 1080x1920")
        w, h = int(parts[0]), int(parts[1])
        if w <= 0 or h <= 0:
            raise InvalidCanvasSize(w, h)
        return CanvasSpec(w, h)

    return canvas_for_ratio((ratio or "1:1").strip())


def parse_rgb(value: str) -> Color:
    s = value.strip().lower()
    if s.startswith("#"):
        s = s[1:]
    if len(s) != 6 or any(c not in "0123456789abcdef" for c in s):
        raise ValueError("--background must be RRGGBB or #RRGGBB")
    r = int(s[0:2], 16)
    g = int(s[2:4], 16)
    b = int(s[4:6], 16)
    return (r, g, b)


# --------------------------------------------------------------------------
# layout
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    @property
    def area(self) -> float:
        return self.w * self.h

    @property
    def aspect(self) -> float:
        return self.w / self.h if self.h else 1.0

    def split(self, vertical: bool, fraction: float) -> tuple[Rect, Rect]:
        # second half is measured from the far edge so the pair covers self exactly
        if vertical:
            cut = self.x + self.w * fraction
            return (
                Rect(self.x, self.y, cut - self.x, self.h),
                Rect(cut, self.y, (self.x + self.w) - cut, self.h),
            )
        cut = self.y + self.h * fraction
        return (
            Rect(self.x, self.y, self.w, cut - self.y),
            Rect(self.x, cut, self.w, (self.y + self.h) - cut),
        )


@dataclass(frozen=True)
class Tile:
    x: float
    y: float
    width: float
    height: float
    image_index: int

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def aspect(self) -> float:
        return self.width / self.height if self.height else 1.0


def _interiors_overlap(a: Tile, b: Tile, tol: float) -> bool:
    ow = min(a.x + a.width, b.x + b.width) - max(a.x, b.x)
    oh = min(a.y + a.height, b.y + b.height) - max(a.y, b.y)
    return ow > tol and oh > tol


@dataclass(frozen=True)
class LayoutPlan:
    width: float
    height: float
    tiles: tuple[Tile, ...] = ()

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(self.tiles)

    def indices(self) -> list[int]:
        return sorted(t.image_index for t in self.tiles)

    def tile_for(self, image_index: int) -> Tile | None:
        return next((t for t in self.tiles if t.image_index == image_index), None)

    def validate(self, tol: float = 1e-6) -> None:
        """Raise LayoutError unless the tiles partition the canvas one image each."""
        n = len(self.tiles)
        if self.indices() != list(range(n)):
            raise LayoutError(f"image indices {self.indices()} are not a permutation of 0..{n - 1}")

        for t in self.tiles:
            if t.width <= 0 or t.height <= 0:
                raise LayoutError(f"tile for image {t.image_index} has no area")
            if t.x < -tol or t.y < -tol or t.x + t.width > self.width + tol or t.y + t.height > self.height + tol:
                raise LayoutError(f"tile for image {t.image_index} leaves the canvas")

        if n:
            total = sum(t.area for t in self.tiles)
            canvas_area = self.width * self.height
            if abs(total - canvas_area) > tol * max(1.0, canvas_area):
                raise LayoutError(f"tile areas sum to {total}, canvas is {canvas_area}")

        for i in range(n):
            for j in range(i + 1, n):
                if _interiors_overlap(self.tiles[i], self.tiles[j], tol):
                    raise LayoutError(
                        f"tiles for images {self.tiles[i].image_index} and {self.tiles[j].image_index} overlap"
                    )


def shuffled_indices(count: int, rng: random.Random) -> tuple[int, ...]:
    order = list(range(count))
    # Fisher-Yates
    for i in range(len(order) - 1, 0, -1):
        j = rng.randint(0, i)
        order[i], order[j] = order[j], order[i]
    return tuple(order)


def choose_split_axis(aspect: float, rng: random.Random) -> bool:
    """True splits side by side, False stacks top and bottom."""
    lo, hi = SQUARE_BAND
    if aspect > hi:
        return True
    if aspect > lo:
        return rng.random() < 0.5
    return False


def split_count(remaining: int, fraction: float) -> int:
    """Size of the first group when `remaining` indices are cut at `fraction`.

    The plain ceiling can swallow every index (ceil(2 * 0.6) == 2), so the
    result is clamped to [1, remaining - 1]: both groups are non-empty for any
    remaining >= 2.
    """
    if remaining < 2:
        raise ValueError("need at least 2 indices to split")
    first = int(math.ceil(remaining * fraction))
    return max(1, min(remaining - 1, first))


def generate_layout(
    image_count: int,
    width: float,
    height: float,
    rng: random.Random | None = None,
) -> LayoutPlan:
    if image_count < 0:
        raise ValueError("image_count must be >= 0")
    if not (width > 0 and height > 0):
        raise InvalidCanvasSize(width, height)

    if rng is None:
        rng = random.Random()

    order = shuffled_indices(image_count, rng)
    lo, hi = SPLIT_FRACTION_RANGE

    tiles: List[Tile] = []
    splits = 0
    stack: List[tuple[Rect, tuple[int, ...]]] = [(Rect(0.0, 0.0, float(width), float(height)), order)]
    while stack:
        region, group = stack.pop()
        if not group:
            continue
        if len(group) == 1:
            tiles.append(Tile(region.x, region.y, region.w, region.h, group[0]))
            continue

        vertical = choose_split_axis(region.aspect, rng)
        fraction = rng.uniform(lo, hi)
        k = split_count(len(group), fraction)
        first, second = region.split(vertical, fraction)
        splits += 1

        # pushed in reverse so the first half is laid out first
        stack.append((second, group[k:]))
        stack.append((first, group[:k]))

    logger.debug("layout: %d tiles from %d splits on %gx%g", len(tiles), splits, width, height)
    return LayoutPlan(width=width, height=height, tiles=tuple(tiles))


def layout_stats(plan: LayoutPlan) -> dict[str, float]:
    areas = [t.area for t in plan if t.area > 0]
    if not areas:
        return {"tiles": 0.0, "max_min_ratio": 0.0, "area_cv": 0.0}
    n = len(areas)
    avg_a = sum(areas) / n
    min_a = min(areas)
    max_a = max(areas)
    var = sum((a - avg_a) ** 2 for a in areas) / n
    cv = (math.sqrt(var) / avg_a) if avg_a else 0.0
    ratio = (max_a / min_a) if min_a else 0.0
    return {"tiles": float(n), "max_min_ratio": ratio, "area_cv": cv}


# --------------------------------------------------------------------------
# decoding
# --------------------------------------------------------------------------


def iter_image_files(folder: Path, recursive: bool) -> List[Path]:
    if not folder.exists() or not folder.is_dir():
        raise FileNotFoundError(f"input folder not found: {folder}")

    files: List[Path] = []
    if recursive:
        walker: Iterable[Path] = folder.rglob("*")
    else:
        walker = folder.glob("*")

    for p in walker:
        if p.is_file() and p.suffix.lower() in SUPPORTED_EXTS:
            files.append(p)

    return files


def _has_alpha(img: Image.Image) -> bool:
    return "A" in img.getbands() or "transparency" in img.info


def decode_image(source: ImageSource) -> Image.Image:
    try:
        if isinstance(source, Image.Image):
            img = ImageOps.exif_transpose(source)
        else:
            fp = io.BytesIO(bytes(source)) if isinstance(source, (bytes, bytearray)) else Path(source)
            with Image.open(fp) as opened:
                img = ImageOps.exif_transpose(opened)
        if img.mode not in ("RGB", "RGBA"):
            img = img.convert("RGBA" if _has_alpha(img) else "RGB")
        img.load()
    except (OSError, ValueError, SyntaxError, Image.DecompressionBombError) as e:
        raise ImageDecodeFailure(source, str(e) or type(e).__name__) from e
    return img


@dataclass(frozen=True)
class ImageRecord:
    image: Image.Image
    source: str = ""

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height

    def close(self) -> None:
        self.image.close()


@dataclass
class DecodeResult:
    records: dict[int, ImageRecord] = field(default_factory=dict)
    failures: dict[int, ImageDecodeFailure] = field(default_factory=dict)


def _harvest(fut: futures.Future, idx: int, source: ImageSource, result: DecodeResult) -> None:
    try:
        result.records[idx] = ImageRecord(fut.result(), _describe(source))
        return
    except ImageDecodeFailure as e:
        e.index = idx
        err = e
    except Exception as e:
        err = ImageDecodeFailure(source, str(e) or type(e).__name__, index=idx)
        err.__cause__ = e
    result.failures[idx] = err
    logger.warning("image %d: %s", idx, err)


def decode_images(
    sources: Mapping[int, ImageSource] | Sequence[ImageSource],
    workers: int = 0,
    timeout: float | None = None,
    decoder: Callable[[ImageSource], Image.Image] = decode_image,
) -> DecodeResult:
    jobs = dict(sources) if isinstance(sources, Mapping) else dict(enumerate(sources))
    result = DecodeResult()
    if not jobs:
        return result

    n_workers = min(_effective_workers(workers), len(jobs))
    ex = ThreadPoolExecutor(max_workers=n_workers)
    try:
        futs = {ex.submit(decoder, src): idx for idx, src in jobs.items()}
        try:
            for fut in as_completed(futs, timeout=timeout):
                idx = futs[fut]
                _harvest(fut, idx, jobs[idx], result)
        except futures.TimeoutError:
            for fut, idx in futs.items():
                if idx in result.records or idx in result.failures:
                    continue
                # finished after the deadline fired but before this sweep
                if fut.done() and not fut.cancelled():
                    _harvest(fut, idx, jobs[idx], result)
                    continue
                fut.cancel()
                err = ImageDecodeFailure(jobs[idx], f"decode timed out after {timeout}s", index=idx)
                result.failures[idx] = err
                logger.warning("image %d: %s", idx, err)
    finally:
        # never join here: a stuck decode must not hold the barrier
        ex.shutdown(wait=False, cancel_futures=True)

    return result


# --------------------------------------------------------------------------
# compositing
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class CropBox:
    sx: float
    sy: float
    s_width: float
    s_height: float

    def as_box(self) -> tuple[float, float, float, float]:
        return (self.sx, self.sy, self.sx + self.s_width, self.sy + self.s_height)


def cover_crop_box(img_w: float, img_h: float, rect_w: float, rect_h: float) -> CropBox:
    if img_w <= 0 or img_h <= 0 or rect_w <= 0 or rect_h <= 0:
        raise ValueError("cover crop needs positive image and target sizes")

    img_aspect = img_w / img_h
    rect_aspect = rect_w / rect_h

    if img_aspect > rect_aspect:
        s_width = img_h * rect_aspect
        return CropBox((img_w - s_width) / 2, 0.0, s_width, float(img_h))

    s_height = img_w / rect_aspect
    return CropBox(0.0, (img_h - s_height) / 2, float(img_w), s_height)


def pixel_box(tile: Tile) -> tuple[int, int, int, int]:
    # rounding edges (not sizes) keeps neighbouring tiles gap-free on the pixel grid
    left = int(round(tile.x))
    top = int(round(tile.y))
    right = int(round(tile.x + tile.width))
    bottom = int(round(tile.y + tile.height))
    return left, top, right, bottom


def new_surface(canvas: CanvasSpec, background: Color | None = None) -> Image.Image:
    if background is None:
        return Image.new("RGBA", (canvas.width, canvas.height), color=(0, 0, 0, 0))
    return Image.new("RGB", (canvas.width, canvas.height), color=background)


def clear_surface(surface: Image.Image, background: Color | None = None) -> None:
    bands = len(surface.getbands())
    if background is None:
        fill: tuple[int, ...] = (0,) * bands
    else:
        fill = tuple(background) + (255,) * max(0, bands - len(background))
        fill = fill[:bands]
    surface.paste(fill if bands > 1 else fill[0], (0, 0, surface.width, surface.height))


@dataclass
class CompositeReport:
    drawn: list[int] = field(default_factory=list)
    missing: list[int] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.missing


def _draw_tile(
    surface: Image.Image,
    record: ImageRecord,
    tile: Tile,
    resample: Image.Resampling,
) -> bool:
    left, top, right, bottom = pixel_box(tile)
    dw, dh = right - left, bottom - top
    if dw <= 0 or dh <= 0:
        return False

    img = record.image
    # crop to the rounded target so the scale is uniform on the raster
    crop = cover_crop_box(img.width, img.height, dw, dh)
    sx0, sy0, sx1, sy1 = crop.as_box()
    box = (max(0.0, sx0), max(0.0, sy0), min(float(img.width), sx1), min(float(img.height), sy1))
    piece = img.resize((dw, dh), resample=resample, box=box)

    if piece.mode == surface.mode:
        surface.paste(piece, (left, top))
    elif piece.mode == "RGBA":
        surface.paste(piece.convert(surface.mode), (left, top), mask=piece.getchannel("A"))
    else:
        surface.paste(piece.convert(surface.mode), (left, top))
    return True


def composite(
    surface: Image.Image,
    images: Mapping[int, ImageRecord],
    plan: LayoutPlan,
    background: Color | None = None,
    resample: Image.Resampling = Image.Resampling.LANCZOS,
) -> CompositeReport:
    clear_surface(surface, background)

    report = CompositeReport()
    sx = surface.width / plan.width if plan.width else 1.0
    sy = surface.height / plan.height if plan.height else 1.0

    for tile in plan:
        record = images.get(tile.image_index)
        if record is None:
            logger.warning("no decoded image for index %d; leaving its tile blank", tile.image_index)
            report.missing.append(tile.image_index)
            continue
        if sx != 1.0 or sy != 1.0:
            tile = Tile(tile.x * sx, tile.y * sy, tile.width * sx, tile.height * sy, tile.image_index)
        if _draw_tile(surface, record, tile, resample):
            report.drawn.append(tile.image_index)

    report.drawn.sort()
    report.missing.sort()
    return report


# --------------------------------------------------------------------------
# session / regeneration
# --------------------------------------------------------------------------


@dataclass
class CollageResult:
    generation: int
    ratio: str
    canvas: CanvasSpec
    plan: LayoutPlan
    image: Image.Image
    report: CompositeReport
    failures: dict[int, ImageDecodeFailure] = field(default_factory=dict)


class CollageSession:
    """Image set + aspect ratio + RNG, rendered on demand.

    Every change (images added or cleared, ratio switched, regenerate) bumps
    the generation counter. A render whose generation was superseded while it
    was decoding or compositing is dropped and `render()` returns None.
    Records released by `clear()` are closed once no render is in flight.
    """

    def __init__(
        self,
        sources: Iterable[ImageSource] = (),
        ratio: str = "1:1",
        *,
        canvas: CanvasSpec | None = None,
        seed: int | None = None,
        background: Color | None = None,
        workers: int = 0,
        timeout: float | None = None,
        strict: bool = False,
        resample: Image.Resampling = Image.Resampling.LANCZOS,
        decoder: Callable[[ImageSource], Image.Image] = decode_image,
    ) -> None:
        canvas_for_ratio(ratio)
        self._lock = threading.Lock()
        self._sources: list[ImageSource] = list(sources)
        self._records: dict[int, ImageRecord] = {}
        self._ratio = ratio
        self._canvas = canvas
        self._rng = random.Random(seed)
        self._generation = 0
        self._epoch = 0
        # records dropped by clear() while a render may still be drawing them
        self._retired: list[ImageRecord] = []
        self._active = 0

        self.background = background
        self.workers = workers
        self.timeout = timeout
        self.strict = strict
        self.resample = resample
        self.decoder = decoder

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def ratio(self) -> str:
        return self._ratio

    @property
    def image_count(self) -> int:
        return len(self._sources)

    @property
    def canvas(self) -> CanvasSpec:
        return self._canvas or canvas_for_ratio(self._ratio)

    def is_current(self, generation: int) -> bool:
        return generation == self._generation

    def add_images(self, sources: Iterable[ImageSource]) -> int:
        with self._lock:
            self._sources.extend(sources)
            self._epoch += 1
            self._generation += 1
            return len(self._sources)

    def clear(self) -> None:
        with self._lock:
            self._retired.extend(self._records.values())
            self._records.clear()
            self._sources.clear()
            self._epoch += 1
            self._generation += 1
            closing = self._take_retired()
        for rec in closing:
            rec.close()

    def _take_retired(self) -> list[ImageRecord]:
        # caller holds the lock; retired records close only once no render is in flight
        if self._active:
            return []
        closing, self._retired = self._retired, []
        return closing

    def set_ratio(self, ratio: str) -> None:
        canvas_for_ratio(ratio)
        with self._lock:
            self._ratio = ratio
            self._canvas = None
            self._generation += 1

    def regenerate(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def render(self) -> CollageResult | None:
        with self._lock:
            self._active += 1
        try:
            return self._render()
        finally:
            with self._lock:
                self._active -= 1
                closing = self._take_retired()
            for rec in closing:
                rec.close()

    def _render(self) -> CollageResult | None:
        with self._lock:
            generation = self._generation
            epoch = self._epoch
            sources = list(self._sources)
            cached = dict(self._records)
            ratio = self._ratio
            canvas = self._canvas or canvas_for_ratio(ratio)
            rng = random.Random(self._rng.getrandbits(64))

        plan = generate_layout(len(sources), canvas.width, canvas.height, rng=rng)

        pending = {i: src for i, src in enumerate(sources) if i not in cached}
        decoded = decode_images(pending, workers=self.workers, timeout=self.timeout, decoder=self.decoder)

        with self._lock:
            if epoch == self._epoch:
                self._records.update(decoded.records)
            else:
                self._retired.extend(decoded.records.values())
            superseded = generation != self._generation
        if superseded:
            logger.debug("render %d superseded by %d; discarding", generation, self._generation)
            return None

        failed = sorted(decoded.failures)
        if failed and self.strict:
            raise CompositeIncomplete(failed, decoded.failures)

        records = {**cached, **decoded.records}
        surface = new_surface(canvas, self.background)
        report = composite(surface, records, plan, background=self.background, resample=self.resample)

        if not self.is_current(generation):
            logger.debug("render %d superseded while compositing; discarding", generation)
            return None

        logger.info(
            "render %d: %s %dx%d, %d tiles drawn, %d blank",
            generation,
            ratio,
            canvas.width,
            canvas.height,
            len(report.drawn),
            len(report.missing),
        )
        return CollageResult(
            generation=generation,
            ratio=ratio,
            canvas=canvas,
            plan=plan,
            image=surface,
            report=report,
            failures=dict(decoded.failures),
        )


# --------------------------------------------------------------------------
# export / CLI
# --------------------------------------------------------------------------


def export_name(ratio: str, ext: str = "png") -> str:
    return f"collage-{ratio}.{ext.lstrip('.')}"


def save_collage(img: Image.Image, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    ext = path.suffix.lower()
    if ext in {".jpg", ".jpeg"}:
        if img.mode != "RGB":
            flat = Image.new("RGB", img.size, (0, 0, 0))
            if _has_alpha(img):
                flat.paste(img.convert("RGBA"), (0, 0), mask=img.convert("RGBA").getchannel("A"))
            else:
                flat.paste(img.convert("RGB"), (0, 0))
            img = flat
        img.save(path, quality=JPEG_QUALITY, subsampling=1, optimize=True)
    else:
        img.save(path)
    logger.info("saved %s", path)
    return path


def output_paths(output: str | None, ratio: str, variants: int) -> List[Path]:
    if output is None:
        base = Path(export_name(ratio))
    else:
        base = Path(output)
        if output.endswith(("/", os.sep)) or base.is_dir():
            base = base / export_name(ratio)

    if variants <= 1:
        return [base]
    return [base.with_name(f"{base.stem}-{i}{base.suffix}") for i in range(1, variants + 1)]


def configure_logging(level: str | int = logging.INFO) -> logging.Logger:
    log = logging.getLogger(LOGGER_NAME)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    log.setLevel(level)
    if log.handlers:
        return log

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s - %(levelname)s - %(name)s - %(message)s"))
    log.addHandler(handler)
    log.propagate = False
    return log


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Tile a folder of photos into a randomly partitioned collage that exactly fills the chosen aspect ratio."
    )

    parser.add_argument("--input", type=str, default=".", help="Input folder containing photos.")
    parser.add_argument("--recursive", action="store_true", help="Scan input folder recursively")

    parser.add_argument(
        "--ratio",
        type=str,
        default="1:1",
        choices=list(ASPECT_RATIOS),
        help="Canvas aspect ratio. Ignored if --size is provided.",
    )
    parser.add_argument("--size", type=str, default=None, help="Explicit canvas size like 1080x1920.")

    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Output file or folder (default: collage-<ratio>.png in the current folder).",
    )
    parser.add_argument(
        "--variants",
        type=int,
        default=1,
        help="Number of regenerated layouts to write; files get a -1..N suffix when > 1.",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed (for reproducible results)")
    parser.add_argument(
        "--background",
        type=str,
        default=None,
        help="Background color in RRGGBB or #RRGGBB. Without it PNG output keeps blank tiles transparent.",
    )

    parser.add_argument("--workers", type=int, default=0, help="Thread workers for image decoding. 0 means auto.")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Seconds to wait for all decodes; images still pending are treated as failed.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail instead of leaving blank tiles when an image cannot be decoded.",
    )
    parser.add_argument("--stats", action="store_true", help="Print tile statistics to stdout")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity on stderr.",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        canvas = parse_canvas(args.ratio, args.size)
        background = parse_rgb(args.background) if args.background else None
    except ValueError as e:
        raise SystemExit(str(e))

    folder = Path(args.input)
    try:
        files = iter_image_files(folder, recursive=args.recursive)
    except FileNotFoundError as e:
        raise SystemExit(str(e))
    if not files:
        raise SystemExit(f"No images found in: {folder}")

    session = CollageSession(
        sorted(files),
        args.ratio,
        canvas=canvas,
        seed=args.seed,
        background=background,
        workers=args.workers,
        timeout=args.timeout,
        strict=args.strict,
    )

    for i, out_path in enumerate(output_paths(args.output, args.ratio, max(1, int(args.variants)))):
        if i:
            session.regenerate()
        try:
            result = session.render()
        except CompositeIncomplete as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        if result is None:
            continue

        save_collage(result.image, out_path)
        print(f"Saved: {out_path}")

        if args.stats:
            st = layout_stats(result.plan)
            print(f"tiles: n={int(st['tiles'])}; max/min area={st['max_min_ratio']:.2f}; area cv={st['area_cv']:.2f}")
        if result.report.missing:
            blank = ", ".join(str(result.failures[j].source) if j in result.failures else str(j) for j in result.report.missing)
            print(f"blank tiles for: {blank}", file=sys.stderr)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
