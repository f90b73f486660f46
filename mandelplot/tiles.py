from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np
from tqdm import tqdm

from mandelplot.bounds import PlotBounds, PlotOptions, Viewport
from mandelplot.engine.plot import CHANNELS, Plot
from mandelplot.util.logging_setup import get_logger, logging_initialiser

_G = {}


@dataclass(frozen=True)
class Tile:
    top: int
    left: int
    height: int
    width: int


def tile_layout(viewport: Viewport) -> List[Tile]:
    """Cover the viewport with chunk_size squares, clipped at the right and bottom edges."""
    if viewport.width < 1 or viewport.height < 1 or viewport.chunk_size < 1:
        raise ValueError("viewport width, height and chunk_size must be positive.")
    size = viewport.chunk_size
    tiles: List[Tile] = []
    for top in range(0, viewport.height, size):
        for left in range(0, viewport.width, size):
            tiles.append(Tile(
                top=top,
                left=left,
                height=min(size, viewport.height - top),
                width=min(size, viewport.width - left),
            ))
    return tiles


def tile_bounds(bounds: PlotBounds, viewport: Viewport, tile: Tile) -> PlotBounds:
    real_step = bounds.real_range / viewport.width
    imag_step = bounds.imag_range / viewport.height
    return PlotBounds(
        min_real=bounds.min_real + tile.left * real_step,
        real_range=tile.width * real_step,
        min_imag=bounds.max_imag - (tile.top + tile.height) * imag_step,
        imag_range=tile.height * imag_step,
    )


def _plot_tile(bounds: PlotBounds, options: PlotOptions, tile: Tile) -> np.ndarray:
    plot = Plot(
        tile.width,
        tile.height,
        bounds.min_real,
        bounds.real_range,
        bounds.min_imag,
        bounds.imag_range,
        options.max_iterations,
        options.divergence_bound,
        parallel=options.parallel,
    )
    plot.calc_pixels()
    return plot.as_array()


def _init_worker(bounds, viewport, options, log_queue, log_level):
    _G["bounds"] = bounds
    _G["viewport"] = viewport
    _G["options"] = options
    logging_initialiser(log_queue, log_level)


def _render_tile(tile: Tile) -> Tuple[Tile, np.ndarray]:
    bounds = tile_bounds(_G["bounds"], _G["viewport"], tile)
    pixels = _plot_tile(bounds, _G["options"], tile)
    get_logger("tiles").debug("Tile (%s,%s) %sx%s done", tile.top, tile.left, tile.width, tile.height)
    return tile, np.array(pixels)


def render_tiled(
    bounds: PlotBounds,
    viewport: Viewport,
    options: PlotOptions,
    *,
    workers: int = 1,
    log_queue=None,
    log_level: int = logging.INFO,
    progress: bool = False,
) -> np.ndarray:
    """
    Render the viewport one independent Plot per tile and stitch the results
    into a (height, width, 4) uint8 array.

    With workers > 1 tiles are spread over a process pool; worker log records
    go through `log_queue` when one is given.
    """
    if workers < 1:
        raise ValueError("workers must be >= 1.")
    logger = get_logger("tiles")
    tiles = tile_layout(viewport)
    buf = np.zeros((viewport.height, viewport.width, CHANNELS), dtype=np.uint8)

    logger.info("Tiled render start size=%sx%s tiles=%s chunk=%s workers=%s",
                viewport.width, viewport.height, len(tiles), viewport.chunk_size, workers)

    with tqdm(total=len(tiles), unit="tile", disable=not progress) as bar:
        if workers == 1:
            for tile in tiles:
                pixels = _plot_tile(tile_bounds(bounds, viewport, tile), options, tile)
                buf[tile.top:tile.top + tile.height, tile.left:tile.left + tile.width] = pixels
                bar.update(1)
        else:
            with ProcessPoolExecutor(
                max_workers=workers,
                initializer=_init_worker,
                initargs=(bounds, viewport, options, log_queue, log_level),
            ) as pool:
                for tile, pixels in pool.map(_render_tile, tiles):
                    buf[tile.top:tile.top + tile.height, tile.left:tile.left + tile.width] = pixels
                    bar.update(1)

    logger.info("Tiled render done")
    return buf
