from __future__ import annotations

import argparse
import logging
import subprocess
import time
from typing import Any, Dict, Optional

from mandelplot.config import build_query, config_to_params, load_config, normalise_config, parse_query
from mandelplot.engine.plot import Plot
from mandelplot.errors import PlotError
from mandelplot.image import array_to_image, draw_axes, save_png, to_image
from mandelplot.tiles import render_tiled
from mandelplot.util.hooks import set_panic_hook
from mandelplot.util.logging_setup import configure_root_logging, create_log_queue, start_queue_listener, get_logger
from mandelplot.util.manifest import build_manifest, write_manifest

def _git_commit() -> Optional[str]:
    try:
        r = subprocess.run(["git", "rev-parse", "HEAD"], capture_output=True, text=True, check=True)
        return r.stdout.strip()
    except (OSError, subprocess.CalledProcessError):
        return None

def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mandelplot", description="Escape-time Mandelbrot plotter.")
    p.add_argument("--config", type=str, default=None, help="Path to config JSON. If omitted, built-in defaults are used.")
    p.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG","INFO","WARNING","ERROR"], help="Log level.")
    p.add_argument("--log-file", type=str, default="mandelplot.log", help="Log file path (rotating). Set empty to disable file logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    r = sub.add_parser("render", help="Plot the region and save it as a PNG.")
    r.add_argument("--query", type=str, default=None, help="Overrides as a query string, e.g. 'minReal=-1&realRange=0.5'.")
    r.add_argument("--output", type=str, default=None, help="Output PNG (defaults to config.output).")
    r.add_argument("--workers", type=int, default=None, help="Worker processes for tiled rendering.")
    r.add_argument("--chunk-size", type=int, default=None, help="Tile edge in pixels.")
    r.add_argument("--parallel", action="store_true", help="Spread rows of each plot over threads.")
    r.add_argument("--no-axes", action="store_true", help="Do not draw the red axes.")
    r.add_argument("--manifest", type=str, default="artifacts/run.json", help="Run manifest path. Set empty to skip.")

    k = sub.add_parser("link", help="Print the effective config as a query string.")
    k.add_argument("--query", type=str, default=None, help="Overrides as a query string.")

    return p

def _effective_config(args: argparse.Namespace) -> Dict[str, Any]:
    cfg = load_config(args.config)
    if args.query:
        cfg.update(parse_query(args.query))
    if args.cmd == "render":
        if args.output:
            cfg["output"] = args.output
        if args.workers is not None:
            cfg["workers"] = args.workers
        if args.chunk_size is not None:
            cfg["chunk_size"] = args.chunk_size
        if args.parallel:
            cfg["parallel"] = True
        if args.no_axes:
            cfg["show_axes"] = False
    return normalise_config(cfg)

def _render(cfg: Dict[str, Any], queue, log_level: int) -> Dict[str, Any]:
    logger = get_logger()
    bounds, viewport, options = config_to_params(cfg)
    start = time.perf_counter()

    single = cfg["workers"] == 1 and viewport.width <= viewport.chunk_size and viewport.height <= viewport.chunk_size
    if single:
        plot = Plot(
            viewport.width, viewport.height,
            bounds.min_real, bounds.real_range, bounds.min_imag, bounds.imag_range,
            options.max_iterations, options.divergence_bound,
            parallel=options.parallel,
        )
        plot.calc_pixels()
        img = to_image(plot)
    else:
        pixels = render_tiled(bounds, viewport, options, workers=cfg["workers"],
                              log_queue=queue, log_level=log_level, progress=True)
        img = array_to_image(pixels)

    if cfg["show_axes"]:
        draw_axes(img, bounds)
    path = save_png(img, cfg["output"])
    elapsed = time.perf_counter() - start
    logger.info("Saved %sx%s plot -> %s (%.2fs)", viewport.width, viewport.height, path, elapsed)
    return {
        "mode": "single" if single else "tiled",
        "output": path,
        "byte_length": viewport.width * viewport.height * 4,
        "elapsed_s": round(elapsed, 4),
    }

def main(argv: Optional[list] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    log_level = getattr(logging, args.log_level.upper(), logging.INFO)
    log_file = args.log_file if args.log_file and args.log_file.strip() else None
    listener_logger = configure_root_logging(level=log_level, console=True, log_file=log_file)
    set_panic_hook()

    queue = create_log_queue()
    listener = start_queue_listener(queue, listener_logger)

    logger = get_logger()

    try:
        try:
            cfg = _effective_config(args)
        except (ValueError, PlotError) as e:
            logger.error("Invalid configuration: %s", e)
            return 2

        if args.cmd == "link":
            print(build_query(cfg))
            return 0

        if args.cmd == "render":
            try:
                info = _render(cfg, queue, log_level)
            except PlotError as e:
                logger.error("Cannot build plot: %s", e)
                return 2
            if args.manifest:
                manifest = build_manifest(config=cfg, render_info=info, git_commit=_git_commit())
                write_manifest(args.manifest, manifest)
                logger.info("Run manifest written: %s", args.manifest)
            return 0

        raise RuntimeError("Unknown command.")
    finally:
        listener.stop()
