import json
import math
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qsl, urlencode

from mandelplot.bounds import (
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DIVERGENCE_BOUND,
    DEFAULT_MAX_ITERATIONS,
    PlotBounds,
    PlotOptions,
    Viewport,
)

DEFAULTS: Dict[str, Any] = {
    "width": 800,
    "height": 800,
    "min_real": -2.0,
    "real_range": 3.0,
    "min_imag": -1.5,
    "imag_range": 3.0,
    "max_iterations": DEFAULT_MAX_ITERATIONS,
    "divergence_bound": DEFAULT_DIVERGENCE_BOUND,
    "chunk_size": DEFAULT_CHUNK_SIZE,
    "workers": 1,
    "parallel": False,
    "show_axes": True,
    "output": "mandelbrot.png",
}

# Query string key -> (config key, parser)
_QUERY_KEYS = {
    "minReal": ("min_real", float),
    "realRange": ("real_range", float),
    "minImag": ("min_imag", float),
    "imagRange": ("imag_range", float),
    "maxIterations": ("max_iterations", int),
    "divergenceBound": ("divergence_bound", float),
    "width": ("width", int),
    "height": ("height", int),
    "chunkSize": ("chunk_size", int),
    "showAxes": ("show_axes", lambda v: v.lower() == "true"),
}

def load_config(config_path: Optional[str]) -> Dict[str, Any]:
    if config_path:
        with open(config_path, "r", encoding="utf-8") as f:
            cfg = json.load(f)
        if not isinstance(cfg, dict):
            raise ValueError("Config JSON must be an object.")
        return cfg
    return dict(DEFAULTS)

def _finite(cfg: Dict[str, Any], key: str) -> float:
    value = float(cfg[key])
    if not math.isfinite(value):
        raise ValueError(f"{key} must be finite.")
    return value

def normalise_config(cfg: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(DEFAULTS)
    out.update(cfg)

    for k in ("width", "height", "max_iterations", "chunk_size", "workers"):
        out[k] = int(out[k])
        if out[k] <= 0:
            raise ValueError(f"{k} must be positive.")
    for k in ("min_real", "real_range", "min_imag", "imag_range", "divergence_bound"):
        out[k] = _finite(out, k)
    for k in ("real_range", "imag_range", "divergence_bound"):
        if out[k] <= 0:
            raise ValueError(f"{k} must be positive.")

    out["parallel"] = bool(out["parallel"])
    out["show_axes"] = bool(out["show_axes"])
    out["output"] = str(out["output"])
    return out

def parse_query(query: str) -> Dict[str, Any]:
    """Config overrides from a query string such as `minReal=-1&realRange=0.5`."""
    out: Dict[str, Any] = {}
    for key, value in parse_qsl(query.lstrip("?"), keep_blank_values=False):
        if key not in _QUERY_KEYS:
            continue
        name, parse = _QUERY_KEYS[key]
        try:
            out[name] = parse(value)
        except ValueError as e:
            raise ValueError(f"Bad value for {key}: {value!r}") from e
    return out

def build_query(cfg: Dict[str, Any]) -> str:
    params = []
    for key, (name, _) in _QUERY_KEYS.items():
        if name not in cfg:
            continue
        value = cfg[name]
        if isinstance(value, bool):
            value = "true" if value else "false"
        params.append((key, repr(value) if isinstance(value, float) else str(value)))
    return urlencode(params)

def config_to_params(cfg: Dict[str, Any]) -> Tuple[PlotBounds, Viewport, PlotOptions]:
    bounds = PlotBounds(
        min_real=cfg["min_real"],
        real_range=cfg["real_range"],
        min_imag=cfg["min_imag"],
        imag_range=cfg["imag_range"],
    )
    viewport = Viewport(width=cfg["width"], height=cfg["height"], chunk_size=cfg["chunk_size"])
    options = PlotOptions(
        max_iterations=cfg["max_iterations"],
        divergence_bound=cfg["divergence_bound"],
        parallel=cfg["parallel"],
    )
    return bounds, viewport, options
