"""
qPCR Plate Layout — Flask Application
=====================================
Thin JSON API over the layout core. Decodes the four layout inputs from a
JSON body (or an uploaded JSON file) and returns filled plates plus the
reagent color key.
"""
from __future__ import annotations
import json
import logging

from flask import Flask, request, jsonify
import numpy as np

from qpcr_layout import config
from qpcr_layout.logging_config import setup_logging
from qpcr_layout.errors import ConfigurationError
from qpcr_layout.plates import PLATE_SIZES
from qpcr_layout.packer import PACKING_STRATEGIES, run_layout, compare_strategies
from qpcr_layout.colors import assign_colors

app = Flask(__name__)
app.config["MAX_CONTENT_LENGTH"] = config.MAX_UPLOAD_BYTES

setup_logging()
logger = logging.getLogger("qpcr_layout.app")

REQUIRED_FIELDS = ("max_well_count", "sample_list", "reagent_list", "replicate_count")


class RequestError(ValueError):
    """The request body could not be decoded into layout inputs."""


# ── Request decoding ──────────────────────────────────────────────────────────

def _read_payload() -> dict:
    """JSON from an uploaded 'file' field if present, else the request body."""
    upload = request.files.get("file")
    if upload is not None:
        try:
            data = json.load(upload.stream)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise RequestError(f"Uploaded file is not valid JSON: {e}") from e
    else:
        data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise RequestError("Expected a JSON object with the layout definition")
    return data


def _layout_inputs(d: dict) -> dict:
    missing = [k for k in REQUIRED_FIELDS if k not in d]
    if missing:
        raise RequestError(f"Missing field(s): {', '.join(missing)}")
    for key in ("sample_list", "reagent_list"):
        if not isinstance(d[key], list) or not all(isinstance(e, list) for e in d[key]):
            raise RequestError(f"'{key}' must be a list of lists")
        if not all(isinstance(name, str) for names in d[key] for name in names):
            raise RequestError(f"'{key}' entries must be strings")
    if not isinstance(d["replicate_count"], list):
        raise RequestError("'replicate_count' must be a list")
    max_well_count = d["max_well_count"]
    if isinstance(max_well_count, bool) or not isinstance(max_well_count, int):
        raise RequestError("'max_well_count' must be an integer")
    return {
        "max_well_count": max_well_count,
        "sample_list": d["sample_list"],
        "reagent_list": d["reagent_list"],
        "replicate_count": d["replicate_count"],
    }


def _rng(d: dict):
    seed = d.get("seed")
    if seed is None:
        return None
    if isinstance(seed, bool) or not isinstance(seed, int):
        raise RequestError("'seed' must be an integer")
    return np.random.default_rng(seed)


def _strategy(d: dict):
    strategy = d.get("strategy")
    if strategy is not None and not isinstance(strategy, str):
        raise RequestError("'strategy' must be a string")
    return strategy


# ── API ───────────────────────────────────────────────────────────────────────

@app.route("/api/plate_sizes", methods=["GET"])
def plate_sizes():
    return jsonify({str(n): spec.to_dict() for n, spec in PLATE_SIZES.items()})


@app.route("/api/strategies", methods=["GET"])
def strategies():
    return jsonify({"strategies": list(PACKING_STRATEGIES.keys()),
                    "default": config.PACKING_STRATEGY})


@app.route("/api/layout", methods=["POST"])
def layout():
    """
    Lay out experiments onto plates.
    Body JSON (or uploaded file 'file'):
      max_well_count: 96 or 384
      sample_list: list of sample-name lists, one per experiment
      reagent_list: list of reagent-name lists, one per experiment
      replicate_count: list of positive integers, one per experiment
      strategy: packing strategy name (optional)
      seed: integer seed for the color key (optional)
    """
    try:
        d = _read_payload()
        inputs = _layout_inputs(d)
        rng = _rng(d)
        result = run_layout(**inputs, strategy=_strategy(d))
    except (RequestError, ConfigurationError) as e:
        logger.warning("Rejected layout request: %s", e)
        return jsonify({"error": str(e)}), 400

    summary = result.to_dict()
    summary["colors"] = assign_colors(inputs["reagent_list"], rng=rng)
    return jsonify(summary)


@app.route("/api/layout/compare", methods=["POST"])
def layout_compare():
    """Run every packing strategy on the same input and compare plate counts."""
    try:
        inputs = _layout_inputs(_read_payload())
        comparison = compare_strategies(**inputs)
    except (RequestError, ConfigurationError) as e:
        logger.warning("Rejected comparison request: %s", e)
        return jsonify({"error": str(e)}), 400
    return jsonify(comparison.summary())


if __name__ == "__main__":
    app.run(host=config.HOST, port=config.PORT, debug=config.DEBUG)
