"""
app.py — CrudForge API server.
Flask backend that exposes the generator over HTTP:
  - CRUD methods from a JSON schema
  - CRUD methods from C# model source (inline text or a file path)
  - Health check
"""

import os
import sys

from flask import Flask, Response, jsonify, request

from crud_gen import build_method_set, generate_all
from cs_parser import parse_cs_file, parse_source
from schema import InvalidSchema, SourceResolutionFailure, load_schema

__version__ = "0.1.0"

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 7847


def default_port() -> int:
    """CRUDFORGE_PORT if it holds a port number, else DEFAULT_PORT."""
    raw = os.environ.get("CRUDFORGE_PORT", "").strip()
    if not raw:
        return DEFAULT_PORT
    try:
        return int(raw)
    except ValueError:
        print(f"[CrudForge] ignoring CRUDFORGE_PORT={raw!r}, using {DEFAULT_PORT}",
              file=sys.stderr)
        return DEFAULT_PORT


app = Flask(__name__)


# ── CORS Middleware ────────────────────────────────────────────────────────

@app.after_request
def add_cors(response):
    response.headers["Access-Control-Allow-Origin"] = "*"
    response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
    response.headers["Access-Control-Allow-Headers"] = "Content-Type"
    return response


@app.route("/", defaults={"path": ""}, methods=["OPTIONS"])
@app.route("/<path:path>", methods=["OPTIONS"])
def options_handler(path):
    return Response(status=204)


# ── Error mapping ─────────────────────────────────────────────────────────

@app.errorhandler(InvalidSchema)
def invalid_schema(exc):
    return jsonify({"error": str(exc)}), 400


@app.errorhandler(SourceResolutionFailure)
def source_failure(exc):
    return jsonify(exc.to_dict()), 422


# ── Generation ─────────────────────────────────────────────────────────────

@app.route("/api/health", methods=["GET"])
def health():
    return jsonify({"status": "ok", "version": __version__})


@app.route("/api/crud", methods=["POST"])
def crud_from_schema():
    data = request.get_json(silent=True)
    if data is None:
        return jsonify({"error": "Request body must be a JSON schema"}), 400

    type_desc = load_schema(data)
    methods = build_method_set(type_desc)
    return jsonify({
        "type": type_desc.name,
        "table": type_desc.table,
        "methods": methods.to_dict(),
        "code": methods.text(),
    })


@app.route("/api/crud/source", methods=["POST"])
def crud_from_source():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be an object with 'source' or 'path'"}), 400
    source = data.get("source")
    path = data.get("path") or ""
    if (source is not None and not isinstance(source, str)) or not isinstance(path, str):
        return jsonify({"error": "'source' and 'path' must be strings"}), 400
    path = path.strip()

    if source:
        types = parse_source(source, str(data.get("file_name") or "<source>"))
    elif path:
        types = parse_cs_file(os.path.abspath(path))
    else:
        return jsonify({"error": "Provide 'source' or 'path'"}), 400

    code = generate_all(types)
    return jsonify({
        "types": [t.to_dict() for t in types],
        "code": code,
    })


def run(host: str = None, port: int = None):
    host = host or DEFAULT_HOST
    port = port or default_port()
    print(f"[OK] CrudForge backend starting on http://{host}:{port}")
    app.run(host=host, port=port, debug=False, threaded=True)


if __name__ == "__main__":
    run()
