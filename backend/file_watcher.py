"""
file_watcher.py — Model file watcher using watchdog.
Detects .cs file changes and regenerates the CRUD output.
"""

import os
import sys
import threading
import time

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from crud_gen import generate_all
from cs_parser import resolve_path
from schema import CrudForgeError, SourceResolutionFailure

DEBOUNCE_SECONDS = 0.5

_SKIP_PATTERNS = ("\\obj\\", "/obj/", "\\bin\\", "/bin/", "Designer.cs", ".g.cs")


class ModelFileWatcher:
    def __init__(self, on_change_callback, debounce: float = DEBOUNCE_SECONDS):
        self.observer = None
        self.on_change = on_change_callback
        self.watched_path = None
        self.debounce = debounce
        self._only_file = None
        self._debounce_timers = {}
        self._lock = threading.Lock()

    def start(self, path: str) -> bool:
        """Watch a single model file or every model file under a directory."""
        self.stop()
        path = os.path.abspath(path)
        if os.path.isfile(path):
            self._only_file = path
            directory, recursive = os.path.dirname(path), False
        elif os.path.isdir(path):
            self._only_file = None
            directory, recursive = path, True
        else:
            return False

        self.watched_path = path
        handler = _CSHandler(self._debounced_change, only_file=self._only_file)
        self.observer = Observer()
        self.observer.schedule(handler, directory, recursive=recursive)
        self.observer.start()
        return True

    def stop(self):
        if self.observer:
            self.observer.stop()
            self.observer.join(timeout=2)
            self.observer = None
        with self._lock:
            for t in self._debounce_timers.values():
                t.cancel()
            self._debounce_timers.clear()

    def _debounced_change(self, file_path: str, event_type: str):
        """Debounce rapid file changes (e.g. editor saves multiple events)."""
        with self._lock:
            if file_path in self._debounce_timers:
                self._debounce_timers[file_path].cancel()

            t = threading.Timer(
                self.debounce,
                self._fire_change,
                args=(file_path, event_type)
            )
            self._debounce_timers[file_path] = t
            t.start()

    def _fire_change(self, file_path: str, event_type: str):
        with self._lock:
            self._debounce_timers.pop(file_path, None)
        self.on_change(file_path, event_type)

    @property
    def is_running(self):
        return self.observer is not None and self.observer.is_alive()


class _CSHandler(FileSystemEventHandler):
    def __init__(self, callback, only_file: str = None):
        self.callback = callback
        self.only_file = only_file

    def _handle(self, path, event_type):
        if not path.endswith(".cs"):
            return
        if self.only_file and os.path.abspath(path) != self.only_file:
            return
        # Skip generated files
        if any(p in path for p in _SKIP_PATTERNS):
            return
        self.callback(path, event_type)

    def on_modified(self, event):
        if not event.is_directory:
            self._handle(event.src_path, "modified")

    def on_created(self, event):
        if not event.is_directory:
            self._handle(event.src_path, "created")

    def on_deleted(self, event):
        if not event.is_directory:
            self._handle(event.src_path, "deleted")

    def on_moved(self, event):
        # Editors that save via rename land here with the real path as dest
        if not event.is_directory:
            self._handle(event.dest_path, "renamed")


# ── Regeneration ──────────────────────────────────────────────────────────

def _report(exc: SourceResolutionFailure):
    print(f"[watch] {exc.message}", file=sys.stderr)
    for d in exc.diagnostics:
        print(f"[watch]   {d.format(exc.file_path)}", file=sys.stderr)


def regenerate(source_path: str, output_path: str) -> bool:
    """
    Re-parse source_path (a .cs file or a project directory) and rewrite
    output_path with the generated methods. If any model file fails, the
    previous output is left untouched and False is returned.
    """
    try:
        types, failures = resolve_path(source_path)
        for exc in failures.values():
            _report(exc)
        if failures:
            return False
        code = generate_all(types)
    except SourceResolutionFailure as exc:
        _report(exc)
        return False
    except CrudForgeError as exc:
        print(f"[watch] {source_path}: {exc}", file=sys.stderr)
        return False

    try:
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(code + "\n")
    except OSError as exc:
        print(f"[watch] cannot write {output_path}: {exc}", file=sys.stderr)
        return False
    names = ", ".join(t.name for t in types)
    print(f"[OK] {time.strftime('%H:%M:%S')} regenerated {output_path} ({names})", file=sys.stderr)
    return True
