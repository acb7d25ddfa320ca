import json
import logging
import os
import threading
import time
from collections import deque
from typing import Optional

from Axon_Cognitive.utils.jsonsafe import json_sanitize
from .errors import ErrorReport


LOGGER = logging.getLogger(__name__)


class Telemetry:
    def __init__(self, maxlen=2000):
        self.events = deque(maxlen=maxlen)
        self._jsonl_path = None
        self._console = False
        self._lock = threading.RLock()

    def enable_jsonl(self, path="logs/events.jsonl"):
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._jsonl_path = path

    def enable_console(self, on=True):
        self._console = bool(on)

    def log(
        self,
        event_type,
        subsystem,
        data=None,
        level="info",
        *,
        run_id: Optional[str] = None,
        error: Optional[ErrorReport] = None,
    ):
        payload = data or {}
        event = {
            "schema_version": 1,
            "ts": time.time(),
            "type": event_type,
            "subsystem": subsystem,
            "level": level,
            "data": payload,
        }
        if run_id:
            event["run_id"] = run_id
        if error:
            event["error"] = {
                "code": error.code,
                "message": error.message,
                "details": error.details or {},
            }
        with self._lock:
            self.events.append(event)
            if self._jsonl_path:
                try:
                    with open(self._jsonl_path, "a", encoding="utf-8") as f:
                        f.write(json.dumps(json_sanitize(event), ensure_ascii=False) + "\n")
                except OSError:
                    LOGGER.warning("Unable to append telemetry to %s", self._jsonl_path, exc_info=True)
        if self._console and level in ("info", "warn", "error"):
            ts = time.strftime("%H:%M:%S", time.localtime(event["ts"]))
            print(f"[{ts}] {subsystem}/{level} {event_type} :: {event['data']}")

    def tail(self, n=50):
        with self._lock:
            return list(self.events)[-max(0, n):]

    def of_type(self, event_type):
        with self._lock:
            return [e for e in self.events if e["type"] == event_type]

    def snapshot(self):
        by_sub = {}
        by_level = {}
        with self._lock:
            for e in self.events:
                by_sub[e["subsystem"]] = by_sub.get(e["subsystem"], 0) + 1
                by_level[e["level"]] = by_level.get(e["level"], 0) + 1
            count = len(self.events)
        return {"events_count": count, "events_by_subsystem": by_sub, "events_by_level": by_level}
