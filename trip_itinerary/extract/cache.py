"""Raw LLM answers per booking document, so re-importing a confirmation is free.

Entries are keyed by document kind, the hash of the document content and the
model that read it. Switching ``LLM_MODEL_PRIMARY`` therefore never replays
an answer from another model. Each entry keeps the raw event dicts exactly as
the model returned them; decoding happens again on every import.
"""

import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from trip_itinerary.config import EXTRACTION_CACHE_PATH, LLM_MODEL_PRIMARY
from trip_itinerary.extract.content import content_hash

logger = logging.getLogger(__name__)

RawEvents = List[Dict[str, Any]]


class ExtractionCache:
    def __init__(self, path: Path = EXTRACTION_CACHE_PATH, model: str = LLM_MODEL_PRIMARY):
        self.path = Path(path)
        self.model = model
        self._entries: Dict[str, Dict[str, Any]] = {}
        self._load()

    @staticmethod
    def key(kind: str, payload: Union[str, bytes], model: str) -> str:
        return f"{model}/{kind}/{content_hash(payload)}"

    def _load(self):
        if not self.path.exists():
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as exc:
            # Disposable: start over rather than fail the import
            logger.warning("Ignoring unreadable extraction cache %s: %s", self.path, exc)
            return
        if not isinstance(data, dict):
            logger.warning("Ignoring extraction cache %s: not an object", self.path)
            return
        self._entries = {k: v for k, v in data.items() if isinstance(v, dict) and isinstance(v.get("events"), list)}
        logger.debug("Loaded %d cached extractions", len(self._entries))

    def get(self, kind: str, payload: Union[str, bytes]) -> Optional[RawEvents]:
        entry = self._entries.get(self.key(kind, payload, self.model))
        return None if entry is None else entry["events"]

    def put(self, kind: str, payload: Union[str, bytes], raw_events: RawEvents):
        self._entries[self.key(kind, payload, self.model)] = {
            "kind": kind,
            "model": self.model,
            "extractedAt": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "events": raw_events,
        }
        self._save()

    def _save(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(self._entries, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
        os.replace(tmp, self.path)

    def __len__(self):
        return len(self._entries)
