"""
이벤트 저널
=============

엔진이 커밋한 상태 변경을 TinyDB의 "events" 테이블에 순서대로 기록한다.
작업이 실패하여 롤백되면 그 작업의 이벤트는 기록되지 않는다.

  {"name": "SetProof", "payload": {...}}   (doc_id 순서 = 기록 순서)

경로가 없거나 ":memory:"이면 MemoryStorage를 쓰고, 그 밖에는 JSON 파일에 저장한다.
payload는 기록 전에 JSON으로 한 번 직렬화해 본다. 직렬화할 수 없으면
아무것도 기록하지 않고 TypeError를 발생시킨다.

사용 예시:
    >>> journal = EventJournal("events.json")
    >>> journal.append("IncrementLatestEpoch", {"epoch": 2})
    >>> journal.events("IncrementLatestEpoch")[0]["payload"]
    {'epoch': 2}
"""

import json
import logging
import threading

from tinydb import TinyDB, Query
from tinydb.storages import MemoryStorage

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

Event = Query()


class EventJournal:
    """TinyDB 기반 추가 전용(append-only) 이벤트 기록."""

    def __init__(self, path=MEMORY):
        self.path = path
        self._lock = threading.Lock()
        if path is None or path == MEMORY:
            self._db = TinyDB(storage=MemoryStorage)
        else:
            self._db = TinyDB(path)
        self._table = self._db.table("events")
        logger.info("event journal opened at %s", path)

    def append_many(self, events):
        """(name, payload) 목록을 한 번에 기록한다."""
        if not events:
            return
        documents = [
            {"name": name, "payload": json.loads(json.dumps(payload, sort_keys=True))}
            for name, payload in events
        ]
        with self._lock:
            self._table.insert_multiple(documents)

    def append(self, name, payload):
        self.append_many([(name, payload)])

    def events(self, name=None):
        """기록된 이벤트를 순서대로 반환한다. name이 주어지면 그 이벤트만."""
        with self._lock:
            if name is None:
                documents = self._table.all()
            else:
                documents = self._table.search(Event.name == name)
        documents = sorted(documents, key=lambda doc: doc.doc_id)
        return [{"id": doc.doc_id, "name": doc["name"], "payload": doc["payload"]}
                for doc in documents]

    def close(self):
        with self._lock:
            self._db.close()
