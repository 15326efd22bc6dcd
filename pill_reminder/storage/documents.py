"""键值文档存储：按集合 + 键读写扁平文档，支持订阅与条件写。"""
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from pill_reminder.config import DOCUMENTS_DIR, ensure_dirs

logger = logging.getLogger(__name__)

Document = Dict[str, Any]
Listener = Callable[[Optional[Document]], None]
Unsubscribe = Callable[[], None]


class StoreError(Exception):
    """读写文档失败（I/O 或内容损坏）。"""


class ConflictError(StoreError):
    """条件写的前置条件不成立。"""


class DocumentStore:
    """文档存储接口。键为字符串，文档为扁平 dict。"""

    def get(self, collection: str, key: str) -> Optional[Document]:
        raise NotImplementedError

    def set(self, collection: str, key: str, document: Document) -> None:
        raise NotImplementedError

    def delete(self, collection: str, key: str) -> None:
        raise NotImplementedError

    def update(
        self,
        collection: str,
        key: str,
        fields: Document,
        expected: Optional[Document] = None,
    ) -> Document:
        raise NotImplementedError

    def subscribe(self, collection: str, key: str, on_change: Listener) -> Unsubscribe:
        raise NotImplementedError

    def query(self, collection: str, field: str, value: Any) -> List[Tuple[str, Document]]:
        raise NotImplementedError


class JsonDocumentStore(DocumentStore):
    """本地 JSON 文件实现：<base_dir>/<collection>/<key>.json。

    同一进程内的读-判断-写由锁串行化；跨进程依赖 update(expected=...) 做乐观并发检查。
    """

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = base_dir or DOCUMENTS_DIR
        ensure_dirs()
        self._lock = threading.RLock()
        self._listeners: Dict[Tuple[str, str], List[Listener]] = {}

    def _collection_dir(self, collection: str) -> Path:
        _check_name(collection)
        return self.base_dir / collection

    def _doc_path(self, collection: str, key: str) -> Path:
        _check_name(key)
        return self._collection_dir(collection) / f"{key}.json"

    def _read(self, path: Path) -> Optional[Document]:
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(f"读取文档失败 {path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"文档不是对象: {path}")
        return data

    def _write(self, path: Path, document: Document) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            raise StoreError(f"写入文档失败 {path}: {e}") from e

    def get(self, collection: str, key: str) -> Optional[Document]:
        with self._lock:
            return self._read(self._doc_path(collection, key))

    def set(self, collection: str, key: str, document: Document) -> None:
        with self._lock:
            self._write(self._doc_path(collection, key), dict(document))
        self._notify(collection, key, dict(document))

    def delete(self, collection: str, key: str) -> None:
        path = self._doc_path(collection, key)
        with self._lock:
            if not path.exists():
                return
            try:
                path.unlink()
            except OSError as e:
                raise StoreError(f"删除文档失败 {path}: {e}") from e
        self._notify(collection, key, None)

    def update(
        self,
        collection: str,
        key: str,
        fields: Document,
        expected: Optional[Document] = None,
    ) -> Document:
        """合并字段（文档不存在则创建）。expected 中每个字段须与当前值相等，否则抛 ConflictError。"""
        path = self._doc_path(collection, key)
        with self._lock:
            current = self._read(path) or {}
            for name, value in (expected or {}).items():
                if current.get(name) != value:
                    raise ConflictError(
                        f"{collection}/{key}.{name} 期望 {value!r}，实际 {current.get(name)!r}"
                    )
            merged = {**current, **fields}
            self._write(path, merged)
        self._notify(collection, key, dict(merged))
        return merged

    def subscribe(self, collection: str, key: str, on_change: Listener) -> Unsubscribe:
        """订阅单个文档：立即回调当前值，之后每次经本存储的修改都会回调。"""
        slot = (collection, key)
        with self._lock:
            self._listeners.setdefault(slot, []).append(on_change)
        on_change(self.get(collection, key))

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._listeners.get(slot, [])
                if on_change in listeners:
                    listeners.remove(on_change)

        return unsubscribe

    def query(self, collection: str, field: str, value: Any) -> List[Tuple[str, Document]]:
        """返回 field == value 的 (键, 文档) 列表，按键排序。"""
        folder = self._collection_dir(collection)
        out = []
        with self._lock:
            if not folder.exists():
                return []
            for path in sorted(folder.glob("*.json")):
                doc = self._read(path)
                if doc is not None and doc.get(field) == value:
                    out.append((path.stem, doc))
        return out

    def _notify(self, collection: str, key: str, document: Optional[Document]) -> None:
        with self._lock:
            listeners = list(self._listeners.get((collection, key), []))
        for listener in listeners:
            try:
                listener(document)
            except Exception:
                logger.exception("文档订阅回调出错: %s/%s", collection, key)


def _check_name(name: str) -> None:
    if not name or "/" in name or "\\" in name or name.startswith("."):
        raise ValueError(f"非法的集合名或键: {name!r}")
