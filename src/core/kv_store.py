"""
Key-Value Store: 브라우저 localStorage를 대체하는 로컬 저장소.

규칙:
- 값은 JSON 직렬화 가능해야 함 (저장 시 검증)
- 저장된 값은 호출자 객체와 aliasing 되지 않음 (JSON 왕복)
- 파일 저장소: 단일 JSON 문서, FileLock + temp → rename 원자적 쓰기
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from filelock import FileLock, Timeout

from src.domain.errors import ErrorCodes, StorageError

logger = logging.getLogger(__name__)


def _roundtrip(key: str, value: Any) -> Any:
    """JSON 왕복 복사 (직렬화 불가 값은 거부)."""
    try:
        return json.loads(json.dumps(value, ensure_ascii=False))
    except (TypeError, ValueError) as e:
        raise StorageError(
            ErrorCodes.KV_VALUE_NOT_SERIALIZABLE,
            message=f"Value for key {key!r} is not JSON-serializable",
            key=key,
        ) from e


# =============================================================================
# Interface
# =============================================================================

class KeyValueStore(ABC):
    """
    문자열 키 → JSON 값 저장소.

    Usage:
        store = MemoryKeyValueStore()
        store.set("ai_thumbnails", [...])
        items = store.get("ai_thumbnails", [])
    """

    @abstractmethod
    def get(self, key: str, default: Any = None) -> Any:
        """키 조회 (없으면 default)."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """키 저장 (덮어쓰기)."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """키 삭제. 존재했으면 True."""

    @abstractmethod
    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        """
        읽기 → fn → 쓰기를 한 번에 (다른 쓰기와 섞이지 않음).

        Args:
            key: 대상 키
            fn: 현재 값 (없으면 default) → 새 값
            default: 키가 없을 때 fn에 넘길 값

        Returns:
            저장된 새 값
        """


# =============================================================================
# In-Memory
# =============================================================================

class MemoryKeyValueStore(KeyValueStore):
    """dict 기반 (테스트, 단일 프로세스 개발용)."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        if key not in self._data:
            return default
        return _roundtrip(key, self._data[key])

    def set(self, key: str, value: Any) -> None:
        self._data[key] = _roundtrip(key, value)

    def delete(self, key: str) -> bool:
        if key not in self._data:
            return False
        del self._data[key]
        return True

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        value = _roundtrip(key, fn(self.get(key, default)))
        self._data[key] = value
        return _roundtrip(key, value)


# =============================================================================
# File-Backed
# =============================================================================

class JsonFileKeyValueStore(KeyValueStore):
    """
    JSON 파일 하나에 전체 키 저장.

    동시성: 같은 경로의 {path}.lock으로 프로세스 간 직렬화.
    """

    LOCK_TIMEOUT = 10  # seconds

    def __init__(self, path: Path, lock_timeout: float | None = None):
        """
        Args:
            path: JSON 파일 경로 (없으면 첫 쓰기 시 생성)
            lock_timeout: 락 대기 시간 (초)
        """
        self.path = Path(path)
        self.lock_timeout = lock_timeout if lock_timeout is not None else self.LOCK_TIMEOUT
        self._lock_path = self.path.with_name(self.path.name + ".lock")

    @contextmanager
    def _locked(self) -> Generator[None, None, None]:
        """
        파일 락 획득.

        Raises:
            StorageError: KV_STORE_LOCK_TIMEOUT
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self._lock_path, timeout=self.lock_timeout)

        try:
            lock.acquire()
        except Timeout:
            raise StorageError(
                ErrorCodes.KV_STORE_LOCK_TIMEOUT,
                message=f"Failed to acquire lock for {self.path}",
                path=str(self.path),
                timeout=self.lock_timeout,
            ) from None

        try:
            yield
        finally:
            lock.release()

    def _read(self) -> dict[str, Any]:
        """
        전체 문서 읽기 (락 보유 상태에서 호출).

        Raises:
            StorageError: KV_STORE_CORRUPT
        """
        if not self.path.exists():
            return {}

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise StorageError(
                ErrorCodes.KV_STORE_CORRUPT,
                message=f"Key-value store is not valid JSON: {e}",
                path=str(self.path),
            ) from e

        if not isinstance(data, dict):
            raise StorageError(
                ErrorCodes.KV_STORE_CORRUPT,
                message="Key-value store root must be an object",
                path=str(self.path),
            )
        return data

    def _write(self, data: dict[str, Any]) -> None:
        """temp → rename 원자적 쓰기 (실패 시 temp 정리, 원본 유지)."""
        temp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                mode="w",
                dir=self.path.parent,
                suffix=".tmp",
                delete=False,
                encoding="utf-8",
            ) as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.flush()
                try:
                    os.fsync(f.fileno())
                except OSError as e:
                    logger.warning(f"File fsync failed for {self.path}: {e}")
                temp_path = Path(f.name)

            os.replace(temp_path, self.path)

        except Exception:
            if temp_path and temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    logger.warning(f"Failed to remove temp file {temp_path}")
            raise

    def get(self, key: str, default: Any = None) -> Any:
        with self._locked():
            data = self._read()
        return data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        value = _roundtrip(key, value)
        with self._locked():
            data = self._read()
            data[key] = value
            self._write(data)

    def delete(self, key: str) -> bool:
        with self._locked():
            data = self._read()
            if key not in data:
                return False
            del data[key]
            self._write(data)
        return True

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Any:
        with self._locked():
            data = self._read()
            value = _roundtrip(key, fn(data.get(key, default)))
            data[key] = value
            self._write(data)
        return _roundtrip(key, value)


# =============================================================================
# Helpers
# =============================================================================

def push_capped(store: KeyValueStore, key: str, item: Any, cap: int) -> list[Any]:
    """
    목록 맨 앞에 item 추가 후 cap개로 자르기 (최신순).

    기존 값이 목록이 아니면 새 목록으로 시작.
    읽기/쓰기는 store.update 한 번으로 처리 (동시 추가 시 유실 없음).

    Returns:
        저장된 목록
    """
    def _prepend(current: Any) -> list[Any]:
        if not isinstance(current, list):
            logger.warning(f"Key {key!r} did not hold a list; resetting")
            current = []
        return [item, *current][:max(cap, 0)]

    return store.update(key, _prepend, default=[])


def trim_capped(store: KeyValueStore, key: str, cap: int) -> int:
    """
    목록을 cap개로 자르기.

    Returns:
        제거된 항목 수
    """
    removed = 0

    def _trim(current: Any) -> Any:
        nonlocal removed
        if not isinstance(current, list) or len(current) <= cap:
            return current
        removed = len(current) - cap
        return current[:cap]

    if store.get(key) is None:
        return 0
    store.update(key, _trim)
    return removed
