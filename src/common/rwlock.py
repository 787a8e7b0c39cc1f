"""
どこで: `common.rwlock`
何を: 読み取りは並行、書き込みは排他とする Reader/Writer ロック。
なぜ: パレットの参照（評価/クエリ）を互いにブロックせず、変更（apply/undo/redo）中の
      途中状態だけは決して観測させないため。

設計メモ:
- 書き込み優先: 待機中のライタがいれば新規リーダは待つ（ライタ飢餓を避ける）。
- 再入: 書き込み保持中のスレッドは read/write を再取得できる（通知リスナ等からの参照用）。
  読み取り保持中に write へ昇格することはできない（デッドロック防止のため RuntimeError）。
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator


class ReadWriteLock:
    """Writer-preferring reader/writer lock."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers: dict[int, int] = {}
        self._writer: int | None = None
        self._writer_depth = 0
        self._writers_waiting = 0

    # --- read side ---
    def acquire_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me or me in self._readers:
                self._readers[me] = self._readers.get(me, 0) + 1
                return
            while self._writer is not None or self._writers_waiting:
                self._cond.wait()
            self._readers[me] = 1

    def release_read(self) -> None:
        me = threading.get_ident()
        with self._cond:
            count = self._readers.get(me)
            if count is None:
                raise RuntimeError("release_read without acquire_read")
            if count == 1:
                del self._readers[me]
            else:
                self._readers[me] = count - 1
            if not self._readers:
                self._cond.notify_all()

    # --- write side ---
    def acquire_write(self) -> None:
        me = threading.get_ident()
        with self._cond:
            if self._writer == me:
                self._writer_depth += 1
                return
            if me in self._readers:
                raise RuntimeError("cannot upgrade a read lock to a write lock")
            self._writers_waiting += 1
            try:
                while self._writer is not None or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = me
            self._writer_depth = 1

    def release_write(self) -> None:
        with self._cond:
            if self._writer != threading.get_ident():
                raise RuntimeError("release_write from a thread that does not hold the lock")
            self._writer_depth -= 1
            if self._writer_depth == 0:
                self._writer = None
                self._cond.notify_all()

    @contextmanager
    def read(self) -> Iterator[None]:
        self.acquire_read()
        try:
            yield
        finally:
            self.release_read()

    @contextmanager
    def write(self) -> Iterator[None]:
        self.acquire_write()
        try:
            yield
        finally:
            self.release_write()


__all__ = ["ReadWriteLock"]
