"""
どこで: `palette.commands`
何を: 複数の生産者から操作を受け付け、単一のワーカースレッドが投入順にパレットへ適用する。
なぜ: フロントエンド（編集元が複数）がパレットを直接変更せず、順序付きの 1 本の経路から
      apply → invalidate → notify を完了させてから結果を返すため。

要点:
- `submit(op)` / `submit_undo()` / `submit_redo()` は `concurrent.futures.Future` を返す。
  成功時は `Summary`、失敗時は `PaletteError`（状態は変更されない）が Future に入る。
- redo の扱い: どの生産者が undo したかに関わらず、後続の apply 成功で redo 末尾は破棄される。
- `close()` は冪等。未処理のコマンドは処理してから停止する（投入済みの Future は必ず完了する）。
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Optional

from common.settings import get as _get_settings

from .errors import PaletteError
from .operations import Operation, Summary
from .palette import Palette

logger = logging.getLogger(__name__)


@dataclass
class _Command:
    run: Callable[[], Summary]
    future: "Future[Summary]"
    label: str


_STOP = object()


class CommandQueue:
    """Ordered single-consumer command channel for a :class:`Palette`."""

    def __init__(
        self, palette: Palette, maxsize: Optional[int] = None, *, autostart: bool = True
    ) -> None:
        if maxsize is None:
            maxsize = _get_settings().QUEUE_MAXSIZE
        self._palette = palette
        self._q: "queue.Queue[object]" = queue.Queue(maxsize=maxsize)
        self._th = threading.Thread(target=self._worker, name="PaletteCommandWorker", daemon=True)
        self._lock = threading.Lock()
        self._started = False
        self._closed = False
        if autostart:
            self.start()

    @property
    def palette(self) -> Palette:
        return self._palette

    @property
    def closed(self) -> bool:
        return self._closed

    # --- lifecycle ---
    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            if self._closed:
                raise RuntimeError("command queue is closed")
            self._started = True
        self._th.start()

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop accepting commands, drain the backlog and stop the worker."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            started = self._started
        if started:
            self._q.put(_STOP)
            self._th.join(timeout)
        else:
            # ワーカー未起動: 残りは取り消す
            self._cancel_pending()

    def join(self) -> None:
        """Block until every submitted command has been processed."""
        self._q.join()

    def __enter__(self) -> "CommandQueue":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --- producers ---
    def submit(
        self, operation: Operation, *, block: bool = True, timeout: Optional[float] = None
    ) -> "Future[Summary]":
        """Queue ``operation``; the future resolves to its :class:`Summary`."""
        return self._enqueue(
            lambda: self._palette.apply(operation), str(operation.info()), block, timeout
        )

    def submit_undo(self, *, block: bool = True, timeout: Optional[float] = None) -> "Future[Summary]":
        return self._enqueue(self._palette.undo, "undo", block, timeout)

    def submit_redo(self, *, block: bool = True, timeout: Optional[float] = None) -> "Future[Summary]":
        return self._enqueue(self._palette.redo, "redo", block, timeout)

    def _enqueue(
        self, run: Callable[[], Summary], label: str, block: bool, timeout: Optional[float]
    ) -> "Future[Summary]":
        future: "Future[Summary]" = Future()
        # 停止マーカーより後ろに積まれないよう、closed の確認と put を同じロック内で行う
        with self._lock:
            if self._closed:
                raise RuntimeError("command queue is closed")
            try:
                self._q.put(_Command(run, future, label), block=block, timeout=timeout)
            except queue.Full as e:
                raise RuntimeError("command queue is full") from e
        return future

    # --- worker loop ---
    def _worker(self) -> None:
        while True:
            item = self._q.get()
            try:
                if item is _STOP:
                    return
                self._run(item)  # type: ignore[arg-type]
            finally:
                self._q.task_done()

    def _run(self, command: _Command) -> None:
        if not command.future.set_running_or_notify_cancel():
            return
        try:
            result = command.run()
        except PaletteError as e:
            logger.debug("command %s rejected: %s", command.label, e)
            command.future.set_exception(e)
        except Exception as e:  # 予期せぬ失敗
            logger.exception("command %s failed unexpectedly", command.label)
            command.future.set_exception(e)
        else:
            command.future.set_result(result)

    def _cancel_pending(self) -> None:
        while True:
            try:
                item = self._q.get_nowait()
            except queue.Empty:
                return
            if isinstance(item, _Command):
                item.future.cancel()
            self._q.task_done()


__all__ = ["CommandQueue"]
