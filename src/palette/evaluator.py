"""
どこで: `palette.evaluator`
何を: アドレスの実際の色を遅延評価し、アドレス単位でメモ化する。
なぜ: 変更時は依存元を辿ってキャッシュを捨てるだけにし、再計算は次に読まれた時まで遅らせるため。

要点:
- 評価は明示スタックによる反復（深い依存チェーンでも再帰上限に当たらない）。
- キャッシュへの書き込みは読み取りロック下で並行に起こり得るが、同一アドレスには同じ値しか
  入らない。破棄（invalidate/clear）はパレットの書き込みロック下でのみ呼ばれる。
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Set

from common.settings import get as _get_settings

from .address import Address
from .color_types import DEFAULT_CHANNEL_MAX, Color
from .element import ColorElement, Ramp, Raw, Watch, dependencies
from .errors import EmptyAddress, InternalInvariantError
from .graph import ElementGraph
from .interpolation import interpolate

logger = logging.getLogger(__name__)


class Evaluator:
    """Lazy, memoizing color evaluator over an :class:`ElementGraph`."""

    def __init__(
        self,
        graph: ElementGraph,
        *,
        channel_max: float = DEFAULT_CHANNEL_MAX,
        cache_enabled: Optional[bool] = None,
    ) -> None:
        self._graph = graph
        self._channel_max = channel_max
        if cache_enabled is None:
            cache_enabled = _get_settings().EVAL_CACHE_ENABLED
        self._cache_enabled = bool(cache_enabled)
        self._cache: Dict[Address, Color] = {}

    @property
    def cache_enabled(self) -> bool:
        return self._cache_enabled

    def cache_size(self) -> int:
        return len(self._cache)

    def is_cached(self, address: Address) -> bool:
        return address in self._cache

    def value_of(self, address: Address) -> Color:
        cached = self._cache.get(address)
        if cached is not None:
            if address not in self._graph:
                raise InternalInvariantError(f"cache holds a value for removed address {address}")
            return cached
        if address not in self._graph:
            raise EmptyAddress(address=address)

        values: Dict[Address, Color] = {}
        stack = [address]
        expanded: Set[Address] = set()
        while stack:
            current = stack[-1]
            if current in values:
                stack.pop()
                continue
            hit = self._cache.get(current)
            if hit is not None:
                values[current] = hit
                stack.pop()
                continue
            element = self._graph.get(current)
            if element is None:
                raise InternalInvariantError(f"{current} is referenced but holds no element")
            pending = [d for d in dependencies(element) if d not in values]
            if pending:
                if current in expanded:
                    raise InternalInvariantError(f"dependency cycle reached through {current}")
                expanded.add(current)
                stack.extend(pending)
                continue
            values[current] = self._compute(element, values)
            stack.pop()

        if self._cache_enabled:
            self._cache.update(values)
        return values[address]

    def _compute(self, element: ColorElement, values: Dict[Address, Color]) -> Color:
        if isinstance(element, Raw):
            return element.color
        if isinstance(element, Watch):
            return values[element.source]
        if isinstance(element, Ramp):
            steps = interpolate(
                values[element.start],
                values[element.end],
                element.count,
                element.kind,
                self._channel_max,
            )
            return steps[element.index]
        raise InternalInvariantError(f"unhandled element kind: {element!r}")

    def invalidate(self, addresses: Iterable[Address]) -> Set[Address]:
        """Evict ``addresses`` and every transitive dependent.

        Returns the affected address set (cached or not) so callers can report
        which values may have changed.
        """
        affected = self._graph.transitive_dependents(addresses)
        evicted = {a for a in affected if self._cache.pop(a, None) is not None}
        if evicted:
            logger.debug("evaluator: evicted %d cached value(s)", len(evicted))
        return affected

    def clear(self) -> None:
        self._cache.clear()


__all__ = ["Evaluator"]
