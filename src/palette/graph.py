"""
どこで: `palette.graph`
何を: アドレス → 色要素の対応と、依存辺（要素 → 参照先アドレス）の逆引きインデックスを保持する。
なぜ: 挿入/削除/復元を「検証してから一括反映」で行い、循環・未解決参照・ぶら下がり参照を
      変更前に弾くため（失敗時はグラフを一切変更しない）。

要点:
- 変更は `restore(states)` に集約する。`states` は「アドレス → 新しい要素 or None（削除）」。
  反映前に変更後の状態（overlay）を対象に検証し、戻り値として直前の状態を返す。
  これをそのまま逆操作として使える。
- 循環検査は新しい要素の依存先から依存辺を辿る BFS。探索範囲は祖先側の部分グラフに限られる。
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from typing import Dict, Iterable, Iterator, Mapping, Optional, Sequence, Set, Tuple

from .address import Address
from .element import ColorElement, dependencies
from .errors import (
    AddressOccupied,
    CyclicDependency,
    DependentsExist,
    EmptyAddress,
    InternalInvariantError,
    UnresolvedDependency,
)

logger = logging.getLogger(__name__)

States = Mapping[Address, Optional[ColorElement]]


class ElementGraph:
    """Element store plus reverse dependency index."""

    def __init__(self) -> None:
        self._elements: Dict[Address, ColorElement] = {}
        # 参照先 → 参照元
        self._dependents: Dict[Address, Set[Address]] = defaultdict(set)

    # ---- reads ----------------------------------------------------------------
    def get(self, address: Address) -> Optional[ColorElement]:
        return self._elements.get(address)

    def __contains__(self, address: object) -> bool:
        return address in self._elements

    def __len__(self) -> int:
        return len(self._elements)

    def addresses(self) -> list[Address]:
        return sorted(self._elements)

    def items(self) -> Iterator[Tuple[Address, ColorElement]]:
        for address in self.addresses():
            yield address, self._elements[address]

    def dependents_of(self, address: Address) -> frozenset[Address]:
        """Addresses whose elements read directly from ``address``."""
        return frozenset(self._dependents.get(address, ()))

    def dependencies_of(self, address: Address) -> Tuple[Address, ...]:
        element = self._elements.get(address)
        if element is None:
            raise EmptyAddress(address=address)
        return dependencies(element)

    def transitive_dependents(self, addresses: Iterable[Address]) -> Set[Address]:
        """``addresses`` plus everything that reads from them, transitively."""
        seen: Set[Address] = set(addresses)
        queue = deque(seen)
        while queue:
            current = queue.popleft()
            for reader in self._dependents.get(current, ()):
                if reader not in seen:
                    seen.add(reader)
                    queue.append(reader)
        return seen

    def is_acyclic(self) -> bool:
        """Whole-graph check (Kahn). Used by tests and debug assertions."""
        indegree = {a: len(set(dependencies(e))) for a, e in self._elements.items()}
        ready = deque(a for a, n in indegree.items() if n == 0)
        visited = 0
        while ready:
            current = ready.popleft()
            visited += 1
            for reader in self._dependents.get(current, ()):
                indegree[reader] -= 1
                if indegree[reader] == 0:
                    ready.append(reader)
        return visited == len(self._elements)

    # ---- mutations ------------------------------------------------------------
    def insert(
        self, address: Address, element: ColorElement, overwrite: bool = False
    ) -> Optional[ColorElement]:
        """Store ``element`` at ``address`` and return the element it replaced."""
        return self.insert_many([(address, element)], overwrite)[address]

    def insert_many(
        self, items: Sequence[Tuple[Address, ColorElement]], overwrite: bool = False
    ) -> Dict[Address, Optional[ColorElement]]:
        """Insert several elements as one all-or-nothing step."""
        if not overwrite:
            for address, _ in items:
                if address in self._elements:
                    raise AddressOccupied(address=address)
        return self.restore(dict(items))

    def remove(self, address: Address, force: bool = False) -> Dict[Address, Optional[ColorElement]]:
        """Remove ``address``; with ``force`` also every transitive dependent.

        Returns the prior states of all removed addresses.
        """
        if address not in self._elements:
            raise EmptyAddress(address=address)
        direct = self._dependents.get(address, set())
        if direct and not force:
            raise DependentsExist(address=address, dependents=direct)
        doomed = self.transitive_dependents([address]) if force else {address}
        return self.restore({a: None for a in doomed})

    def restore(self, states: States) -> Dict[Address, Optional[ColorElement]]:
        """Apply ``states`` atomically and return the states they replaced."""
        if not states:
            return {}
        self._validate(states)

        prior: Dict[Address, Optional[ColorElement]] = {a: self._elements.get(a) for a in states}
        for address, old in prior.items():
            if old is not None:
                self._unlink(address, old)
        for address, new in states.items():
            if new is None:
                self._elements.pop(address, None)
            else:
                self._elements[address] = new
                for dep in set(dependencies(new)):
                    self._dependents[dep].add(address)
        logger.debug("graph restore: %d address(es), %d element(s)", len(states), len(self))
        return prior

    # ---- internals ------------------------------------------------------------
    def _unlink(self, address: Address, element: ColorElement) -> None:
        for dep in set(dependencies(element)):
            readers = self._dependents.get(dep)
            if readers is None or address not in readers:
                raise InternalInvariantError(f"missing reverse edge {dep} <- {address}")
            readers.discard(address)
            if not readers:
                del self._dependents[dep]

    def _validate(self, states: States) -> None:
        def post(address: Address) -> Optional[ColorElement]:
            if address in states:
                return states[address]
            return self._elements.get(address)

        # 参照先が変更後も存在すること
        for address, new in states.items():
            if new is None:
                continue
            for dep in dependencies(new):
                if post(dep) is None:
                    raise UnresolvedDependency(
                        f"{address} reads from empty address {dep}", address=dep
                    )

        # 削除されるアドレスを読み続ける要素が残らないこと
        for address, new in states.items():
            if new is not None or address not in self._elements:
                continue
            dangling = set()
            for reader in self._dependents.get(address, ()):
                after = post(reader)
                if after is not None and address in dependencies(after):
                    dangling.add(reader)
            if dangling:
                raise DependentsExist(address=address, dependents=dangling)

        # 同じ依存列を持つ要素はまとめて 1 回の探索で検査する
        groups: Dict[Tuple[Address, ...], Set[Address]] = defaultdict(set)
        for address, new in states.items():
            if new is not None:
                deps = dependencies(new)
                if deps:
                    groups[deps].add(address)
        for deps, targets in groups.items():
            hit = self._reaches(deps, targets, post)
            if hit is not None:
                raise CyclicDependency(
                    f"{hit} would read from itself through {', '.join(str(d) for d in deps)}",
                    address=hit,
                )

    @staticmethod
    def _reaches(sources: Iterable[Address], targets: Set[Address], post) -> Optional[Address]:
        """BFS along dependency edges from ``sources``; first target reached or None."""
        seen: Set[Address] = set()
        queue = deque(sources)
        while queue:
            current = queue.popleft()
            if current in targets:
                return current
            if current in seen:
                continue
            seen.add(current)
            element = post(current)
            if element is not None:
                queue.extend(d for d in dependencies(element) if d not in seen)
        return None


__all__ = ["ElementGraph", "States"]
