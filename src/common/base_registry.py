"""
共通レジストリ基底クラス
パレットフォーマット（FormatPolicy）などの名前付き定義を保持する。
"""

import re
from typing import Any, Callable


class BaseRegistry:
    """名前 → オブジェクトのレジストリ。

    - 文字列キーは正規化されます（大文字小文字・キャメル→スネークを吸収）。
    - デコレータは名前省略可。省略時は `name` 属性、なければ `__name__` から推論します。
    """

    def __init__(self):
        self._registry: dict[str, Any] = {}

    # === 内部ユーティリティ ===
    @staticmethod
    def _camel_to_snake(name: str) -> str:
        s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", name)
        s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
        return s2.lower()

    @classmethod
    def _normalize_key(cls, name: str) -> str:
        """レジストリキーの正規化（例: "SmallFormat" -> "small_format"）。"""
        if not isinstance(name, str):
            raise TypeError("レジストリキーは str である必要があります")
        name = name.strip()
        if not name:
            raise ValueError("レジストリキーは空であってはなりません")
        name = name.replace("-", "_").replace(" ", "_")
        # 大文字を含む場合のみキャメル→スネーク変換
        return cls._camel_to_snake(name) if any(c.isupper() for c in name) else name.lower()

    @staticmethod
    def _infer_name(obj: Any) -> str:
        name = getattr(obj, "name", None)
        if isinstance(name, str) and name:
            return name
        return obj.__name__

    def add(self, obj: Any, name: str | None = None, *, replace: bool = False) -> Any:
        """オブジェクトを登録して返す（同名の別オブジェクトは `replace=True` のみ上書き）。"""
        key = self._normalize_key(name if name else self._infer_name(obj))
        current = self._registry.get(key)
        if current is not None and current is not obj and not replace:
            raise ValueError(f"'{key}' は既に登録されています")
        self._registry[key] = obj
        return obj

    def register(self, name: str | None = None) -> Callable:
        """クラス/関数をレジストリに登録するデコレータ。"""

        def decorator(obj: Any) -> Any:
            return self.add(obj, name)

        return decorator

    def get(self, name: str) -> Any:
        """登録されたオブジェクトを取得（未登録は KeyError）。"""
        key = self._normalize_key(name)
        if key not in self._registry:
            raise KeyError(f"'{name}' は登録されていません")
        return self._registry[key]

    def list_all(self) -> list[str]:
        """登録されているすべての名前を取得（登録順）。"""
        return list(self._registry.keys())

    def is_registered(self, name: str) -> bool:
        """指定された名前が登録されているかチェック"""
        return self._normalize_key(name) in self._registry

    def unregister(self, name: str) -> None:
        """レジストリから削除（名前が存在しない場合は無視）。"""
        self._registry.pop(self._normalize_key(name), None)

    @property
    def registry(self) -> dict[str, Any]:
        """レジストリの読み取り専用アクセス"""
        return self._registry.copy()
