"""
どこで: `common` パッケージ。
何を: 設定・環境変数・ロギング・レジストリ・読み書きロックなど、パレットエンジン横断の軽量ユーティリティ。
なぜ: `palette` 本体から基盤的な関心を分離し、依存の向きを単純化するため。
"""

from .base_registry import BaseRegistry
from .rwlock import ReadWriteLock

__all__ = [
    "BaseRegistry",
    "ReadWriteLock",
]
