"""
Core layer: 에디터 상태 핵심 모듈.

역할:
- 레이어 목록 + 선택 + undo/redo (layer_store, history)
- ID 발급 (ids)
- 로컬 key-value 저장소 (kv_store)
- 결정론적 변형 생성 (variants)
"""

from .history import HistoryStack
from .ids import (
    MonotonicIdGenerator,
    generate_ai_template_id,
    generate_layer_id,
    generate_session_id,
    sanitize_for_filename,
)
from .kv_store import (
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
    push_capped,
    trim_capped,
)
from .layer_store import LayerStore
from .variants import Variant, VariantStore, generate_variants

__all__ = [
    # layer_store / history
    "LayerStore",
    "HistoryStack",
    # ids
    "MonotonicIdGenerator",
    "generate_layer_id",
    "generate_ai_template_id",
    "generate_session_id",
    "sanitize_for_filename",
    # kv_store
    "KeyValueStore",
    "MemoryKeyValueStore",
    "JsonFileKeyValueStore",
    "push_capped",
    "trim_capped",
    # variants
    "Variant",
    "VariantStore",
    "generate_variants",
]
