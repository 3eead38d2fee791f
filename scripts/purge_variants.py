#!/usr/bin/env python3
"""
purge_variants.py - 로컬 key-value 저장소 정리 스크립트

default.yaml의 storage 설정에 따라:
1. AI 템플릿 캐시(ai_thumbnails)를 ai_thumbnails_cap개로 자르기
2. 저장된 변형(thumbnail_variants)을 variants_cap개로 자르기
3. 손상된 레코드 (id 없음, dict 아님) 제거

목록은 최신순으로 저장되므로 뒤쪽(오래된 것)부터 제거.

사용법:
    # 기본 실행 (dry-run)
    uv run python scripts/purge_variants.py

    # 실제 정리
    uv run python scripts/purge_variants.py --execute

    # 다른 저장소 파일
    uv run python scripts/purge_variants.py --kv-path data/other.json --execute
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

# 프로젝트 루트를 path에 추가
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.kv_store import JsonFileKeyValueStore, KeyValueStore  # noqa: E402
from src.domain.constants import (  # noqa: E402
    AI_THUMBNAILS_CAP,
    AI_THUMBNAILS_KEY,
    VARIANTS_CAP,
    VARIANTS_KEY,
)
from src.domain.errors import StorageError  # noqa: E402

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@dataclass
class PurgeConfig:
    """정리 대상 키와 상한."""
    kv_path: str = "data/kv_store.json"
    caps: dict[str, int] = field(default_factory=lambda: {
        AI_THUMBNAILS_KEY: AI_THUMBNAILS_CAP,
        VARIANTS_KEY: VARIANTS_CAP,
    })


@dataclass
class PurgeResult:
    """정리 결과 (키별 제거 수)."""
    scanned: dict[str, int] = field(default_factory=dict)
    removed_over_cap: dict[str, int] = field(default_factory=dict)
    removed_invalid: dict[str, int] = field(default_factory=dict)

    @property
    def total_removed(self) -> int:
        return sum(self.removed_over_cap.values()) + sum(self.removed_invalid.values())


def load_purge_config(config_path: Path) -> PurgeConfig:
    """default.yaml에서 storage 설정 로드."""
    with open(config_path, encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}

    storage = config.get("storage", {})
    return PurgeConfig(
        kv_path=storage.get("kv_path", "data/kv_store.json"),
        caps={
            AI_THUMBNAILS_KEY: storage.get("ai_thumbnails_cap", AI_THUMBNAILS_CAP),
            VARIANTS_KEY: storage.get("variants_cap", VARIANTS_CAP),
        },
    )


def _is_valid_record(record: Any) -> bool:
    return isinstance(record, dict) and bool(record.get("id")) and isinstance(record.get("layers", []), list)


def purge_key(
    store: KeyValueStore,
    key: str,
    cap: int,
    execute: bool,
    result: PurgeResult,
) -> None:
    """단일 키 정리."""
    items = store.get(key, [])
    if not isinstance(items, list):
        logger.warning(f"{key}: 목록이 아님 ({type(items).__name__}), 건너뜀")
        return

    result.scanned[key] = len(items)

    valid = [item for item in items if _is_valid_record(item)]
    invalid_count = len(items) - len(valid)
    over_cap = max(0, len(valid) - cap)

    result.removed_invalid[key] = invalid_count
    result.removed_over_cap[key] = over_cap

    if invalid_count == 0 and over_cap == 0:
        logger.info(f"{key}: {len(items)}개, 정리 불필요 (상한 {cap})")
        return

    if not execute:
        logger.info(f"[DRY-RUN] {key}: 손상 {invalid_count}개, 상한 초과 {over_cap}개 제거 예정")
        return

    def _purge(current: Any) -> Any:
        if not isinstance(current, list):
            return current
        return [item for item in current if _is_valid_record(item)][:cap]

    store.update(key, _purge, default=[])
    logger.info(f"{key}: 손상 {invalid_count}개, 상한 초과 {over_cap}개 제거됨")


def purge_store(store: KeyValueStore, config: PurgeConfig, execute: bool) -> PurgeResult:
    """설정된 모든 키 정리."""
    result = PurgeResult()
    for key, cap in config.caps.items():
        purge_key(store, key, cap, execute, result)
    return result


def main() -> int:
    parser = argparse.ArgumentParser(
        description="로컬 key-value 저장소 정리 스크립트",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--execute",
        action="store_true",
        help="실제 정리 실행 (기본: dry-run)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="default.yaml",
        help="설정 파일 경로 (기본: default.yaml)",
    )
    parser.add_argument(
        "--kv-path",
        type=str,
        help="저장소 파일 경로 (기본: 설정의 storage.kv_path)",
    )

    args = parser.parse_args()

    project_root = Path(__file__).parent.parent
    config_path = project_root / args.config

    if not config_path.exists():
        logger.error(f"설정 파일 없음: {config_path}")
        return 1

    config = load_purge_config(config_path)
    kv_path = project_root / (args.kv_path or config.kv_path)

    if not kv_path.exists():
        logger.info(f"저장소 파일 없음, 정리할 항목 없음: {kv_path}")
        return 0

    if not args.execute:
        logger.info("=" * 50)
        logger.info("DRY-RUN 모드 (실제 변경 없음)")
        logger.info("실제 실행: --execute 옵션 추가")
        logger.info("=" * 50)

    try:
        result = purge_store(JsonFileKeyValueStore(kv_path), config, execute=args.execute)
    except StorageError as e:
        logger.error(f"저장소 오류 [{e.code}]: {e.message}")
        return 1

    logger.info("=" * 50)
    logger.info("정리 결과:")
    for key, count in result.scanned.items():
        logger.info(
            f"  {key}: {count}개 스캔, 손상 {result.removed_invalid.get(key, 0)}개, "
            f"상한 초과 {result.removed_over_cap.get(key, 0)}개"
        )
    logger.info(f"  합계 제거{' 예정' if not args.execute else ''}: {result.total_removed}개")

    return 0


if __name__ == "__main__":
    sys.exit(main())
