"""
Pytest fixtures for the thumbnail studio tests.

구성:
- 경로/설정 fixture
- 결정론적 ID 생성기
- 레이어/템플릿 샘플
- key-value store, 카탈로그, FastAPI 클라이언트
"""

import itertools
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import yaml
from fastapi.testclient import TestClient

from src.app.main import create_app
from src.core.kv_store import MemoryKeyValueStore
from src.domain.layers import Layer, layer_from_dict
from src.templates.catalog import TemplateCatalog

# =============================================================================
# Path Fixtures
# =============================================================================

@pytest.fixture
def project_root() -> Path:
    """프로젝트 루트 경로."""
    return Path(__file__).parent.parent


@pytest.fixture
def default_config_path(project_root: Path) -> Path:
    """default.yaml 경로."""
    return project_root / "default.yaml"


@pytest.fixture
def default_config(default_config_path: Path) -> dict:
    """기본 설정 로드."""
    with open(default_config_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


# =============================================================================
# ID Fixtures
# =============================================================================

@pytest.fixture
def id_factory() -> Callable[[str], str]:
    """결정론적 ID 생성기: text_1, rect_2, ..."""
    counter = itertools.count(1)

    def _factory(prefix: str) -> str:
        return f"{prefix}_{next(counter)}"

    return _factory


# =============================================================================
# Layer Fixtures
# =============================================================================

@pytest.fixture
def sample_layer_dicts() -> list[dict]:
    """직렬화 포맷 레이어 3개 (배경 사각형, 제목, 원)."""
    return [
        {
            "id": "bg", "type": "rect",
            "x": 0, "y": 0, "width": 1280, "height": 720,
            "fill": "#112233",
        },
        {
            "id": "title", "type": "text", "text": "Hello",
            "x": 100, "y": 100, "fontSize": 64, "fill": "#ffffff",
            "stroke": "#000000", "strokeWidth": 2,
        },
        {
            "id": "dot", "type": "circle",
            "x": 600, "y": 300, "width": 100, "height": 100,
            "fill": "#ff0000",
        },
    ]


@pytest.fixture
def sample_layers(sample_layer_dicts: list[dict]) -> list[Layer]:
    return [layer_from_dict(item) for item in sample_layer_dicts]


# =============================================================================
# Template Fixtures
# =============================================================================

def _template_record(template_id: str, name: str, category: str, tags: list[str]) -> dict:
    return {
        "id": template_id,
        "name": name,
        "category": category,
        "preview": f"/templates/{template_id}.jpg",
        "description": f"{name} description",
        "canvas": {"width": 1280, "height": 720, "backgroundColor": "#000000"},
        "layers": [
            {
                "id": f"{template_id}_title", "type": "text", "text": name,
                "x": 50, "y": 50, "fontSize": 72, "fill": "#ffffff",
            },
        ],
        "meta": {"tags": tags, "recommended": False, "createdAt": "2024-01-01T00:00:00Z"},
    }


@pytest.fixture
def templates_root(tmp_path: Path) -> Path:
    """
    임시 templates/ 루트.

    base/ 하위 3개 (파일명 순: a_tech, b_gaming, c_cooking)
    """
    root = tmp_path / "templates"
    base = root / "base"
    base.mkdir(parents=True)

    records = [
        ("a_tech.yaml", _template_record("tech_one", "Gadget Review", "Technology", ["review", "Gadget"])),
        ("b_gaming.yaml", _template_record("gaming_one", "Neon Battle", "Gaming", ["esports", "neon"])),
        ("c_cooking.yaml", _template_record("cooking_one", "Pasta Night", "Cooking", ["recipe"])),
    ]
    for filename, record in records:
        (base / filename).write_text(yaml.safe_dump(record), encoding="utf-8")

    return root


@pytest.fixture
def kv_store() -> MemoryKeyValueStore:
    """메모리 key-value store."""
    return MemoryKeyValueStore()


@pytest.fixture
def catalog(templates_root: Path, kv_store: MemoryKeyValueStore) -> TemplateCatalog:
    return TemplateCatalog(templates_root, kv_store)


# =============================================================================
# App Fixtures
# =============================================================================

@pytest.fixture
def app(templates_root: Path, kv_store: MemoryKeyValueStore, default_config_path: Path):
    """임시 카탈로그 + 메모리 저장소를 쓰는 FastAPI 앱."""
    return create_app(
        config_path=default_config_path,
        templates_root=templates_root,
        kv_store=kv_store,
    )


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """FastAPI TestClient (lifespan 포함)."""
    with TestClient(app) as client:
        yield client
