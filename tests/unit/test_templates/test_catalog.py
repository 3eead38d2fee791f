"""
test_catalog.py - 템플릿 카탈로그 테스트

DoD:
- base/*.yaml 파일명 순 로드, 잘못된 YAML/중복 id 거부
- resolve: 카탈로그 → AI 캐시 → 첫 템플릿 fallback
- 갤러리 필터: 카테고리 정확히 일치 + 이름/태그 부분 문자열
- AI 생성: 키워드 카테고리, 4레이어, 캐시 최신순 최대 10개
- template_id 검증
"""

import pytest
import yaml

from src.core.kv_store import MemoryKeyValueStore
from src.domain.constants import AI_THUMBNAILS_KEY, TEMPLATE_CATEGORIES
from src.domain.errors import ErrorCodes, TemplateError
from src.templates.catalog import (
    AI_DEFAULT_STYLE,
    TemplateCatalog,
    build_ai_template,
    detect_ai_style,
    validate_template_id,
)

# =============================================================================
# validate_template_id
# =============================================================================


class TestValidateTemplateId:
    @pytest.mark.parametrize("template_id", ["tech_review_bold", "ai_gen_1718000000000", "A-1"])
    def test_valid(self, template_id):
        validate_template_id(template_id)

    @pytest.mark.parametrize("template_id", ["", "../etc/passwd", "has space", "x" * 65])
    def test_invalid(self, template_id):
        with pytest.raises(TemplateError) as exc_info:
            validate_template_id(template_id)

        assert exc_info.value.code == ErrorCodes.INVALID_TEMPLATE_ID


# =============================================================================
# Static catalog
# =============================================================================


class TestStaticCatalog:
    """정적 카탈로그 로드."""

    def test_loads_in_filename_order(self, catalog):
        ids = [template.id for template in catalog.list_templates()]

        assert ids == ["tech_one", "gaming_one", "cooking_one"]

    def test_get_returns_copy(self, catalog):
        """반환값 변경이 카탈로그에 영향 없음."""
        template = catalog.get("tech_one")
        template.layers.clear()

        assert len(catalog.get("tech_one").layers) == 1

    def test_get_unknown(self, catalog):
        assert catalog.get("nope") is None

    def test_missing_base_dir(self, tmp_path):
        catalog = TemplateCatalog(tmp_path / "empty", MemoryKeyValueStore())

        assert catalog.list_templates() == []

    def test_invalid_yaml(self, templates_root, kv_store):
        (templates_root / "base" / "z_broken.yaml").write_text("id: [unclosed", encoding="utf-8")

        with pytest.raises(TemplateError) as exc_info:
            TemplateCatalog(templates_root, kv_store).list_templates()

        assert exc_info.value.code == ErrorCodes.INVALID_TEMPLATE

    def test_non_mapping_yaml(self, templates_root, kv_store):
        (templates_root / "base" / "z_list.yaml").write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(TemplateError):
            TemplateCatalog(templates_root, kv_store).list_templates()

    def test_duplicate_id(self, templates_root, kv_store):
        (templates_root / "base" / "z_dup.yaml").write_text(
            yaml.safe_dump({"id": "tech_one", "name": "Dup"}), encoding="utf-8"
        )

        with pytest.raises(TemplateError) as exc_info:
            TemplateCatalog(templates_root, kv_store).list_templates()

        assert "Duplicate" in exc_info.value.message

    def test_reload_picks_up_new_files(self, catalog, templates_root):
        assert catalog.get("new_one") is None

        (templates_root / "base" / "d_new.yaml").write_text(
            yaml.safe_dump({"id": "new_one", "name": "New", "category": "Travel"}), encoding="utf-8"
        )
        catalog.reload()

        assert catalog.get("new_one") is not None

    def test_bundled_catalog_loads(self, project_root):
        """저장소에 포함된 templates/base 전체 유효성."""
        catalog = TemplateCatalog(project_root / "templates", MemoryKeyValueStore())

        templates = catalog.list_templates()

        assert templates
        for template in templates:
            validate_template_id(template.id)
            assert template.category in TEMPLATE_CATEGORIES
            assert template.layers


# =============================================================================
# Resolve
# =============================================================================


class TestResolve:
    """카탈로그 → AI 캐시 → fallback."""

    def test_static_hit(self, catalog):
        assert catalog.resolve("gaming_one").id == "gaming_one"

    def test_unknown_falls_back_to_first(self, catalog):
        assert catalog.resolve("does_not_exist").id == "tech_one"

    def test_ai_cache_hit(self, catalog):
        generated = catalog.generate_ai_template("Gaming highlights reel")

        resolved = catalog.resolve(generated.id)

        assert resolved.id == generated.id
        assert resolved.category == "Gaming"
        assert len(resolved.layers) == 4

    def test_unknown_ai_id_falls_back(self, catalog):
        assert catalog.resolve("ai_gen_0").id == "tech_one"

    def test_invalid_cached_record_falls_back(self, catalog, kv_store):
        kv_store.set(AI_THUMBNAILS_KEY, [{"id": "ai_gen_5", "name": "Bad", "layers": [{"type": "blob"}]}])

        assert catalog.resolve("ai_gen_5").id == "tech_one"

    def test_empty_catalog_raises(self, tmp_path):
        catalog = TemplateCatalog(tmp_path, MemoryKeyValueStore())

        with pytest.raises(TemplateError) as exc_info:
            catalog.resolve("anything")

        assert exc_info.value.code == ErrorCodes.TEMPLATE_NOT_FOUND


# =============================================================================
# Gallery
# =============================================================================


class TestGallery:
    """카테고리/검색 필터."""

    def test_category_exact_match(self, catalog):
        results = catalog.list_templates(category="Gaming")

        assert [template.id for template in results] == ["gaming_one"]

    def test_category_all(self, catalog):
        assert len(catalog.list_templates(category="All")) == 3

    def test_query_matches_name_case_insensitive(self, catalog):
        results = catalog.list_templates(query="PASTA")

        assert [template.id for template in results] == ["cooking_one"]

    def test_query_matches_tag(self, catalog):
        results = catalog.list_templates(query="gadget")

        assert [template.id for template in results] == ["tech_one"]

    def test_category_and_query_combined(self, catalog):
        assert catalog.list_templates(category="Cooking", query="neon") == []

    def test_categories_fixed(self, catalog):
        assert catalog.categories() == list(TEMPLATE_CATEGORIES)


# =============================================================================
# AI generation
# =============================================================================


class TestAiGeneration:
    """프롬프트 → 템플릿."""

    @pytest.mark.parametrize(
        "prompt,category",
        [
            ("Tech tutorial about JavaScript arrays", "Technology"),
            ("Epic GAME night", "Gaming"),
            ("Easy pasta recipe", "Cooking"),
            ("Tokyo travel diary", "Travel"),
            ("Morning workout routine", "General"),
        ],
    )
    def test_detect_style(self, prompt, category):
        assert detect_ai_style(prompt)[0] == category

    def test_default_style(self):
        assert detect_ai_style("something else") == AI_DEFAULT_STYLE

    def test_build_layers(self):
        template = build_ai_template(
            "Cooking video easy pasta recipes for busy weeknights",
            template_id="ai_gen_1",
            created_at="2024-01-01T00:00:00Z",
        )

        ids = [layer.id for layer in template.layers]
        assert ids == ["ai_bg_overlay", "ai_main_title", "ai_subtitle", "ai_accent_shape"]
        assert template.layers[1].text == "COOKING VIDEO EASY PASTA"
        assert template.layers[2].text == "recipes for busy weeknights"
        assert template.layers[2].fill == "#f97316"
        assert template.name == "AI: COOKING VIDEO EASY PASTA"
        assert template.canvas.background_color == "#7c2d12"
        assert template.meta.tags == ["ai-generated", "cooking", "optimized"]

    def test_short_prompt_subtitle(self):
        template = build_ai_template("Tech news", "ai_gen_2", "")

        assert template.layers[2].text == "Amazing Content"

    def test_empty_prompt_rejected(self, catalog):
        with pytest.raises(TemplateError) as exc_info:
            catalog.generate_ai_template("   ")

        assert exc_info.value.code == ErrorCodes.EMPTY_PROMPT

    def test_cache_newest_first_and_capped(self, catalog, kv_store):
        """AI 캐시 최대 10개, 최신순."""
        generated = [catalog.generate_ai_template(f"Tech prompt number {i}") for i in range(12)]

        cached = kv_store.get(AI_THUMBNAILS_KEY)
        assert len(cached) == 10
        assert cached[0]["id"] == generated[-1].id
        assert generated[0].id not in {record["id"] for record in cached}

    def test_custom_cap(self, templates_root):
        catalog = TemplateCatalog(templates_root, MemoryKeyValueStore(), ai_cache_cap=2)
        for i in range(3):
            catalog.generate_ai_template(f"prompt {i}")

        assert len(catalog.ai_templates()) == 2
