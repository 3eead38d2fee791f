"""
FastAPI Routes.

페이지 라우트 (HTML) + API 라우트 (JSON)
"""

from . import editor, generate, pages, templates

__all__ = ["editor", "generate", "pages", "templates"]
