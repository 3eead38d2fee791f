"""
App layer: 썸네일 스튜디오 서버 (FastAPI + HTMX).

역할:
- 랜딩/갤러리/에디터/AI 생성 페이지
- 템플릿, 에디터 세션, 썸네일 생성 API
- 외부 추론 API 호출 (providers)
- ⚠️ 레이어 편집 규칙 없음 (core에 위임)

주의: 폴더 구분
- src/templates/ → 코드 (catalog.py)
- templates/ (루트) → 데이터 저장소 (base/*.yaml)
"""
