"""
Page Routes: 랜딩, 에디터, AI 생성 화면 (HTML).

- GET / → 랜딩 (기능 소개)
- GET /editor/{template_id} → 에디터 (세션 API 사용)
- GET /ai-generator → AI 템플릿/이미지 생성
"""

import html

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse

from src.domain.constants import THUMBNAIL_THEMES
from src.domain.errors import TemplateError
from src.templates.catalog import validate_template_id

router = APIRouter()

FEATURES = [
    ("AI-Powered Templates", "Choose from professionally designed templates optimized for different content categories."),
    ("Layer-Based Editor", "Drag, drop, and customize text, images, and shapes with pixel-perfect precision."),
    ("One-Click Magic", "Generate multiple thumbnail variants instantly for A/B testing your content."),
    ("Export Optimization", "Download high-quality thumbnails optimized for YouTube's 1280x720 requirements."),
]

EXAMPLE_PROMPTS = [
    "Tech tutorial about JavaScript arrays",
    "Cooking video: Easy pasta recipes",
    "Gaming: Epic boss battle highlights",
    "Travel vlog: Tokyo night walk",
    "Fitness: 10-minute morning workout",
    "Business: How to start a startup",
]


@router.get("/", response_class=HTMLResponse)
async def landing_page(request: Request) -> HTMLResponse:
    """랜딩 화면."""
    features = "".join(
        f"<li><strong>{html.escape(title)}</strong><p>{html.escape(text)}</p></li>"
        for title, text in FEATURES
    )

    return HTMLResponse(content=f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Thumbnail Studio</title>
</head>
<body>
    <div class="container">
        <header>
            <h1>Thumbnail Studio</h1>
            <nav>
                <a href="/templates">Templates</a>
                <a href="/ai-generator">AI Generator</a>
            </nav>
        </header>
        <ul class="features">{features}</ul>
    </div>
</body>
</html>
    """)


@router.get("/editor/{template_id}", response_class=HTMLResponse)
async def editor_page(request: Request, template_id: str) -> HTMLResponse:
    """
    에디터 화면.

    로드 시 세션 생성 → 미리보기는 export 엔드포인트로 갱신.
    """
    try:
        validate_template_id(template_id)
    except TemplateError as e:
        raise HTTPException(status_code=400, detail={"code": e.code, "message": e.message}) from e

    safe_id = html.escape(template_id)

    return HTMLResponse(content=f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>Editor - Thumbnail Studio</title>
</head>
<body data-template-id="{safe_id}">
    <div class="container">
        <header>
            <h1 id="template-name">Loading template...</h1>
            <a href="/templates">Back to templates</a>
        </header>

        <div class="toolbar">
            <button data-action="text">Add Text</button>
            <button data-action="image">Add Image</button>
            <button data-action="circle">Add Circle</button>
            <button data-action="star">Add Star</button>
            <button data-action="undo">Undo</button>
            <button data-action="redo">Redo</button>
            <select id="export-format">
                <option value="png">PNG</option>
                <option value="jpg">JPG</option>
            </select>
            <button data-action="export">Export</button>
        </div>

        <img id="preview" alt="Canvas preview" width="640" height="360">
        <ul id="layer-list"></ul>
    </div>

    <script>
    const templateId = document.body.dataset.templateId;
    let sessionId = null;

    async function call(method, path, body) {{
        const response = await fetch(`/api/editor/sessions/${{sessionId}}${{path}}`, {{
            method,
            headers: {{"Content-Type": "application/json"}},
            body: body ? JSON.stringify(body) : undefined,
        }});
        if (!response.ok) {{
            const error = await response.json();
            alert(error.detail?.message || "Request failed");
            return null;
        }}
        const state = await response.json();
        render(state);
        return state;
    }}

    function render(state) {{
        document.getElementById("template-name").textContent = state.name;
        document.getElementById("preview").src =
            `/api/editor/sessions/${{state.session_id}}/export?format=png&t=${{Date.now()}}`;
        const list = document.getElementById("layer-list");
        list.replaceChildren(...[...state.layers].reverse().map((layer) => {{
            const item = document.createElement("li");
            item.textContent = `${{layer.type}} ${{layer.text || layer.id}}`;
            if (layer.id === state.selected_layer_id) item.classList.add("selected");
            item.onclick = () => call("POST", "/select", {{id: layer.id}});
            return item;
        }}));
    }}

    document.querySelectorAll("[data-action]").forEach((button) => {{
        button.onclick = () => {{
            const action = button.dataset.action;
            if (action === "undo" || action === "redo") return call("POST", `/${{action}}`);
            if (action === "export") {{
                const format = document.getElementById("export-format").value;
                window.location = `/api/editor/sessions/${{sessionId}}/export?format=${{format}}`;
                return;
            }}
            return call("POST", "/layers", {{type: action}});
        }};
    }});

    fetch("/api/editor/sessions", {{
        method: "POST",
        headers: {{"Content-Type": "application/json"}},
        body: JSON.stringify({{template_id: templateId}}),
    }}).then((r) => r.json()).then((state) => {{
        sessionId = state.session_id;
        render(state);
    }});
    </script>
</body>
</html>
    """)


@router.get("/ai-generator", response_class=HTMLResponse)
async def ai_generator_page(request: Request) -> HTMLResponse:
    """AI 생성 화면 (템플릿 생성 + 이미지 생성)."""
    themes = "".join(
        f'<option value="{html.escape(theme)}">{html.escape(theme.title())}</option>'
        for theme in THUMBNAIL_THEMES
    )
    examples = "".join(f"<li>{html.escape(prompt)}</li>" for prompt in EXAMPLE_PROMPTS)

    return HTMLResponse(content=f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>AI Generator - Thumbnail Studio</title>
</head>
<body>
    <div class="container">
        <header>
            <h1>AI Thumbnail Generator</h1>
        </header>

        <section>
            <h2>Template from a prompt</h2>
            <form id="template-form">
                <input name="prompt" placeholder="e.g., 'Tech tutorial about React hooks and best practices'">
                <button type="submit">Generate Template</button>
            </form>
            <ul class="examples">{examples}</ul>
        </section>

        <section>
            <h2>Image from a title</h2>
            <form id="image-form">
                <input name="title" placeholder="Video title" required>
                <textarea name="description" placeholder="What is the video about?" required></textarea>
                <select name="theme">{themes}</select>
                <button type="submit">Generate Image</button>
            </form>
            <p id="image-status"></p>
            <img id="image-result" alt="" width="640">
        </section>
    </div>

    <script>
    document.getElementById("template-form").onsubmit = async (event) => {{
        event.preventDefault();
        const prompt = new FormData(event.target).get("prompt");
        const response = await fetch("/api/templates/ai", {{
            method: "POST",
            headers: {{"Content-Type": "application/json"}},
            body: JSON.stringify({{prompt}}),
        }});
        if (response.ok) {{
            const template = await response.json();
            window.location = `/editor/${{template.id}}`;
        }}
    }};

    document.getElementById("image-form").onsubmit = async (event) => {{
        event.preventDefault();
        const status = document.getElementById("image-status");
        status.textContent = "Generating...";
        const body = Object.fromEntries(new FormData(event.target));
        const response = await fetch("/api/generate-thumbnail", {{
            method: "POST",
            headers: {{"Content-Type": "application/json"}},
            body: JSON.stringify(body),
        }});
        const result = await response.json();
        if (result.success) {{
            status.textContent = result.enhancedTitle;
            document.getElementById("image-result").src = result.image;
        }} else {{
            status.textContent = result.error + (result.retryable ? " (retry shortly)" : "");
        }}
    }};
    </script>
</body>
</html>
    """)
