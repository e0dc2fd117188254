from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

# Setup templates directory
templates_dir = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(templates_dir))


def render(request: Request, name: str, status_code: int = 200, **context):
    """Render a page; the layout always gets ``current_user``."""
    context.setdefault("current_user", getattr(request.state, "session", None))
    return templates.TemplateResponse(request, name, context, status_code=status_code)
