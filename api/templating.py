"""
Jinja2 template environment shared by the HTML routes and error handlers.
"""

from pathlib import Path

from fastapi.templating import Jinja2Templates

from api.schemas.receipt import RECEIPT_FIELDS


TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["receipt_fields"] = RECEIPT_FIELDS
