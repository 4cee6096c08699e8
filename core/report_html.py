import os
from pathlib import Path
from jinja2 import Environment, FileSystemLoader, select_autoescape
from core.models import Severity

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

EMAIL_THEME = os.getenv("EMAIL_THEME", "dark").strip().lower()
if EMAIL_THEME not in ("light", "dark"):
    EMAIL_THEME = "dark"

THEMES = {
    "light": {
        "page_bg": "#f5f5f5",
        "card_bg": "#ffffff",
        "card_border": "#e0e0e0",
        "text_primary": "#202124",
        "text_secondary": "#555",
        "text_muted": "#999",
        "info": "#1a73e8",
        "success": "#2e7d32",
        "error": "#c62828",
    },
    "dark": {
        "page_bg": "#121212",
        "card_bg": "#1E1E1E",
        "card_border": "#333333",
        "text_primary": "#F1F1F1",
        "text_secondary": "#BBBBBB",
        "text_muted": "#777777",
        "info": "#8AB4F8",
        "success": "#4CAF50",
        "error": "#FF6B6B",
    },
}


def build_plaintext_notification(title: str, message: str, severity: Severity) -> str:
    template = env.get_template("notification.txt")
    return template.render(title=title, message=message, severity=severity.value)


def build_html_notification(
    title: str,
    message: str,
    severity: Severity,
    theme: str | None = None,
) -> str:
    theme = theme if theme in THEMES else EMAIL_THEME
    colors = THEMES[theme]
    template = env.get_template("notification.html")

    ctx = {
        "title": title,
        "message": message,
        "severity": severity.value,
        "accent": colors[severity.value],
        "colors": colors,
    }

    return template.render(**ctx)
