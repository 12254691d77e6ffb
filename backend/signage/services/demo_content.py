"""Built-in sequence shown when neither schedules nor active content yield anything."""

from __future__ import annotations

from typing import List

from ..models.content import ContentItem

_HOURS_HTML = """
<div style="display: flex; flex-direction: column; justify-content: center; align-items: center; height: 100vh; background: linear-gradient(135deg, #667eea 0%, #764ba2 100%); color: white; text-align: center; font-family: 'Arial', sans-serif;">
  <h1 style="font-size: 4rem; margin-bottom: 2rem; font-weight: bold;">Horarios de Atención</h1>
  <div style="font-size: 2rem; line-height: 1.5;">
    <p>Lunes a Viernes: 8:00 AM - 6:00 PM</p>
    <p>Sábados: 9:00 AM - 2:00 PM</p>
    <p style="margin-top: 1rem; font-size: 1.5rem; opacity: 0.9;">¡Te esperamos!</p>
  </div>
</div>
""".strip()

_DEMO_ROWS = (
    {
        "id": "1",
        "title": "Bienvenidos",
        "kind": "text",
        "duration_seconds": 5,
        "payload": {
            "text": "Bienvenidos a nuestra empresa",
            "font_size": "48px",
            "color": "#1F2937",
            "background_color": "#F3F4F6",
        },
    },
    {
        "id": "2",
        "title": "Promoción Enero",
        "kind": "image",
        "duration_seconds": 8,
        "payload": {
            "url": (
                "https://images.pexels.com/photos/4386431/pexels-photo-4386431.jpeg"
                "?auto=compress&cs=tinysrgb&w=1920&h=1080"
            ),
            "alt_or_filename": "Promoción especial",
        },
    },
    {
        "id": "3",
        "title": "Horarios de Atención",
        "kind": "markup",
        "duration_seconds": 6,
        "payload": {"html": _HOURS_HTML},
    },
)


def demo_sequence() -> List[ContentItem]:
    return [ContentItem.model_validate(row) for row in _DEMO_ROWS]
