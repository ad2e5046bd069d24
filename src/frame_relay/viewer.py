"""
Viewer Page
===========

Self-contained HTML page that watches the push channel.

The page connects to the relay's WebSocket on the host it was served
from and shows every ``video-frame`` payload as a base64 JPEG. It
reconnects two seconds after the socket closes.
"""

import html
import json

from frame_relay.models.output import VIDEO_FRAME_EVENT


_PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
    <meta charset="UTF-8" />
    <title>{title}</title>
</head>
<body style="background:#111; color:#fff; text-align:center; margin:0; padding:0;">
    <h2 style="font-family:sans-serif;">{title}</h2>
    <img id="video" style="width:90%; max-width:600px; border:2px solid #fff;">
    <p id="status" style="font-family:sans-serif; color:#888;">Conectando...</p>

    <script>
        const WS_PATH = {ws_path};
        const EVENT = {event};

        function connect() {{
            const scheme = window.location.protocol === "https:" ? "wss://" : "ws://";
            const socket = new WebSocket(scheme + window.location.host + WS_PATH);
            const status = document.getElementById("status");

            socket.onopen = () => {{
                status.textContent = "Conectado";
            }};

            socket.onmessage = (message) => {{
                const packet = JSON.parse(message.data);
                if (packet.event !== EVENT) {{
                    return;
                }}
                document.getElementById("video").src = "data:image/jpeg;base64," + packet.data;
            }};

            socket.onclose = () => {{
                status.textContent = "Desconectado, reintentando...";
                setTimeout(connect, 2000);
            }};
        }}

        connect();
    </script>
</body>
</html>
"""


def render_viewer_page(ws_path: str, title: str = "Streaming Parking") -> str:
    """
    Render the viewer HTML.

    Args:
        ws_path: WebSocket path on the same host, e.g. "/ws/stream"
        title: Page title and heading

    Returns:
        Complete HTML document
    """
    return _PAGE_TEMPLATE.format(
        title=html.escape(title),
        ws_path=json.dumps(ws_path),
        event=json.dumps(VIDEO_FRAME_EVENT),
    )
