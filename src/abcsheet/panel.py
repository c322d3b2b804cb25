"""
Local web panel for editing ABC notation and adding it to a design

Serves a single page with the notation input, syntax reference, preview,
alert and "Add to design" button, backed by one SheetMusicSession.
"""

import asyncio
import json
from dataclasses import asdict
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import urlparse

from .messages import SYNTAX_REFERENCE
from .session import SheetMusicSession

PANEL_HTML = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>ABC Sheet Music</title>
<style>
  body { font-family: sans-serif; max-width: 360px; margin: 16px auto; }
  textarea { width: 100%; font-family: monospace; }
  .preview { background: #f2f2f2; border-radius: 6px; padding: 16px; min-height: 40px; }
  .alert { background: #fde8e8; color: #9b1c1c; padding: 8px; border-radius: 4px; }
  button { width: 100%; padding: 10px; }
  [hidden] { display: none; }
</style>
</head>
<body>
<details>
  <summary id="reference-title"></summary>
  <div id="reference"></div>
</details>
<h4 id="input-label"></h4>
<textarea id="abc" rows="10"></textarea>
<h4 id="preview-label"></h4>
<div class="preview" id="preview"></div>
<p class="alert" id="alert" hidden></p>
<button id="add"></button>
<script>
const $ = (id) => document.getElementById(id);

function show(state) {
  $('reference-title').textContent = state.labels.referenceTitle;
  $('reference').innerHTML = state.labels.reference.map((line) => `<p>${line}</p>`).join('');
  $('input-label').textContent = state.labels.input;
  $('abc').placeholder = state.labels.placeholder;
  $('preview-label').textContent = state.labels.preview;
  $('preview').innerHTML = state.previewSvg || '';
  $('alert').hidden = !state.error;
  $('alert').textContent = state.error || '';
  $('add').textContent = state.button.loading ? '...' : state.button.label;
  $('add').disabled = state.button.disabled;
  $('add').title = state.button.tooltip || '';
}

async function call(method, path, body) {
  const response = await fetch(path, {
    method, headers: {'Content-Type': 'application/json'},
    body: body === undefined ? undefined : JSON.stringify(body),
  });
  show(await response.json());
}

$('abc').addEventListener('input', () => call('POST', '/api/text', {text: $('abc').value}));
$('add').addEventListener('click', () => { $('add').disabled = true; call('POST', '/api/add'); });

fetch('/api/state').then((r) => r.json()).then((state) => { $('abc').value = state.text; show(state); });
</script>
</body>
</html>
"""


def session_state(session: SheetMusicSession) -> dict:
    """Everything the page needs to draw itself"""
    messages = session.messages
    return {
        'text': session.text,
        'hasValidNotation': session.has_valid_notation,
        'isLoading': session.is_loading,
        'error': session.error,
        'previewSvg': session.preview_svg,
        'button': asdict(session.button_state()),
        'labels': {
            'referenceTitle': messages.format('syntax_reference.title'),
            'reference': [messages.format(m) for m in SYNTAX_REFERENCE],
            'input': messages.format('input.label'),
            'placeholder': messages.format('input.placeholder'),
            'preview': messages.format('preview.label'),
        },
    }


class PanelServer(HTTPServer):
    """HTTP server owning one session and the event loop its host calls run on"""

    def __init__(self, address, session: SheetMusicSession, loop: asyncio.AbstractEventLoop):
        super().__init__(address, PanelRequestHandler)
        self.session = session
        self.loop = loop


class PanelRequestHandler(BaseHTTPRequestHandler):
    """HTTP handler for the panel page and its JSON API"""

    server: PanelServer

    def do_GET(self):
        path = urlparse(self.path).path

        if path == '/' or path == '/index.html':
            self.send_body(PANEL_HTML.encode('utf-8'), 'text/html; charset=utf-8')
        elif path == '/api/state':
            self.send_json_response(session_state(self.server.session))
        else:
            self.send_error(404)

    def do_POST(self):
        path = urlparse(self.path).path
        session = self.server.session

        if path == '/api/text':
            data = self.read_json()
            if data is None or not isinstance(data.get('text'), str):
                self.send_error(400, 'Expected {"text": "..."}')
                return
            session.set_text(data['text'])
            self.send_json_response(session_state(session))

        elif path == '/api/add':
            added = self.server.loop.run_until_complete(session.add_to_design())
            state = session_state(session)
            state['added'] = added
            self.send_json_response(state)

        else:
            self.send_error(404)

    def read_json(self):
        length = int(self.headers.get('Content-Length') or 0)
        try:
            data = json.loads(self.rfile.read(length).decode('utf-8'))
        except ValueError:
            return None
        return data if isinstance(data, dict) else None

    def send_body(self, body: bytes, content_type: str):
        self.send_response(200)
        self.send_header('Content-Type', content_type)
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def send_json_response(self, data):
        """Send JSON response"""
        self.send_body(json.dumps(data).encode('utf-8'), 'application/json')

    def log_message(self, format, *args):
        """Suppress default logging."""


def run_server(session: SheetMusicSession, loop: asyncio.AbstractEventLoop, port: int = 8000):
    """Run the panel until interrupted"""
    httpd = PanelServer(('', port), session, loop)

    print(f"ABC sheet music panel: http://localhost:{port}/")
    if not session.is_supported:
        print("  (no design host connected - 'Add to design' is disabled)")
    print("Press Ctrl+C to stop")

    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        print("\n\nServer stopped.")
    finally:
        httpd.server_close()
