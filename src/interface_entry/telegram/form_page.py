"""HTML rendering of a `FormDescriptor` as a Telegram Web App page."""
from __future__ import annotations

import html
import json

from business_logic.daily_log import FormDescriptor, FormRow

__all__ = ["MAX_FIELD_LENGTH", "MAX_PAYLOAD_BYTES", "TELEGRAM_WEB_APP_SCRIPT", "render_form_page"]

TELEGRAM_WEB_APP_SCRIPT = "https://telegram.org/js/telegram-web-app.js"

# Telegram drops `sendData` payloads above this size; text inputs are capped like the original modal inputs.
MAX_PAYLOAD_BYTES = 4096
MAX_FIELD_LENGTH = 4000

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
<title>{title}</title>
<script src="{script}"></script>
<style>
body {{ font-family: sans-serif; margin: 0; padding: 16px; background: var(--tg-theme-bg-color, #fff); color: var(--tg-theme-text-color, #000); }}
label {{ display: block; margin: 12px 0 4px; font-weight: 600; }}
input, textarea {{ width: 100%; box-sizing: border-box; padding: 8px; font-size: 15px; }}
textarea {{ min-height: 96px; }}
</style>
</head>
<body>
<h1>{title}</h1>
<form id="daily-log-form">
{rows}
</form>
<script>
(function () {{
  var app = window.Telegram.WebApp;
  var formId = {form_id};
  var fieldIds = {field_ids};
  var maxPayloadBytes = {max_payload_bytes};
  app.ready();
  app.MainButton.setText("Submit");
  app.MainButton.show();
  app.MainButton.onClick(function () {{
    var form = document.getElementById("daily-log-form");
    if (!form.reportValidity()) {{
      return;
    }}
    var fields = {{}};
    fieldIds.forEach(function (fieldId) {{
      fields[fieldId] = document.getElementById(fieldId).value;
    }});
    var payload = JSON.stringify({{form_id: formId, fields: fields}});
    if (new TextEncoder().encode(payload).length > maxPayloadBytes) {{
      app.showAlert("This entry is too long to send. Please shorten your notes.");
      return;
    }}
    try {{
      app.sendData(payload);
    }} catch (err) {{
      app.showAlert("Could not send your log: " + err.message);
    }}
  }});
}})();
</script>
</body>
</html>
"""


def _render_row(row: FormRow) -> str:
    field_id = html.escape(row.field_id, quote=True)
    attributes = f'id="{field_id}" name="{field_id}" placeholder="{html.escape(row.placeholder, quote=True)}"'
    attributes += f' maxlength="{MAX_FIELD_LENGTH}"'
    if row.required:
        attributes += " required"
    label = f'<label for="{field_id}">{html.escape(row.label)}</label>'
    if row.style == "paragraph":
        return f"{label}\n<textarea {attributes}></textarea>"
    return f'{label}\n<input type="text" {attributes}>'


def render_form_page(descriptor: FormDescriptor) -> str:
    # json.dumps output is embedded in a script block, so "</" must not survive.
    def _js(value: object) -> str:
        return json.dumps(value).replace("</", "<\\/")

    return _PAGE_TEMPLATE.format(
        title=html.escape(descriptor.title),
        script=TELEGRAM_WEB_APP_SCRIPT,
        rows="\n".join(_render_row(row) for row in descriptor.rows),
        form_id=_js(descriptor.form_id),
        field_ids=_js([row.field_id for row in descriptor.rows]),
        max_payload_bytes=MAX_PAYLOAD_BYTES,
    )
