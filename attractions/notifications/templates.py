import html
import re
from typing import Any, Dict

APPROVAL_REQUEST_EMAIL = """<!DOCTYPE html>
<html>
<body style="margin:0; padding:0; background-color:{{background_color}}; font-family:Arial, sans-serif;">
  <table width="100%" cellpadding="0" cellspacing="0" style="max-width:600px; margin:0 auto; background:#ffffff;">
    <tr>
      <td style="padding:20px; text-align:center;">
        <img src="{{logo}}" alt="{{company_name}}" style="max-height:60px; {{show_logo}}">
      </td>
    </tr>
    <tr>
      <td style="padding:20px; color:#333;">
        <p>Hi {{approver_name}},</p>
        <p>{{applicant_name}} is requesting approval for a booking amounting to <strong>{{amount_requested}}</strong>.</p>
        <table cellpadding="0" cellspacing="0" style="margin:10px 0;">
          {{details_table}}
        </table>
        <p>Request ID: {{request_id}}</p>
        <p>
          <a href="{{approval_link}}" style="background:{{primary_color}}; color:#fff; padding:10px 20px; text-decoration:none;">Approve</a>
          &nbsp;
          <a href="{{reject_link}}" style="background:#c0392b; color:#fff; padding:10px 20px; text-decoration:none;">Reject</a>
        </p>
      </td>
    </tr>
    <tr>
      <td style="padding:20px; font-size:12px; color:#777;">
        {{company_name}} &middot; {{company_address}}<br>
        {{company_email}} &middot; {{company_phone}}<br>
        {{contact_name}}
      </td>
    </tr>
  </table>
</body>
</html>
"""

DECISION_PAGE = """<!DOCTYPE html>
<html>
<head><title>{{title}}</title></head>
<body style="font-family:Arial, sans-serif; text-align:center; padding:40px; color:#333;">
  <h2>{{title}}</h2>
  <p>{{message}}</p>
</body>
</html>
"""

_PLACEHOLDER = re.compile(r"{{\s*(\w+)\s*}}")
_TAGS = re.compile(r"<[^>]+>")


def render(template: str, values: Dict[str, Any]) -> str:
    """Replace ``{{name}}`` placeholders; unknown placeholders are left as-is"""
    def substitute(match):
        key = match.group(1)
        return str(values[key]) if key in values else match.group(0)

    return _PLACEHOLDER.sub(substitute, template)


def build_details_table(details: Dict[str, Any]) -> str:
    """HTML rows for the booking summary"""
    rows = []
    for key, value in details.items():
        rows.append(
            '<tr>'
            f'<td style="padding: 5px; color: #333">{html.escape(str(key))}:</td>'
            f'<td style="padding: 5px; color: #333">{html.escape(str(value))}</td>'
            '</tr>'
        )
    return "".join(rows)


def decision_page(title: str, message: str) -> str:
    return render(DECISION_PAGE, {"title": html.escape(title), "message": html.escape(message)})


def html_to_text(body: str) -> str:
    text = _TAGS.sub(" ", body)
    text = html.unescape(text)
    return "\n".join(line.strip() for line in text.splitlines() if line.strip())
