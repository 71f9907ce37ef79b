"""HTML bodies for the completion and share emails."""

from html import escape

_LAYOUT = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><meta name="viewport" content="width=device-width, initial-scale=1.0"></head>
<body style="font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',sans-serif;background:#f8fafc;margin:0;padding:40px 20px;">
  <div style="max-width:600px;margin:0 auto;background:#fff;border-radius:16px;overflow:hidden;">
    <div style="background:#4f46e5;padding:28px 32px;">
      <h1 style="color:#fff;margin:0;font-size:20px;">{app_name}</h1>
    </div>
    <div style="padding:32px;">
{content}
      <div style="text-align:center;margin-top:24px;">
        <a href="{link}" style="display:inline-block;background:#4f46e5;color:#fff;text-decoration:none;padding:13px 28px;border-radius:10px;font-weight:600;">View Full Report</a>
      </div>
    </div>
  </div>
</body>
</html>"""


def _paragraphs(text: str) -> str:
    return "<br><br>".join(escape(part) for part in text.split("\n\n"))


def render_completion_email(app_name: str, client_name: str, preview: str, link: str) -> str:
    content = (
        f'      <h2 style="color:#1e293b;font-size:18px;margin:0 0 8px;">{escape(client_name)}: Report Ready</h2>\n'
        '      <p style="color:#64748b;font-size:14px;">The analysis is complete. Preview of the executive summary:</p>\n'
        f'      <p style="color:#334155;font-size:14px;line-height:1.7;border-left:4px solid #4f46e5;padding-left:16px;">{escape(preview)}</p>'
    )
    return _LAYOUT.format(app_name=escape(app_name), content=content, link=escape(link, quote=True))


def render_share_email(app_name: str, client_name: str, summary: str, link: str) -> str:
    content = (
        '      <h2 style="color:#1e293b;font-size:20px;margin:0 0 8px;">Analysis Report Shared</h2>\n'
        f'      <p style="color:#64748b;font-size:14px;">An analysis report has been shared with you for client <strong>{escape(client_name)}</strong>.</p>\n'
        '      <h3 style="color:#4f46e5;font-size:14px;text-transform:uppercase;">Executive Summary</h3>\n'
        f'      <p style="color:#334155;font-size:14px;line-height:1.7;">{_paragraphs(summary)}</p>'
    )
    return _LAYOUT.format(app_name=escape(app_name), content=content, link=escape(link, quote=True))
