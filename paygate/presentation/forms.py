"""HTML rendering of the auto-submitting redirect form."""

from html import escape

from ..domain.models import SignedRequest


def render_redirect_form(signed: SignedRequest) -> str:
    """
    Render a form that posts ``signed`` to the processor on load.

    Attribute values are HTML-escaped; the browser decodes them back to the
    exact bytes that were signed.
    """
    inputs = "\n    ".join(
        f'<input type="hidden" name="{escape(name, quote=True)}" value="{escape(value, quote=True)}" />'
        for name, value in signed.form_fields()
    )
    return f"""<!doctype html>
<html>
<head><meta charset="utf-8"><title>Redirecting to PayFast</title></head>
<body onload="document.forms[0].submit()">
  <form action="{escape(signed.target_url, quote=True)}" method="post">
    {inputs}
    <noscript><button type="submit">Continue to PayFast</button></noscript>
  </form>
  <p>Redirecting to PayFast…</p>
</body>
</html>"""
