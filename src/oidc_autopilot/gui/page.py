"""
Dashboard page - Minimal launch form and live log view.
"""

from html import escape
from typing import Iterable, Optional

PAGE_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>OIDC Autopilot</title>
  <style>
    body {{ font-family: system-ui; background: #0f0f0f; color: #e5e5e5; margin: 2rem; }}
    label {{ display: block; margin-top: .5rem; }}
    input, select {{ width: 28rem; }}
    #cards {{ display: flex; flex-wrap: wrap; gap: .5rem; margin: 1rem 0; }}
    .card {{ border: 1px solid #333; padding: .5rem; min-width: 14rem; }}
    #log {{ background: #1a1a1a; height: 24rem; overflow: auto; white-space: pre-wrap; }}
    .error {{ color: #f87171; }}
  </style>
</head>
<body>
  <h1>OIDC Autopilot</h1>
  <form id="launch">
    <label>Config <select name="configPath">{config_options}</select></label>
    <label>Plan ID <input name="planId" value="{plan_id}"></label>
    <label>Token <input name="token" type="password" value=""></label>
    <label>Server <input name="serverUrl" value="{server_url}"></label>
    <label><input name="headless" type="checkbox" checked style="width:auto"> Headless</label>
    <button type="submit">Launch</button>
    <button type="button" id="stop">Stop</button>
  </form>
  <div id="cards"></div>
  <div id="log"></div>
  <script>
    const log = document.getElementById("log");
    const cards = document.getElementById("cards");
    const render = (list) => {{
      cards.innerHTML = "";
      for (const c of list) {{
        const div = document.createElement("div");
        div.className = "card"; div.id = "card-" + c.name;
        div.textContent = c.name + " - " + c.status + " " + c.result + " - " + c.lastMessage;
        cards.appendChild(div);
      }}
    }};
    const append = (text, cls) => {{
      const line = document.createElement("div");
      if (cls) line.className = cls;
      line.textContent = text;
      log.appendChild(line);
      log.scrollTop = log.scrollHeight;
    }};
    const feed = new EventSource("/api/feed");
    feed.onmessage = (e) => {{
      const l = JSON.parse(e.data);
      append(l.message, l.severity === "error" ? "error" : "");
    }};
    feed.addEventListener("moduleList", (e) => render(JSON.parse(e.data)));
    feed.addEventListener("moduleUpdate", (e) => {{
      const c = JSON.parse(e.data);
      const div = document.getElementById("card-" + c.name);
      if (div) div.textContent = c.name + " - " + c.status + " " + c.result + " - " + c.lastMessage;
    }});
    feed.addEventListener("planDone", (e) => {{
      const s = JSON.parse(e.data);
      append("Done: " + s.passed + " passed, " + s.failed + " failed of " + s.total);
    }});
    feed.addEventListener("stopped", () => append("Stopped by user", "error"));
    document.getElementById("launch").onsubmit = async (e) => {{
      e.preventDefault();
      const f = new FormData(e.target);
      const body = Object.fromEntries(f.entries());
      body.headless = f.get("headless") === "on";
      const res = await fetch("/api/launch", {{method: "POST", headers: {{"Content-Type": "application/json"}}, body: JSON.stringify(body)}});
      if (!res.ok) append("[ERROR]: " + (await res.json()).detail, "error");
      else log.innerHTML = "";
    }};
    document.getElementById("stop").onclick = () => fetch("/api/stop", {{method: "POST"}});
  </script>
</body>
</html>
"""


def build_page(
    config_files: Iterable[str],
    plan_id: Optional[str] = None,
    server_url: str = "",
) -> str:
    """Render the dashboard page with env-derived defaults."""
    options = "".join(
        f'<option value="{escape(path)}">{escape(path)}</option>' for path in config_files
    )
    return PAGE_TEMPLATE.format(
        config_options=options,
        plan_id=escape(plan_id or ""),
        server_url=escape(server_url),
    )
