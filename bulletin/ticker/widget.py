"""
Browser rendition of the ticker injector, served as a drop-in <script>.

Same constants as the document injector (selectors, marker, separator, duration formula,
polling budget); the JS adds MutationObserver for the reconcile step.

Usage:
    <script src="https://bulletin.example.com/widget/ticker.js" defer></script>
"""
import json

from bulletin.ticker.injector import MAX_POLL_ATTEMPTS, POLL_INTERVAL_SECONDS
from bulletin.ticker.markup import (
    ANCHOR_SELECTORS,
    BASE_DURATION_SECONDS,
    ROOT_CONTAINER_IDS,
    SECONDS_PER_CHARACTER,
    SEPARATOR,
    STYLE_ID,
    TICKER_CLASS,
    TICKER_CSS,
    TICKER_MARKER,
)

# str.format template: constants arrive JSON-encoded, JS blocks are written {{ }}.
_WIDGET_JS_TEMPLATE = r"""
(function () {{
  'use strict';

  var FEED_URL = {feed_url};
  var MARKER = {marker};
  var BAR_CLASS = {bar_class};
  var STYLE_ID = {style_id};
  var SEPARATOR = {separator};
  var ANCHOR_SELECTORS = {anchor_selectors};
  var ROOT_IDS = {root_ids};
  var BASE_DURATION = {base_duration};
  var SECONDS_PER_CHAR = {seconds_per_char};
  var POLL_INTERVAL_MS = {poll_interval_ms};
  var MAX_ATTEMPTS = {max_attempts};
  var CSS = {css};

  function log(msg, err) {{
    if (window.console) console.error('Bulletin ticker: ' + msg, err || '');
  }}

  function extractItems(data) {{
    if (Array.isArray(data)) return data;
    if (data && typeof data === 'object') {{
      var keys = ['announcements', 'testimonials', 'items'];
      for (var i = 0; i < keys.length; i++) {{
        if (Array.isArray(data[keys[i]])) return data[keys[i]];
      }}
    }}
    return [];
  }}

  function itemText(item) {{
    if (!item || typeof item !== 'object') return '';
    return String(item.content || item.testimonialContent || '').trim();
  }}

  function scrollDuration(chars) {{
    return Math.max(BASE_DURATION, BASE_DURATION + SECONDS_PER_CHAR * chars);
  }}

  function isPresent() {{
    return document.querySelector('[' + MARKER + ']') !== null;
  }}

  function findAnchor() {{
    for (var i = 0; i < ANCHOR_SELECTORS.length; i++) {{
      var node = document.querySelector(ANCHOR_SELECTORS[i]);
      if (node) return node;
    }}
    return null;
  }}

  function findRoot() {{
    for (var i = 0; i < ROOT_IDS.length; i++) {{
      var node = document.getElementById(ROOT_IDS[i]);
      if (node) return node;
    }}
    return document.body;
  }}

  function ensureStyle() {{
    if (document.getElementById(STYLE_ID)) return;
    var style = document.createElement('style');
    style.id = STYLE_ID;
    style.textContent = CSS;
    (document.head || document.documentElement).appendChild(style);
  }}

  function buildBar(text, duration) {{
    var bar = document.createElement('div');
    bar.className = BAR_CLASS;
    bar.setAttribute(MARKER, '');
    var wrapper = document.createElement('div');
    wrapper.className = 'ticker-wrapper';
    var content = document.createElement('div');
    content.className = 'ticker-content';
    content.style.animationDuration = duration + 's';
    for (var i = 0; i < 2; i++) {{
      var span = document.createElement('span');
      span.textContent = text;
      content.appendChild(span);
    }}
    wrapper.appendChild(content);
    bar.appendChild(wrapper);
    return bar;
  }}

  function TickerInjector(text, duration) {{
    this.text = text;
    this.duration = duration;
    this.state = 'SEARCHING';
    this.attempts = 0;
    this.timer = null;
    this.observer = null;
    this.started = false;
  }}

  TickerInjector.prototype.markInserted = function () {{
    this.state = this.started ? 'OBSERVING' : 'INSERTED';
  }};

  TickerInjector.prototype.insertAtAnchor = function () {{
    if (isPresent()) {{ this.markInserted(); return true; }}
    var anchor = findAnchor();
    if (!anchor) return false;
    ensureStyle();
    if (window.getComputedStyle(anchor).position === 'static') {{
      anchor.style.position = 'relative';
    }}
    anchor.appendChild(buildBar(this.text, this.duration));
    this.markInserted();
    return true;
  }};

  TickerInjector.prototype.insertFallback = function () {{
    if (isPresent()) {{ this.markInserted(); return true; }}
    ensureStyle();
    var bar = buildBar(this.text, this.duration);
    bar.style.position = 'relative';
    bar.style.top = 'auto';
    var root = findRoot() || document.documentElement;
    root.insertBefore(bar, root.firstChild);
    this.markInserted();
    return true;
  }};

  TickerInjector.prototype.stopPolling = function () {{
    if (this.timer !== null) {{
      clearInterval(this.timer);
      this.timer = null;
    }}
  }};

  TickerInjector.prototype.onMutation = function () {{
    if (!this.started || isPresent()) return;
    this.state = 'SEARCHING';
    if (this.timer !== null) {{
      this.insertAtAnchor();
    }} else if (!this.insertAtAnchor()) {{
      this.insertFallback();
    }}
  }};

  TickerInjector.prototype.observe = function () {{
    var self = this;
    var root = findRoot() || document.documentElement;
    this.observer = new MutationObserver(function () {{
      try {{ self.onMutation(); }} catch (e) {{ log('reconcile failed', e); }}
    }});
    this.observer.observe(root, {{ childList: true, subtree: true }});
  }};

  TickerInjector.prototype.start = function () {{
    var self = this;
    this.started = true;
    this.observe();
    if (this.insertAtAnchor()) return;
    this.attempts = 0;
    this.timer = setInterval(function () {{
      self.attempts++;
      if (self.insertAtAnchor()) {{
        self.stopPolling();
      }} else if (self.attempts >= MAX_ATTEMPTS) {{
        self.stopPolling();
        self.insertFallback();
      }}
    }}, POLL_INTERVAL_MS);
  }};

  TickerInjector.prototype.stop = function () {{
    this.started = false;
    this.stopPolling();
    if (this.observer) {{
      this.observer.disconnect();
      this.observer = null;
    }}
  }};

  function run(injector) {{
    try {{ injector.start(); }} catch (e) {{ log('insert failed', e); }}
  }}

  fetch(FEED_URL, {{ headers: {{ Accept: 'application/json' }} }})
    .then(function (res) {{
      if (!res.ok) throw new Error('HTTP ' + res.status);
      return res.json();
    }})
    .then(function (data) {{
      var texts = extractItems(data).map(itemText).filter(Boolean);
      if (texts.length === 0) return;
      var chars = texts.reduce(function (n, t) {{ return n + t.length; }}, 0);
      var injector = new TickerInjector(texts.join(SEPARATOR), scrollDuration(chars));
      if (document.readyState === 'loading') {{
        document.addEventListener('DOMContentLoaded', function () {{ run(injector); }});
      }} else {{
        run(injector);
      }}
    }})
    .catch(function (e) {{ log('feed unavailable', e); }});
}})();
"""


def build_widget_js(feed_url: str) -> str:
    """Render the widget with the given feed URL; every value is JSON-encoded into the script."""
    return _WIDGET_JS_TEMPLATE.format(
        feed_url=json.dumps(feed_url),
        marker=json.dumps(TICKER_MARKER),
        bar_class=json.dumps(TICKER_CLASS),
        style_id=json.dumps(STYLE_ID),
        separator=json.dumps(SEPARATOR),
        anchor_selectors=json.dumps(list(ANCHOR_SELECTORS)),
        root_ids=json.dumps(list(ROOT_CONTAINER_IDS)),
        base_duration=json.dumps(BASE_DURATION_SECONDS),
        seconds_per_char=json.dumps(SECONDS_PER_CHARACTER),
        poll_interval_ms=int(POLL_INTERVAL_SECONDS * 1000),
        max_attempts=MAX_POLL_ATTEMPTS,
        css=json.dumps(TICKER_CSS),
    ).lstrip()
