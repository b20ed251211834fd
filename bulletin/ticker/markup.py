"""
Ticker content and timing, shared by the document injector and the browser widget.

Text of every approved item is joined with a separator and rendered twice side by side;
the CSS animation scrolls by -50%, so the second copy makes the loop seamless.
Scroll duration grows with content length so reading speed stays roughly constant.
"""
from dataclasses import dataclass

from bs4 import BeautifulSoup, Tag

TICKER_MARKER = "data-bulletin-ticker"
TICKER_CLASS = "announcement-bar"
STYLE_ID = "bulletin-ticker-style"
SEPARATOR = "   +++   "

BASE_DURATION_SECONDS = 10.0
SECONDS_PER_CHARACTER = 0.15

# Anchor candidates, highest priority first. First match wins.
ANCHOR_SELECTORS = (
    "nav",
    '[role="navigation"]',
    "header",
    '[role="banner"]',
    ".navbar",
    ".nav",
    ".header",
    "#header",
)
# Fallback containers (SPA mount points), then <body>
ROOT_CONTAINER_IDS = ("root", "app")

TICKER_CSS = """
.announcement-bar {
  width: 100%;
  background: #000;
  color: #fff;
  overflow: hidden;
  padding: 12px 0;
  position: absolute;
  top: 100%;
  left: 0;
  z-index: 40;
  font-family: system-ui, -apple-system, sans-serif;
  font-weight: 500;
  display: flex;
  box-shadow: 0 4px 6px -1px rgba(0, 0, 0, 0.1);
}
.announcement-bar .ticker-wrapper {
  width: 100%;
  overflow: hidden;
  white-space: nowrap;
}
.announcement-bar .ticker-content {
  display: inline-block;
  white-space: nowrap;
  animation: bulletin-ticker-scroll 30s linear infinite;
}
.announcement-bar .ticker-content span {
  display: inline-block;
  padding-right: 50px;
}
@keyframes bulletin-ticker-scroll {
  0% { transform: translate3d(0, 0, 0); }
  100% { transform: translate3d(-50%, 0, 0); }
}
.announcement-bar:hover .ticker-content {
  animation-play-state: paused;
}
"""


@dataclass(frozen=True)
class Ticker:
    text: str
    duration: float  # seconds per full loop


def scroll_duration(total_characters: int) -> float:
    """max(10, 10 + 0.15 * C) seconds."""
    return round(max(BASE_DURATION_SECONDS, BASE_DURATION_SECONDS + SECONDS_PER_CHARACTER * total_characters), 3)


def item_text(item) -> str:
    if not isinstance(item, dict):
        return ""
    value = item.get("content") or item.get("testimonialContent") or ""
    return str(value).strip()


def build_ticker(items) -> Ticker | None:
    """None when there is nothing to show."""
    texts = [t for t in (item_text(i) for i in items or []) if t]
    if not texts:
        return None
    return Ticker(
        text=SEPARATOR.join(texts),
        duration=scroll_duration(sum(len(t) for t in texts)),
    )


def render_bar(document: BeautifulSoup, ticker: Ticker, fallback: bool = False) -> Tag:
    """A fresh ticker node. Inside an anchor the bar hangs below it; in the fallback it flows normally."""
    attrs = {"class": TICKER_CLASS, TICKER_MARKER: ""}
    if fallback:
        attrs["style"] = "position: relative; top: auto"
    bar = document.new_tag("div", attrs=attrs)
    wrapper = document.new_tag("div", attrs={"class": "ticker-wrapper"})
    content = document.new_tag(
        "div",
        attrs={"class": "ticker-content", "style": f"animation-duration: {ticker.duration:g}s"},
    )
    for _ in range(2):
        span = document.new_tag("span")
        span.string = ticker.text
        content.append(span)
    wrapper.append(content)
    bar.append(wrapper)
    return bar


def render_style(document: BeautifulSoup) -> Tag:
    style = document.new_tag("style", attrs={"id": STYLE_ID})
    style.string = TICKER_CSS
    return style
