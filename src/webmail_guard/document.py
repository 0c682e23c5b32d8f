"""An HTML snapshot of a webmail page that can be reloaded as it changes."""

from __future__ import annotations

from collections import Counter
from pathlib import Path
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag


def _signature(tag: Tag) -> tuple:
    """Identify an element by its name, attributes and own text."""
    attrs = tuple(sorted((k, " ".join(v) if isinstance(v, list) else v) for k, v in tag.attrs.items()))
    text = "".join(s.strip() for s in tag.find_all(string=True, recursive=False))
    return tag.name, attrs, text


class LiveDocument:
    """Holds the current parse of a page snapshot on disk.

    ``refresh()`` reparses the file when it has changed and reports how many
    elements appeared, which drives the change monitor the way structural
    mutation records would in a browser.
    """

    def __init__(self, path: Path | str | None = None, hostname: str = "") -> None:
        self.path = Path(path) if path is not None else None
        self.hostname = hostname
        self._mtime: float | None = None
        self._soup = BeautifulSoup("", "html.parser")
        self._signatures: Counter[tuple] = Counter()

    @classmethod
    def from_html(cls, html: str, hostname: str = "") -> LiveDocument:
        doc = cls(hostname=hostname)
        doc.load_html(html)
        return doc

    def __call__(self) -> BeautifulSoup:
        return self._soup

    @property
    def soup(self) -> BeautifulSoup:
        return self._soup

    def load_html(self, html: str) -> int:
        """Replace the document content. Returns the number of elements added."""
        soup = BeautifulSoup(html, "html.parser")
        signatures = Counter(_signature(tag) for tag in soup.find_all(True))
        added = sum((signatures - self._signatures).values())
        self._soup = soup
        self._signatures = signatures
        return added

    def refresh(self) -> int:
        """Reload from disk if the file changed since the last load."""
        if self.path is None:
            return 0
        mtime = self.path.stat().st_mtime
        if self._mtime is not None and mtime == self._mtime:
            return 0
        self._mtime = mtime
        return self.load_html(self.path.read_text(encoding="utf-8", errors="replace"))

    def detect_hostname(self) -> str:
        """Best-effort hostname from <base>, canonical link or og:url markup."""
        candidates = [
            (self._soup.select_one("base[href]"), "href"),
            (self._soup.select_one('link[rel="canonical"][href]'), "href"),
            (self._soup.select_one('meta[property="og:url"][content]'), "content"),
        ]
        for element, attr in candidates:
            if element is None:
                continue
            host = urlparse(str(element.get(attr, ""))).hostname
            if host:
                return host
        return ""
