"""DOM extraction of option labels."""

from __future__ import annotations

from typing import Iterator

from selectolax.parser import HTMLParser

from .models import Option


class Extractor:
    """Turn raw markup into the ordered list of scraped options.

    Patterns follow the ``"<css selector>::<mode>"`` convention: mode ``text``
    (the default) reads the element text, ``attr:<name>`` reads an attribute.
    Values are trimmed and empty ones are skipped.
    """

    def extract(self, html: str, pattern: str) -> list[Option]:
        return [Option(id=index, name=label) for index, label in enumerate(self.iter_labels(html, pattern))]

    def iter_labels(self, html: str, pattern: str) -> Iterator[str]:
        css_selector, mode = self._split_selector(pattern)
        if not css_selector or not html:
            return
        parser = HTMLParser(html)
        for node in parser.css(css_selector):
            if mode.startswith("attr:"):
                value = node.attributes.get(mode.split(":", 1)[1])
            else:
                value = node.text(deep=True)
            if value is None:
                continue
            value = value.strip()
            if value:
                yield value

    @staticmethod
    def _split_selector(selector: str) -> tuple[str, str]:
        if "::" in selector:
            css, mode = selector.split("::", 1)
            return css.strip(), mode.strip().lower()
        return selector.strip(), "text"


__all__ = ["Extractor"]
