"""HTML pretty-printing with BeautifulSoup."""

from __future__ import annotations

from bs4 import BeautifulSoup
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter


class SoupFormatter:
    """MarkupFormatter using ``html.parser`` and ``prettify``.

    Indents with tabs by default and leaves ``<script>``/``<style>`` bodies
    untouched.
    """

    def __init__(self, indent: str = "\t") -> None:
        self._formatter = HTMLFormatter(
            entity_substitution=EntitySubstitution.substitute_xml,
            indent=indent,
        )

    async def format(self, markup: str) -> str:
        soup = BeautifulSoup(markup, "html.parser")
        return soup.prettify(formatter=self._formatter)
