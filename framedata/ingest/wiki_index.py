from __future__ import annotations

import re
from typing import List

from bs4 import BeautifulSoup

from framedata.ingest.tables import tag_text

_NOT_A_CHARACTER = re.compile(r"game_mechanics|system", re.IGNORECASE)


def extract_character_links(html: str, game_path: str) -> List[str]:
    """
    Character page slugs linked from the game's main wiki page, in page order.
    Links right after a "Characters" heading are preferred; otherwise every
    /w/<game>/<slug> link on the page is taken, minus system/mechanics pages.
    """
    soup = BeautifulSoup(html or "", "html.parser")
    prefix = f"/w/{game_path}/"

    def slug_of(href: str) -> str:
        if not href or not href.startswith(prefix) or "#" in href:
            return ""
        return href.rstrip("/").split("/")[-1]

    slugs: List[str] = []

    headers = [h for h in soup.find_all(["h2", "h3"]) if re.search(r"characters", tag_text(h), re.IGNORECASE)]
    if headers:
        nxt = headers[0].find_next_sibling()
        if nxt is not None:
            for a in nxt.find_all("a", href=True):
                slug = slug_of(a["href"])
                if slug and slug not in slugs:
                    slugs.append(slug)

    if not slugs:
        for a in soup.find_all("a", href=True):
            slug = slug_of(a["href"])
            if slug and slug not in slugs and not _NOT_A_CHARACTER.search(slug) and slug.lower() != game_path.lower():
                slugs.append(slug)

    return slugs
