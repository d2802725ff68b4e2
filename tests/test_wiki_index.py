from __future__ import annotations

from framedata.ingest.wiki_index import extract_character_links

GAME = "Eternal_Fighter_Zero"


def test_links_after_characters_heading_are_preferred():
    html = f"""
    <h2><span class="mw-headline">Characters</span></h2>
    <div>
      <a href="/w/{GAME}/Akane_Satomi">Akane</a>
      <a href="/w/{GAME}/Ayu_Tsukimiya">Ayu</a>
      <a href="/w/{GAME}/Akane_Satomi">Akane again</a>
    </div>
    <h2>Other</h2>
    <div><a href="/w/{GAME}/Not_In_Roster">x</a></div>
    """
    assert extract_character_links(html, GAME) == ["Akane_Satomi", "Ayu_Tsukimiya"]


def test_whole_page_fallback_excludes_system_pages():
    html = f"""
    <a href="/w/{GAME}">Main</a>
    <a href="/w/{GAME}/Game_Mechanics">Mechanics</a>
    <a href="/w/{GAME}/System">System</a>
    <a href="/w/{GAME}/Mio_Kouzuki">Mio</a>
    <a href="/w/{GAME}/Mio_Kouzuki#Normals">Mio normals</a>
    <a href="/w/Other_Game/Someone">Other game</a>
    """
    assert extract_character_links(html, GAME) == ["Mio_Kouzuki"]


def test_empty_page():
    assert extract_character_links("", GAME) == []
