from __future__ import annotations

from option_sync.engine import Extractor, Option


def test_extract_text_in_document_order(page_html) -> None:
    html = page_html(["  Drama ", "Comedy", "Horror"])
    options = Extractor().extract(html, ".grid .product-brand")
    assert options == [Option(0, "Drama"), Option(1, "Comedy"), Option(2, "Horror")]


def test_extract_skips_empty_entries_and_renumbers() -> None:
    html = """
    <div class="grid">
      <span class="product-brand">   </span>
      <span class="product-brand">Alpha</span>
      <span class="product-brand"></span>
      <span class="product-brand"><b>Beta</b></span>
    </div>
    """
    options = Extractor().extract(html, ".grid .product-brand")
    assert options == [Option(0, "Alpha"), Option(1, "Beta")]


def test_extract_attribute_mode() -> None:
    html = """
    <select id="theatre">
      <option value="">Pick one</option>
      <option value=" north ">North Hall</option>
      <option>No value</option>
      <option value="south">South Hall</option>
    </select>
    """
    options = Extractor().extract(html, "#theatre option::attr:value")
    assert [option.name for option in options] == ["north", "south"]
    assert [option.id for option in options] == [0, 1]


def test_extract_explicit_text_mode() -> None:
    html = "<ul><li class='x'>One</li><li class='x'>Two</li></ul>"
    assert [o.name for o in Extractor().extract(html, "li.x::text")] == ["One", "Two"]


def test_extract_no_matches_or_garbage_yields_empty() -> None:
    extractor = Extractor()
    assert extractor.extract("<html><body><p>nothing</p></body></html>", ".grid .product-brand") == []
    assert extractor.extract("<<<not really html", ".grid .product-brand") == []
    assert extractor.extract("", ".grid .product-brand") == []


def test_iter_labels_is_one_shot(page_html) -> None:
    labels = Extractor().iter_labels(page_html(["A", "B"]), ".product-brand")
    assert list(labels) == ["A", "B"]
    assert list(labels) == []
