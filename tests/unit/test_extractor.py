import pytest

from event_scrapers.config import SymplaSettings
from event_scrapers.schema_adapter import UNNAMED_TITLE, UNSPECIFIED_LOCATION
from event_scrapers.scrapers.sympla.extractor import SymplaCardExtractor
from tests.fakes import FakeCardHandle, FakePage, FakeSession, card_html, page_url


@pytest.fixture
def extractor():
    return SymplaCardExtractor(SymplaSettings(), year=2024)


def test_parse_full_card(extractor):
    html = card_html("Festival de Verão", "16 de Dez às 22:00", "Parque de Exposições",
                     href="/evento/festival-de-verao/2400")
    record = extractor.parse_card_html(html, page_url(1))
    assert record.title == "Festival de Verão"
    assert record.date == "16/12/2024"
    assert record.time == "22:00"
    assert record.location == "Parque de Exposições"
    assert record.source_type == "Sympla"
    assert record.url == "https://www.sympla.com.br/evento/festival-de-verao/2400"
    assert record.image_url == "https://images.sympla.com.br/banner.jpg"


def test_enclosing_link_wins_over_nested_link(extractor):
    html = card_html("Show", "5 de Mar", href="/evento/nested/1")
    record = extractor.parse_card_html(html, page_url(1), enclosing_href="https://www.sympla.com.br/evento/outer/2")
    assert record.url == "https://www.sympla.com.br/evento/outer/2"


def test_card_without_fields_keeps_sentinels(extractor):
    record = extractor.parse_card_html("<div>nada aqui</div>", page_url(1))
    assert record.title == UNNAMED_TITLE
    assert record.location == UNSPECIFIED_LOCATION
    assert record.url == ""
    assert record.image_url == ""


def test_image_must_be_jpg_or_png(extractor):
    html = card_html("Show", "5 de Mar", image="https://images.sympla.com.br/logo.svg")
    assert extractor.parse_card_html(html, page_url(1)).image_url == ""


def test_extract_page_drops_detached_cards(extractor):
    cards = [
        FakeCardHandle(card_html("Primeiro", "1 de Jan"), enclosing_href="/evento/primeiro/1"),
        FakeCardHandle("", detached=True),
        FakeCardHandle(card_html("Terceiro", "3 de Jan")),
    ]
    session = FakeSession({page_url(1): FakePage(cards=cards)}, page_url(1))
    records = extractor.extract_page(session)
    assert [r.title for r in records] == ["Primeiro", "Terceiro"]
    assert records[0].url == "https://www.sympla.com.br/evento/primeiro/1"
    assert records[1].url == ""


def test_extract_page_without_cards(extractor):
    session = FakeSession({page_url(1): FakePage()}, page_url(1))
    assert extractor.extract_page(session) == []
