import pytest

from event_scrapers.navigation import build_default_resolver
from event_scrapers.pagination import EngineState, FailureReason, PaginationEngine
from event_scrapers.schema_adapter import ListingRecord
from tests.fakes import LISTING_SELECTOR, NEXT_BUTTON, FakeHandle, FakePage, FakeSession, page_url

CONTAINER = "._1xzb3su0"
CONTAINER_LINK = f'{CONTAINER} a[href*="page="]'


def extract_by_url(session):
    """One record per page, titled after the page it came from."""
    return [ListingRecord(title=f"Evento {session.url[-1]}", source_type="Sympla", url=f"{session.url}#card")]


def make_engine(session, **kwargs):
    kwargs.setdefault("resolver", build_default_resolver([NEXT_BUTTON], 'a[rel="next"]'))
    return PaginationEngine(
        session=session,
        extract_page=extract_by_url,
        listing_selector=LISTING_SELECTOR,
        pagination_container_selector=CONTAINER,
        **kwargs,
    )


def chained_pages(count, **overrides):
    pages = {}
    for n in range(1, count + 1):
        controls = {NEXT_BUTTON: FakeHandle(target=page_url(n + 1))} if n < count else {}
        pages[page_url(n)] = FakePage(controls=controls)
    pages.update(overrides)
    return pages


def titles(result):
    return [r.title for r in result.records]


def test_walks_all_pages_in_order():
    session = FakeSession(chained_pages(3), page_url(1))
    result = make_engine(session).run()

    assert result.state is EngineState.DONE
    assert result.failure_reason is None
    assert result.pages_visited == 3
    assert titles(result) == ["Evento 1", "Evento 2", "Evento 3"]
    assert session.visited == [page_url(1), page_url(2), page_url(3)]
    assert session.closed


def test_scrolls_and_settles_before_each_lookup():
    session = FakeSession(chained_pages(2), page_url(1))
    make_engine(session, settle_delay_ms=2000).run()
    assert session.scrolls == 2
    assert session.waits == [2000, 2000]


def test_no_progress_keeps_earlier_pages():
    pages = chained_pages(3)
    pages[page_url(2)] = FakePage(controls={NEXT_BUTTON: FakeHandle(target=None)})
    session = FakeSession(pages, page_url(1))

    result = make_engine(session).run()

    assert result.state is EngineState.FAILED
    assert result.failure_reason is FailureReason.NO_PROGRESS
    assert titles(result) == ["Evento 1", "Evento 2"]
    assert session.closed


def test_failed_click_falls_back_to_page_param():
    pages = chained_pages(2)
    button = FakeHandle(target=page_url(2), fails=True)
    pages[page_url(1)] = FakePage(controls={NEXT_BUTTON: button})
    session = FakeSession(pages, page_url(1))

    result = make_engine(session).run()

    assert button.clicks == 1
    assert session.gotos == [page_url(2)]
    assert result.state is EngineState.DONE
    assert titles(result) == ["Evento 1", "Evento 2"]


def test_failed_click_prefers_explicit_pagination_link():
    pages = chained_pages(4)
    pages[page_url(1)] = FakePage(
        controls={NEXT_BUTTON: FakeHandle(fails=True)},
        element_lists={CONTAINER_LINK: [FakeHandle(href="?page=4")]},
    )
    session = FakeSession(pages, page_url(1))

    result = make_engine(session).run()

    assert session.gotos == [page_url(4)]
    assert titles(result) == ["Evento 1", "Evento 4"]


def test_fallback_navigation_error():
    pages = {page_url(1): FakePage(controls={NEXT_BUTTON: FakeHandle(fails=True)})}
    session = FakeSession(pages, page_url(1))

    result = make_engine(session).run()

    assert result.failure_reason is FailureReason.NAVIGATION_ERROR
    assert titles(result) == ["Evento 1"]
    assert session.closed


def test_content_not_ready_after_navigation():
    session = FakeSession(chained_pages(3, **{page_url(2): FakePage(ready=False)}), page_url(1))

    result = make_engine(session).run()

    assert result.failure_reason is FailureReason.CONTENT_NOT_READY
    assert titles(result) == ["Evento 1"]
    assert result.pages_visited == 1


def test_listing_missing_on_first_page_times_out():
    session = FakeSession({page_url(1): FakePage(ready=False)}, page_url(1))

    result = make_engine(session).run()

    assert result.state is EngineState.FAILED
    assert result.failure_reason is FailureReason.TIMEOUT
    assert result.records == []
    assert session.closed


def test_max_pages_stops_early():
    session = FakeSession(chained_pages(5), page_url(1))
    result = make_engine(session, max_pages=2).run()
    assert result.state is EngineState.DONE
    assert titles(result) == ["Evento 1", "Evento 2"]


def test_next_link_url_target_is_opened():
    pages = {
        page_url(1): FakePage(controls={'a[rel="next"]': FakeHandle(href="?page=2")}),
        page_url(2): FakePage(),
    }
    session = FakeSession(pages, page_url(1))
    result = make_engine(session).run()
    assert session.gotos == [page_url(2)]
    assert titles(result) == ["Evento 1", "Evento 2"]


def test_start_url_is_opened_first():
    session = FakeSession(chained_pages(2), "about:blank")
    result = make_engine(session).run(start_url=page_url(1))
    assert session.gotos[0] == page_url(1)
    assert titles(result) == ["Evento 1", "Evento 2"]


@pytest.mark.parametrize("timeouts, reason", [
    ({page_url(1)}, FailureReason.TIMEOUT),
    (set(), FailureReason.NAVIGATION_ERROR),
])
def test_start_url_failures(timeouts, reason):
    pages = chained_pages(1) if timeouts else {}
    session = FakeSession(pages, "about:blank", goto_timeouts=timeouts)
    result = make_engine(session).run(start_url=page_url(1))
    assert result.failure_reason is reason
    assert result.records == []
    assert session.closed


def test_debug_screenshots_include_no_next_button(tmp_path):
    session = FakeSession(chained_pages(2), page_url(1))
    result = make_engine(session, screenshot_dir=tmp_path, capture_pagination_screenshots=True).run()

    assert result.state is EngineState.DONE
    assert session.screenshots == [
        ("pagination-page-1.png", CONTAINER, False),
        ("pagination-page-2.png", CONTAINER, False),
        ("no-next-button.png", None, True),
    ]


def test_no_debug_screenshots_by_default(tmp_path):
    session = FakeSession(chained_pages(2), page_url(1))
    make_engine(session, screenshot_dir=tmp_path).run()
    assert session.screenshots == []
