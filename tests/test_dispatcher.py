import asyncio
import logging

from simplecrawl.crawler.dispatcher import CallbackDispatcher, FetchCompleted
from simplecrawl.crawler.parser import create_document


def make_event(status=200, error=None, url="http://a.test/"):
    body = b"<title>hello</title>"
    return FetchCompleted(url=url, status=status, body=body,
                          document=create_document(body), error=error)


class Recorder:
    def __init__(self):
        self.calls = []

    def __call__(self, url, document):
        self.calls.append((url, document))


def test_200_calls_only_fulfilled():
    fulfilled, rejected = Recorder(), Recorder()
    dispatcher = CallbackDispatcher(fulfilled, rejected)
    asyncio.run(dispatcher.dispatch(make_event(200)))

    assert len(fulfilled.calls) == 1
    url, document = fulfilled.calls[0]
    assert url == "http://a.test/"
    assert document.title.string == "hello"
    assert rejected.calls == []


def test_non_200_calls_both_handlers():
    fulfilled, rejected = Recorder(), Recorder()
    dispatcher = CallbackDispatcher(fulfilled, rejected)
    asyncio.run(dispatcher.dispatch(make_event(404)))

    assert len(fulfilled.calls) == 1
    assert len(rejected.calls) == 1


def test_transport_failure_only_rejected():
    fulfilled, rejected = Recorder(), Recorder()
    dispatcher = CallbackDispatcher(fulfilled, rejected)
    asyncio.run(dispatcher.dispatch(make_event(0, error="Request timeout")))

    assert fulfilled.calls == []
    assert len(rejected.calls) == 1


def test_no_handlers_is_a_no_op():
    asyncio.run(CallbackDispatcher().dispatch(make_event(500)))


def test_coroutine_handlers_are_awaited():
    seen = []

    async def fulfilled(url, document):
        await asyncio.sleep(0)
        seen.append(url)

    asyncio.run(CallbackDispatcher(fulfilled).dispatch(make_event()))
    assert seen == ["http://a.test/"]


def test_handler_failures_are_logged_not_raised(caplog):
    def explode(url, document):
        raise RuntimeError("boom")

    rejected = Recorder()
    dispatcher = CallbackDispatcher(explode, rejected, logger=logging.getLogger("tests.dispatcher"))

    with caplog.at_level(logging.ERROR):
        asyncio.run(dispatcher.dispatch(make_event(503)))

    assert dispatcher.failures == 1
    assert len(rejected.calls) == 1
    assert "boom" in caplog.text
