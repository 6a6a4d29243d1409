import pytest
from loguru import logger
from eventchannel import EventChannel

@pytest.fixture
def caplog(caplog):
    """Forward loguru records into pytest's caplog."""
    handler_id = logger.add(
        caplog.handler,
        format="{message}",
        level=0,
        filter=lambda record: record["level"].no >= caplog.handler.level,
        enqueue=False,
    )
    yield caplog
    logger.remove(handler_id)

@pytest.fixture
def channel():
    """Fresh channel per test; ids start at 1."""
    return EventChannel()
