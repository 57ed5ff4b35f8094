"""Tests for logging setup."""

import json
import logging

from linkscout.crawler.results import LinkResult, LinkState
from linkscout.utils.config import LoggingConfig
from linkscout.utils.logger import JSONFormatter, get_link_logger, setup_logging


def test_verbosity_sets_console_level():
    root = setup_logging(LoggingConfig(verbosity='error'))
    assert root.level == logging.ERROR
    assert logging.getLogger('aiohttp').level == logging.WARNING


def test_log_file_receives_debug(tmp_path):
    log_file = tmp_path / 'logs' / 'linkscout.log'
    setup_logging(LoggingConfig(verbosity='warning', file=str(log_file)))
    logging.getLogger('linkscout.test').debug("debug line")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert 'debug line' in log_file.read_text()


def test_json_formatter_includes_link():
    record = logging.LogRecord('linkscout.links', logging.ERROR, __file__, 1, "[404] x", None, None)
    record.link = {'url': 'http://a.test/x', 'status': 404}
    entry = json.loads(JSONFormatter().format(record))
    assert entry['level'] == 'ERROR'
    assert entry['link']['status'] == 404


def test_link_levels_follow_state(caplog):
    logger = get_link_logger('linkscout.links')
    with caplog.at_level(logging.DEBUG, logger='linkscout.links'):
        logger.log_link(LinkResult(url='http://a.test/x', state=LinkState.BROKEN, status=404))
        logger.log_link(LinkResult(url='http://a.test/', state=LinkState.OK, status=200))
        logger.log_link(LinkResult(url='tel:1', state=LinkState.SKIPPED))

    assert [(r.levelno, r.getMessage()) for r in caplog.records] == [
        (logging.ERROR, '[404] http://a.test/x'),
        (logging.WARNING, '[200] http://a.test/'),
        (logging.INFO, '[SKP] tel:1'),
    ]
