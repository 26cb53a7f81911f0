import logging

import pytest


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo the ``logging.basicConfig(force=True)`` done by CLI invocations.

    The CLI attaches a stream handler bound to the CliRunner's stderr,
    which is closed once the invocation returns. Later log records would
    then be written to a closed stream.
    """
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    try:
        yield
    finally:
        for handler in list(root.handlers):
            if handler not in handlers:
                root.removeHandler(handler)
                handler.close()
        for handler in handlers:
            if handler not in root.handlers:
                root.addHandler(handler)
        root.setLevel(level)
