import os

import pytest


P4_ENVIRONMENT = ("P4CONFIG", "P4CLIENT", "P4PORT", "P4USER")


@pytest.fixture(scope="session", autouse=True)
def isolate_perforce_environment():
    """Temporarily remove Perforce settings from the environment.

    Workspace detection reads ``P4CONFIG``; a developer's own settings
    must not change which directories the tests treat as workspaces. The
    original values are restored afterwards.
    """
    saved = {name: os.environ.pop(name) for name in P4_ENVIRONMENT if name in os.environ}
    try:
        yield
    finally:
        os.environ.update(saved)
