import pytest


@pytest.fixture
def anyio_backend():
    # Agents schedule follow-ups with asyncio tasks
    return "asyncio"
