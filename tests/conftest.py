import sys
import os
from tempfile import TemporaryDirectory
import pytest
# Ensure the project root is on sys.path for all tests
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

PROTO_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'proto')


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test outputs."""
    with TemporaryDirectory() as dir_path:
        yield dir_path


@pytest.fixture
def proto_dir():
    """Directory holding the .proto fixtures."""
    return PROTO_DIR


@pytest.fixture
def read_proto():
    """Return a helper reading a fixture by its path relative to tests/proto."""
    def _read(relative_path):
        with open(os.path.join(PROTO_DIR, relative_path), 'r', encoding='utf-8') as f:
            return f.read()
    return _read
