import pytest

from adscreen.services.analysis_store import AnalysisStore
from adscreen.services.file_storage import FileStorage
from adscreen.services.submission import validate_submission
from fakes import IMAGE_DATA_URL


@pytest.fixture
def store(tmp_path):
    # Empty seed path -> built-in default phrase list.
    return AnalysisStore(str(tmp_path / "store"), phrase_seed_path="")


@pytest.fixture
def file_storage(store, tmp_path):
    return FileStorage(store, upload_dir=str(tmp_path / "uploads"), secret="test-secret", ttl_sec=60)


@pytest.fixture
def image_payload():
    return validate_submission("Spring event", IMAGE_DATA_URL)
