import os

import pytest

from domain.errors import AssemblyFailure
from domain.models import DocumentArtifact
from storage.file_storage import FileStorage, safe_file_name


def test_save_document_writes_under_exports(tmp_path):
    storage = FileStorage(str(tmp_path))
    path = storage.save_document(DocumentArtifact(name="student-id-cards.pdf", content=b"%PDF-1.4 x"))
    assert path == (tmp_path / "exports" / "student-id-cards.pdf").resolve()
    assert path.read_bytes() == b"%PDF-1.4 x"
    # No temporary files left behind.
    assert os.listdir(tmp_path / "exports") == ["student-id-cards.pdf"]


def test_save_document_overwrites_existing(tmp_path):
    storage = FileStorage(str(tmp_path))
    storage.save_document(DocumentArtifact(name="a.pdf", content=b"old"))
    path = storage.save_document(DocumentArtifact(name="a.pdf", content=b"new"))
    assert path.read_bytes() == b"new"


def test_failed_write_leaves_no_file(tmp_path, monkeypatch):
    storage = FileStorage(str(tmp_path))

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr("storage.file_storage.os.replace", broken_replace)
    with pytest.raises(AssemblyFailure):
        storage.save_document(DocumentArtifact(name="a.pdf", content=b"%PDF"))
    assert os.listdir(tmp_path / "exports") == []


def test_safe_file_name():
    assert safe_file_name("../../etc/passwd") == "passwd.pdf"
    assert safe_file_name("student-id-65001.pdf") == "student-id-65001.pdf"
    assert safe_file_name("my cards") == "my_cards.pdf"
    assert safe_file_name("") == "cards.pdf"
