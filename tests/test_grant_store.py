from context.grant_store import FileGrantStore, MemoryGrantStore

from conftest import ASSIGNMENT_ID


def test_file_store_lifecycle(tmp_path):
    store = FileGrantStore(tmp_path / ".grant")
    assert store.read() is None

    store.write(ASSIGNMENT_ID)
    assert (tmp_path / ".grant").read_text(encoding="utf-8") == ASSIGNMENT_ID + "\n"
    assert store.read() == ASSIGNMENT_ID

    store.delete()
    assert store.read() is None
    assert not (tmp_path / ".grant").exists()


def test_file_store_delete_is_idempotent(tmp_path):
    store = FileGrantStore(tmp_path / ".grant")
    store.delete()
    store.delete()


def test_file_store_reads_first_line_only(tmp_path):
    path = tmp_path / ".grant"
    path.write_text(f"  {ASSIGNMENT_ID}  \nsecond line\n", encoding="utf-8")
    assert FileGrantStore(path).read() == ASSIGNMENT_ID


def test_file_store_empty_file_reads_none(tmp_path):
    path = tmp_path / ".grant"
    path.write_text("\n", encoding="utf-8")
    assert FileGrantStore(path).read() is None


def test_memory_store():
    store = MemoryGrantStore()
    assert store.read() is None
    store.write(f" {ASSIGNMENT_ID}\n")
    assert store.read() == ASSIGNMENT_ID
    store.delete()
    assert store.read() is None
