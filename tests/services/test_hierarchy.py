"""
Tests for the hierarchy service: owner scoping, cascade delete, atomicity
and concurrent star toggles.
"""
from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import event
from sqlalchemy.exc import OperationalError

from app.database import engine
from app.exceptions import (
    FolderNotFound,
    InvalidMove,
    InvalidName,
    NotFound,
    ParentNotFound,
    StorageFailure,
)
from app.models.user import User
from app.services.hierarchy import MAX_NAME_LENGTH, HierarchyStore


def _make_user(db, email):
    user = User(email=email, hashed_password="test_hash")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def alice(db):
    return HierarchyStore(db, caller=_make_user(db, "alice@example.com").id)


@pytest.fixture
def bob(db):
    return HierarchyStore(db, caller=_make_user(db, "bob@example.com").id)


def _add_file(store, name="a.txt", folder_id=None, blob_ref=None):
    return store.create_file(
        name=name,
        mime_type="text/plain",
        size_bytes=11,
        blob_ref=blob_ref or f"ref{name.replace('.', '')}{folder_id or 0}",
        folder_id=folder_id,
    )


# Folders


def test_create_folder_strips_name(alice):
    folder = alice.create_folder("  Docs  ")
    assert folder.name == "Docs"
    assert folder.parent_id is None
    assert folder.user_id == alice.caller


@pytest.mark.parametrize("name", ["", "   ", None])
def test_create_folder_rejects_empty_name(alice, name):
    with pytest.raises(InvalidName):
        alice.create_folder(name)


def test_names_longer_than_column_are_rejected(alice):
    assert alice.create_folder("d" * MAX_NAME_LENGTH).name == "d" * MAX_NAME_LENGTH

    with pytest.raises(InvalidName):
        alice.create_folder("d" * (MAX_NAME_LENGTH + 1))
    with pytest.raises(InvalidName):
        _add_file(alice, name="f" * (MAX_NAME_LENGTH + 1))


def test_create_folder_unknown_parent(alice):
    with pytest.raises(ParentNotFound):
        alice.create_folder("Child", parent_id=424242)


def test_rename_folder_to_same_name_keeps_fields(alice):
    parent = alice.create_folder("Docs")
    folder = alice.create_folder("2024", parent.id)
    created_at = folder.created_at

    renamed = alice.rename_folder(folder.id, "2024")
    assert renamed.name == "2024"
    assert renamed.parent_id == parent.id
    assert renamed.created_at == created_at


def test_move_folder_rejects_cycles(alice):
    a = alice.create_folder("A")
    b = alice.create_folder("B", a.id)
    c = alice.create_folder("C", b.id)

    with pytest.raises(InvalidMove):
        alice.move_folder(a.id, c.id)
    with pytest.raises(InvalidMove):
        alice.move_folder(a.id, a.id)

    moved = alice.move_folder(c.id, None)
    assert moved.parent_id is None


# Files


def test_create_then_read_file_round_trip(alice):
    folder = alice.create_folder("Docs")
    created = alice.create_file(
        name="report.pdf",
        mime_type="application/pdf",
        size_bytes=2048,
        blob_ref="blobreport01",
        folder_id=folder.id,
    )

    read = alice.get_file_for_read(created.id)
    assert (read.name, read.mime_type, read.size_bytes) == ("report.pdf", "application/pdf", 2048)
    assert read.blob_ref == "blobreport01"
    assert read.starred is False


def test_create_file_unknown_folder(alice):
    with pytest.raises(FolderNotFound):
        _add_file(alice, folder_id=424242)


def test_rename_file_to_same_name_keeps_fields(alice):
    stored = _add_file(alice)
    before = (stored.mime_type, stored.size_bytes, stored.blob_ref, stored.folder_id, stored.starred)

    renamed = alice.rename_file(stored.id, "a.txt")
    assert renamed.name == "a.txt"
    assert (renamed.mime_type, renamed.size_bytes, renamed.blob_ref, renamed.folder_id, renamed.starred) == before


def test_toggle_star_flips(alice):
    stored = _add_file(alice)

    assert alice.toggle_star(stored.id).starred is True
    assert alice.toggle_star(stored.id).starred is False


def test_delete_file_returns_record(alice):
    stored = _add_file(alice, blob_ref="blobdelete01")

    deleted = alice.delete_file(stored.id)
    assert deleted.blob_ref == "blobdelete01"
    with pytest.raises(NotFound):
        alice.get_file_for_read(stored.id)


# Tenant isolation


def test_other_user_gets_not_found_everywhere(alice, bob):
    folder = alice.create_folder("Private")
    stored = _add_file(alice, folder_id=folder.id)

    with pytest.raises(NotFound):
        bob.get_folder(folder.id)
    with pytest.raises(NotFound):
        bob.rename_folder(folder.id, "Mine")
    with pytest.raises(NotFound):
        bob.move_folder(folder.id, None)
    with pytest.raises(NotFound):
        bob.delete_folder(folder.id)
    with pytest.raises(NotFound):
        bob.create_folder("Inside", parent_id=folder.id)
    with pytest.raises(NotFound):
        _add_file(bob, name="b.txt", folder_id=folder.id)
    with pytest.raises(NotFound):
        bob.get_file_for_read(stored.id)
    with pytest.raises(NotFound):
        bob.rename_file(stored.id, "mine.txt")
    with pytest.raises(NotFound):
        bob.move_file(stored.id, None)
    with pytest.raises(NotFound):
        bob.toggle_star(stored.id)
    with pytest.raises(NotFound):
        bob.delete_file(stored.id)

    folders, files = alice.list_all()
    assert [f.name for f in folders] == ["Private"]
    assert [(f.name, f.starred) for f in files] == [("a.txt", False)]
    assert bob.list_all() == ([], [])


# Cascade delete


def test_delete_folder_cascades_to_subtree(alice):
    f = alice.create_folder("F")
    g = alice.create_folder("G", f.id)
    h = alice.create_folder("H", g.id)
    keep = alice.create_folder("Keep")
    _add_file(alice, "x.txt", f.id)
    _add_file(alice, "y.txt", h.id)
    kept_file = _add_file(alice, "z.txt", keep.id)
    root_file = _add_file(alice, "root.txt")

    deleted = alice.delete_folder(f.id)
    assert sorted(stored.name for stored in deleted) == ["x.txt", "y.txt"]

    folders, files = alice.list_all()
    assert [folder.id for folder in folders] == [keep.id]
    assert sorted(stored.id for stored in files) == sorted([kept_file.id, root_file.id])
    for folder_id in (f.id, g.id, h.id):
        with pytest.raises(NotFound):
            alice.get_folder(folder_id)


def test_delete_folder_missing_is_not_found(alice):
    with pytest.raises(NotFound):
        alice.delete_folder(424242)


def test_cascade_failure_leaves_subtree_intact(committing_sessions, monkeypatch):
    with committing_sessions() as setup:
        user = _make_user(setup, "atomic@example.com")
        store = HierarchyStore(setup, caller=user.id)
        f = store.create_folder("F")
        g = store.create_folder("G", f.id)
        x = _add_file(store, "x.txt", f.id)
        user_id, f_id, g_id, x_id = user.id, f.id, g.id, x.id

    def fail_midway(folder_ids):
        raise OperationalError("DELETE FROM folders", {}, Exception("disk I/O error"))

    with committing_sessions() as session:
        store = HierarchyStore(session, caller=user_id)
        # Files are already flushed as deleted when the folder step fails
        monkeypatch.setattr(store, "_delete_folders", fail_midway)
        with pytest.raises(StorageFailure):
            store.delete_folder(f_id)

    with committing_sessions() as check:
        folders, files = HierarchyStore(check, caller=user_id).list_all()
        assert sorted(folder.id for folder in folders) == sorted([f_id, g_id])
        assert [stored.id for stored in files] == [x_id]


def test_cascade_commits_for_fresh_session(committing_sessions):
    with committing_sessions() as setup:
        user = _make_user(setup, "cascade@example.com")
        store = HierarchyStore(setup, caller=user.id)
        f = store.create_folder("F")
        g = store.create_folder("G", f.id)
        _add_file(store, "x.txt", g.id)
        user_id, f_id = user.id, f.id

    with committing_sessions() as session:
        HierarchyStore(session, caller=user_id).delete_folder(f_id)

    with committing_sessions() as check:
        assert HierarchyStore(check, caller=user_id).list_all() == ([], [])


# Concurrency


@pytest.mark.parametrize("toggles", [7, 8])
def test_concurrent_toggles_lose_no_updates(committing_sessions, toggles):
    with committing_sessions() as setup:
        user = _make_user(setup, "star@example.com")
        stored = _add_file(HierarchyStore(setup, caller=user.id))
        user_id, file_id = user.id, stored.id

    def toggle(_):
        with committing_sessions() as session:
            HierarchyStore(session, caller=user_id).toggle_star(file_id)

    with ThreadPoolExecutor(max_workers=toggles) as pool:
        list(pool.map(toggle, range(toggles)))

    with committing_sessions() as check:
        starred = HierarchyStore(check, caller=user_id).get_file_for_read(file_id).starred
    assert starred is bool(toggles % 2)


def test_toggle_star_negates_in_a_single_statement(alice):
    """
    The flag is flipped by the database, not read and written back.

    A read followed by a write can lose updates on backends that don't
    serialize whole transactions, so no SELECT of the file may precede the
    UPDATE.
    """
    stored = _add_file(alice)
    statements = []

    def record(conn, cursor, statement, parameters, context, executemany):
        statements.append(" ".join(statement.split()))

    event.listen(engine, "before_cursor_execute", record)
    try:
        alice.toggle_star(stored.id)
    finally:
        event.remove(engine, "before_cursor_execute", record)

    file_statements = [s for s in statements if "files" in s]
    update = file_statements[0]
    assert update.startswith("UPDATE files SET starred=")
    # New value is computed from the column, not bound from a prior read
    assert "files.starred" in update.split(" WHERE ")[0]
    assert sum(s.startswith("UPDATE files") for s in file_statements) == 1
