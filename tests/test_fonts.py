import shutil

import pytest

from blocktext.fonts import FontHandle, FontStore, file_name_without_type, font_key


def test_font_key_ignores_case_and_whitespace():
    assert font_key('Block  Sans') == 'block_sans'
    assert font_key(' BLOCK sans ') == 'block_sans'
    assert font_key('block_sans') == 'block_sans'


def test_file_name_without_type():
    assert file_name_without_type('/x/y/Arial.ttf') == 'Arial'
    assert file_name_without_type('Some.Font.otf') == 'Some.Font'
    assert file_name_without_type('noext') == 'noext'


@pytest.fixture
def handle(tmp_path, make_font):
    path = make_font(tmp_path / 'Block Sans.ttf')
    return FontHandle.from_file(path)


def test_from_file_reads_names(handle):
    assert handle.key == 'Block Sans'
    assert handle.display_name == 'Block Test Regular'
    assert handle.family_name == 'Block Test'
    assert handle.size == 16
    assert handle.ascent > 0
    assert handle.advance('A') > 0


def test_from_file_rejects_garbage(tmp_path):
    path = tmp_path / 'Broken.ttf'
    path.write_bytes(b'this is not a font')
    with pytest.raises(Exception):
        FontHandle.from_file(path)


def test_at_size_is_memoized(handle):
    big = handle.at_size(32)
    assert big.size == 32
    assert big is handle.at_size(32)
    assert big is handle.at_size(32.2)
    assert handle.at_size(16) is handle
    assert handle.at_size(None) is handle
    assert big.ascent > handle.ascent


def test_at_size_does_not_read_the_file(handle):
    handle.source.unlink()
    assert handle.at_size(20).size == 20


def test_identity_and_equality(tmp_path, make_font, handle):
    copy_path = tmp_path / 'Other Name.ttf'
    shutil.copyfile(handle.source, copy_path)
    copy = FontHandle.from_file(copy_path)
    assert copy.key != handle.key
    assert copy == handle
    assert hash(copy) == hash(handle)
    assert copy.identity == handle.identity
    assert handle.at_size(30) != handle

    other = FontHandle.from_file(make_font(tmp_path / 'Other.ttf', family='Other Test'))
    assert other != handle
    assert other.identity != handle.identity


def test_store_lookup_by_key(handle):
    store = FontStore()
    assert store.insert('Block Sans', handle) is handle
    assert store.get('block   SANS') is handle
    assert 'BLOCK_SANS' in store
    assert store.keys() == ['block_sans']
    assert store.contains_value(handle)
    assert store.get('nope') is None


def test_store_keeps_one_entry_per_face(tmp_path, handle):
    store = FontStore()
    store.insert('Block Sans', handle)
    copy_path = tmp_path / 'Copy.ttf'
    shutil.copyfile(handle.source, copy_path)
    copy = FontHandle.from_file(copy_path)
    assert store.insert('Copy', copy) is handle
    assert len(store) == 1
    assert store.get('Copy') is None


def test_store_find_by_display_name(handle):
    store = FontStore()
    store.insert('Block Sans', handle)
    assert store.find_by_display_name('block test regular') is handle
    assert store.find_by_display_name('Block Test') is handle
    assert store.find_by_display_name('Block') is None
