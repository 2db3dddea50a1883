import pytest

from comic.archive import ArchiveStore
from comic.errors import ArchiveParseError
from comic.models import TranslatedBubble
from comic.session import (
    MSG_EMPTY_ARCHIVE,
    MSG_IMAGE_READ_FAILED,
    MSG_INVALID_ARCHIVE,
    MSG_PAGE_LOAD_FAILED,
    ComicSession,
    SessionPhase,
    is_archive_file,
)
from translator.errors import GENERIC_FAILURE_MESSAGE, MalformedResponseError, TranslationFailedError


def _bubble(confidence=90, bubble_id="b0"):
    return TranslatedBubble(
        id=bubble_id, original_text="Hi", translated_text="Selam", box=(10, 10, 200, 300), confidence=confidence
    )


class FakeTranslator:
    def __init__(self, result=None, error=None, during=None):
        self.result = result if result is not None else [_bubble()]
        self.error = error
        self.during = during
        self.calls = []

    def translate(self, image, target_language):
        self.calls.append((image, target_language))
        if self.during is not None:
            self.during()
        if self.error is not None:
            raise self.error
        return list(self.result)


@pytest.fixture
def translator():
    return FakeTranslator()


@pytest.fixture
def session(qapp, translator):
    s = ComicSession(translator)
    yield s
    s.close()


@pytest.fixture
def image_file(tmp_path, make_png):
    path = tmp_path / "page.png"
    path.write_bytes(make_png())
    return path


@pytest.mark.parametrize(
    "name, archive",
    [("a.cbz", True), ("A.CBR", True), ("b.Zip", True), ("c.png", False), ("cbz.jpg", False)],
)
def test_is_archive_file(name, archive):
    assert is_archive_file(name) is archive


def test_initial_state(session):
    assert session.phase is SessionPhase.EMPTY
    assert session.target_language == "tr"
    assert session.page_label == ""
    assert session.average_confidence == 0
    assert not session.can_translate


def test_open_archive_shows_first_page_in_natural_order(session, comic_archive):
    session.select_file(comic_archive)
    assert [p.file_name for p in session.pages] == ["p1.png", "p2.png", "p10.png"]
    assert session.archive_name == "chapter.cbz"
    assert session.source_name == "p1.png"
    assert session.current_page_index == 0
    assert session.displayed_image is not None
    assert session.phase is SessionPhase.VIEWING
    assert session.page_label == "1 / 3"
    assert not session.can_go_previous
    assert session.can_go_next


def test_open_single_image(session, image_file):
    session.select_file(image_file)
    assert session.displayed_image.mime_type == "image/png"
    assert session.source_name == "page.png"
    assert session.pages == []
    assert not session.is_archive
    assert session.phase is SessionPhase.VIEWING


def test_unreadable_image_sets_error(session, tmp_path):
    session.select_file(tmp_path / "missing.png")
    assert session.error == MSG_IMAGE_READ_FAILED
    assert session.displayed_image is None
    assert session.phase is SessionPhase.ERROR


def test_undecodable_image_sets_error(session, translator, tmp_path):
    path = tmp_path / "page.png"
    path.write_bytes(b"this is not an image at all")
    session.select_file(path)
    assert session.error == MSG_IMAGE_READ_FAILED
    assert session.displayed_image is None
    assert not session.can_translate
    assert not session.translate_current_page()
    assert translator.calls == []
    session.dismiss_error()
    assert session.phase is SessionPhase.EMPTY


def test_invalid_archive_sets_error(session, tmp_path):
    path = tmp_path / "broken.cbr"
    path.write_bytes(b"Rar!\x1a\x07\x00 not a zip")
    session.select_file(path)
    assert session.error == MSG_INVALID_ARCHIVE
    assert session.pages == []
    assert session.displayed_image is None
    assert not session.is_loading_page


def test_empty_archive_sets_error(session, tmp_path, make_zip):
    path = tmp_path / "empty.zip"
    path.write_bytes(make_zip({"info.txt": b"nothing"}))
    session.select_file(path)
    assert session.error == MSG_EMPTY_ARCHIVE
    session.dismiss_error()
    assert session.phase is SessionPhase.EMPTY


def test_navigation(session, comic_archive):
    session.select_file(comic_archive)
    assert session.next_page()
    assert session.source_name == "p2.png"
    assert session.last_page()
    assert session.source_name == "p10.png"
    assert not session.can_go_next
    assert not session.next_page()
    assert session.current_page_index == 2
    assert session.previous_page()
    assert session.first_page()
    assert session.current_page_index == 0


@pytest.mark.parametrize("index", [-1, 3, 99])
def test_out_of_range_page_is_ignored(session, comic_archive, index):
    session.select_file(comic_archive)
    image = session.displayed_image
    assert not session.go_to_page(index)
    assert session.current_page_index == 0
    assert session.displayed_image is image


def test_navigation_ignored_while_page_loading(session, comic_archive):
    session.select_file(comic_archive)
    session.is_loading_page = True
    assert not session.go_to_page(1)
    assert session.current_page_index == 0


def test_page_change_clears_bubbles_and_error(session, comic_archive):
    session.select_file(comic_archive)
    session.translate_current_page()
    assert session.bubbles
    session.error = "old error"
    session.next_page()
    assert session.bubbles == []
    assert session.error is None


def test_page_load_failure(qapp, comic_archive, translator):
    class BrokenStore(ArchiveStore):
        def extract_entry(self, file_name):
            if file_name == "p2.png":
                raise ArchiveParseError(f"corrupt entry {file_name}")
            return super().extract_entry(file_name)

    session = ComicSession(translator, archive_store=BrokenStore())
    session.select_file(comic_archive)
    first_image = session.displayed_image
    session.next_page()
    assert session.error == MSG_PAGE_LOAD_FAILED
    assert session.current_page_index == 1
    assert session.displayed_image is first_image
    assert not session.is_loading_page
    session.close()


def test_undecodable_page_keeps_previous_page(session, tmp_path, make_png, make_zip):
    path = tmp_path / "chapter.cbz"
    path.write_bytes(make_zip({"p1.png": make_png(), "p2.png": b"corrupted page data"}))
    session.select_file(path)
    first_image = session.displayed_image
    assert session.next_page()
    assert session.error == MSG_PAGE_LOAD_FAILED
    assert session.displayed_image is first_image
    assert not session.is_loading_page


def test_translate_low_confidence_bubble(session, translator, image_file):
    translator.result = [_bubble(confidence=40)]
    session.select_file(image_file)
    assert session.translate_current_page()
    assert len(session.bubbles) == 1
    assert session.bubbles[0].is_low_confidence
    assert session.average_confidence == 40
    assert translator.calls[0][1] == "Turkish"


def test_translate_without_image_is_noop(session, translator):
    states = []
    session.stateChanged.connect(lambda: states.append(True))
    assert not session.translate_current_page()
    assert translator.calls == []
    assert states == []
    assert session.error is None


def test_translate_ignored_while_busy(session, translator, image_file):
    session.select_file(image_file)
    session.is_processing = True
    assert not session.translate_current_page()
    session.is_processing = False
    session.is_loading_page = True
    assert not session.translate_current_page()
    assert translator.calls == []


def test_malformed_response_keeps_previous_batch(session, translator, image_file):
    session.select_file(image_file)
    session.translate_current_page()
    previous = session.bubbles
    translator.error = MalformedResponseError("Response has no 'bubbles' array")
    session.translate_current_page()
    assert session.error == GENERIC_FAILURE_MESSAGE
    assert session.bubbles is previous
    assert not session.is_processing


def test_new_translation_clears_previous_error(session, translator, image_file):
    session.select_file(image_file)
    translator.error = TranslationFailedError(detail="timeout")
    session.translate_current_page()
    assert session.phase is SessionPhase.ERROR
    translator.error = None
    session.translate_current_page()
    assert session.error is None
    assert session.phase is SessionPhase.VIEWING


def test_busy_signals_and_phase_during_translation(session, translator, image_file):
    session.select_file(image_file)
    phases = []
    busy = []
    translator.during = lambda: phases.append(session.phase)
    session.busyChanged.connect(lambda flag, message: busy.append(flag))
    session.translate_current_page()
    assert phases == [SessionPhase.TRANSLATING]
    assert busy == [True, False]


def test_stale_translation_after_page_change_is_discarded(session, translator, comic_archive):
    session.select_file(comic_archive)
    translator.during = session.next_page
    session.translate_current_page()
    assert session.current_page_index == 1
    assert session.bubbles == []
    assert not session.is_processing


def test_stale_failure_after_reset_is_discarded(session, translator, image_file):
    session.select_file(image_file)
    translator.during = session.reset
    translator.error = TranslationFailedError(detail="late")
    session.translate_current_page()
    assert session.error is None
    assert session.phase is SessionPhase.EMPTY


def test_reset_keeps_language_and_visibility(session, comic_archive):
    session.select_file(comic_archive)
    session.translate_current_page()
    session.set_target_language("Korean")
    session.set_show_bubbles(False)
    session.reset()
    assert session.displayed_image is None
    assert session.bubbles == []
    assert session.pages == []
    assert session.archive_name is None
    assert session.current_page_index == 0
    assert session.target_language == "ko"
    assert session.show_bubbles is False
    assert session.phase is SessionPhase.EMPTY


def test_opening_image_releases_archive(qapp, translator, comic_archive, image_file):
    store = ArchiveStore()
    session = ComicSession(translator, archive_store=store)
    session.select_file(comic_archive)
    assert store.is_loaded
    session.select_file(image_file)
    assert not store.is_loaded
    assert session.pages == []


def test_set_target_language(session):
    session.set_target_language("ja")
    assert session.target_language_label == "Japanese"
    session.set_target_language("chinese (simplified)")
    assert session.target_language == "zh"
    with pytest.raises(ValueError):
        session.set_target_language("Klingon")
    assert session.target_language == "zh"
