from __future__ import annotations

import threading

import pytest

from lyrics_box.generation.errors import AuthorizationFailed, QuotaExceeded
from lyrics_box.generation.types import TargetLanguage
from lyrics_box.session import (
    LyricsSession,
    MissingApiKey,
    NoAudioSelected,
    NothingToExport,
    ProcessingStatus,
    describe_status,
    guess_mime_type,
)
from tests.mocks.generator_mock import BlockingGenerator, FakeGenerator


@pytest.fixture
def audio_file(tmp_path):
    path = tmp_path / "song.mp3"
    path.write_bytes(b"ID3fake-audio")
    return path


def _session(generator, api_key="key-123", statuses=None):
    def make_generator(key):
        generator.key = key
        return generator

    return LyricsSession(make_generator, api_key=api_key, on_status=statuses.append if statuses is not None else None)


class TestGenerate:
    def test_complete_flow(self, audio_file):
        gen = FakeGenerator("[00:01.00]Hello\n[00:01.00]Bonjour\n")
        statuses: list[ProcessingStatus] = []
        session = _session(gen, statuses=statuses)
        session.select_file(audio_file)

        lyrics = session.generate(TargetLanguage.ENGLISH)

        assert lyrics is not None
        assert session.status is ProcessingStatus.COMPLETE
        assert session.lyrics is lyrics
        assert session.error_message is None
        assert lyrics.raw_lrc == "[00:01.00]Hello\n[00:01.00]Bonjour\n"
        assert lyrics.lines[0].translation == "Bonjour"
        assert gen.key == "key-123"
        assert gen.calls == [(b"ID3fake-audio", "audio/mpeg", TargetLanguage.ENGLISH)]
        assert statuses == [
            ProcessingStatus.IDLE,
            ProcessingStatus.UPLOADING,
            ProcessingStatus.GENERATING,
            ProcessingStatus.COMPLETE,
        ]

    def test_requires_audio(self):
        session = _session(FakeGenerator())
        with pytest.raises(NoAudioSelected):
            session.generate()
        assert session.status is ProcessingStatus.IDLE

    def test_requires_api_key(self, audio_file):
        gen = FakeGenerator()
        session = _session(gen, api_key=None)
        session.select_file(audio_file)
        with pytest.raises(MissingApiKey):
            session.generate()
        assert gen.calls == []
        assert session.status is ProcessingStatus.IDLE

        session.set_api_key("later")
        assert session.generate() is not None

    def test_backend_error_sets_error_state(self, audio_file):
        session = _session(FakeGenerator(QuotaExceeded("Quota exceeded: try later")))
        session.select_file(audio_file)

        assert session.generate() is None
        assert session.status is ProcessingStatus.ERROR
        assert session.error_message == "Quota exceeded: try later"
        assert session.lyrics is None

    def test_unreadable_file(self, tmp_path):
        session = _session(FakeGenerator())
        session.select_file(tmp_path / "missing.mp3")

        assert session.generate() is None
        assert session.status is ProcessingStatus.ERROR
        assert session.error_message == "Failed to read audio file."

    def test_retry_after_error_clears_message(self, audio_file):
        gen = FakeGenerator(AuthorizationFailed("Authorization failed: bad key"))
        session = _session(gen)
        session.select_file(audio_file)
        session.generate()
        assert session.status is ProcessingStatus.ERROR

        gen.result = "[00:00.00]ok\n"
        assert session.generate() is not None
        assert session.status is ProcessingStatus.COMPLETE
        assert session.error_message is None

    def test_unparseable_result_still_completes(self, audio_file):
        session = _session(FakeGenerator("Sorry, I could not hear any lyrics."))
        session.select_file(audio_file)
        lyrics = session.generate()
        assert lyrics is not None
        assert lyrics.lines == ()
        assert lyrics.raw_lrc == "Sorry, I could not hear any lyrics."


class TestCancellation:
    def _start(self, session):
        result: dict[str, object] = {}

        def _run():
            result["lyrics"] = session.generate()

        t = threading.Thread(target=_run)
        t.start()
        return t, result

    def test_stop_discards_late_result(self, audio_file):
        gen = BlockingGenerator("[00:00.00]late\n")
        session = _session(gen)
        session.select_file(audio_file)

        t, result = self._start(session)
        assert gen.started.wait(timeout=5)
        assert session.status is ProcessingStatus.GENERATING

        session.stop()
        assert session.status is ProcessingStatus.IDLE
        gen.release()
        t.join(timeout=5)

        assert result["lyrics"] is None
        assert session.status is ProcessingStatus.IDLE
        assert session.lyrics is None
        assert session.error_message is None

    def test_stop_discards_late_error(self, audio_file):
        gen = BlockingGenerator(QuotaExceeded("Quota exceeded"))
        session = _session(gen)
        session.select_file(audio_file)

        t, result = self._start(session)
        assert gen.started.wait(timeout=5)
        session.stop()
        gen.release()
        t.join(timeout=5)

        assert result["lyrics"] is None
        assert session.status is ProcessingStatus.IDLE
        assert session.error_message is None

    def test_new_file_discards_in_flight_result(self, audio_file, tmp_path):
        gen = BlockingGenerator("[00:00.00]for the old file\n")
        session = _session(gen)
        session.select_file(audio_file)

        t, _result = self._start(session)
        assert gen.started.wait(timeout=5)
        other = tmp_path / "other.wav"
        other.write_bytes(b"RIFF")
        session.select_file(other)
        gen.release()
        t.join(timeout=5)

        assert session.audio_path == other
        assert session.status is ProcessingStatus.IDLE
        assert session.lyrics is None

    def test_stop_when_idle_is_noop(self, audio_file):
        statuses: list[ProcessingStatus] = []
        session = _session(FakeGenerator(), statuses=statuses)
        session.select_file(audio_file)
        session.generate()
        session.stop()
        assert session.status is ProcessingStatus.COMPLETE
        assert session.lyrics is not None


class TestExport:
    def test_export_to_directory_uses_audio_name(self, audio_file, tmp_path):
        raw = "[00:01.00]a\r\n[00:02.00]b\r\n"
        session = _session(FakeGenerator(raw))
        session.select_file(audio_file)
        session.generate()

        out_dir = tmp_path / "exports"
        out_dir.mkdir()
        path = session.export(out_dir)
        assert path == out_dir / "song.lrc"
        assert path.read_bytes() == raw.encode("utf-8")

    def test_export_to_file(self, audio_file, tmp_path):
        session = _session(FakeGenerator())
        session.select_file(audio_file)
        session.generate()
        path = session.export(tmp_path / "custom.lrc")
        assert path.name == "custom.lrc"

    def test_export_without_lyrics(self, tmp_path):
        session = _session(FakeGenerator())
        with pytest.raises(NothingToExport):
            session.export(tmp_path)

    def test_new_song_forgets_everything(self, audio_file):
        session = _session(FakeGenerator())
        session.select_file(audio_file)
        session.generate()
        session.new_song()
        assert session.audio_path is None
        assert session.lyrics is None
        assert session.status is ProcessingStatus.IDLE


def test_guess_mime_type(tmp_path):
    assert guess_mime_type(tmp_path / "a.mp3") == "audio/mpeg"
    assert guess_mime_type(tmp_path / "a.unknownext") == "audio/mpeg"


def test_describe_status():
    assert describe_status(ProcessingStatus.UPLOADING, TargetLanguage.NONE) == "Reading Audio..."
    assert describe_status(ProcessingStatus.GENERATING, TargetLanguage.NONE) == "Transcribing Lyrics..."
    assert describe_status(ProcessingStatus.GENERATING, TargetLanguage.BURMESE) == "Creating Magic in Burmese..."
    assert describe_status(ProcessingStatus.COMPLETE, TargetLanguage.CHINESE) == "Lyrics Synced & Translated to Chinese"
