import pytest

from watchparty.sync.host import HostPlaybackReporter


@pytest.fixture
def emitted():
    return []


@pytest.fixture
def reporter(media, emitted):
    return HostPlaybackReporter(media, emitted.append)


def _dump(emitted):
    return [(s.is_playing, s.current_time) for s in emitted]


def test_play_and_pause_are_reported(reporter, media, emitted):
    media.current_time = 12.0

    reporter.on_play()
    reporter.on_pause()

    assert _dump(emitted) == [(True, 12.0), (False, 12.0)]


def test_time_updates_are_held_back_while_seeking(reporter, media, emitted):
    media.paused = False
    media.current_time = 5.0
    reporter.on_time_update()

    reporter.on_seeking()
    media.current_time = 70.0
    reporter.on_time_update()
    reporter.on_seeked()

    assert _dump(emitted) == [(True, 5.0), (True, 70.0)]


def test_toggle(reporter, media, emitted):
    reporter.toggle()
    reporter.toggle()

    assert media.play_calls == 1
    assert media.pause_calls == 1
    assert _dump(emitted) == [(True, 0.0), (False, 0.0)]


def test_skip_never_goes_negative(reporter, media, emitted):
    media.current_time = 4.0

    reporter.skip(-10.0)
    reporter.skip(10.0)

    assert _dump(emitted) == [(False, 0.0), (False, 10.0)]
