import pytest


class FakeMedia:
    def __init__(self, current_time=0.0, paused=True, duration=None):
        self.current_time = current_time
        self.paused = paused
        self.duration = duration
        self.refuse_play = False
        self.play_calls = 0
        self.pause_calls = 0

    def play(self):
        self.play_calls += 1
        if self.refuse_play:
            raise RuntimeError("NotAllowedError")
        self.paused = False

    def pause(self):
        self.pause_calls += 1
        self.paused = True


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def media():
    return FakeMedia()


@pytest.fixture
def clock():
    return FakeClock()
