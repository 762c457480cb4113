import math
import pytest
from streamx.player.engine import PlaybackEngine, SourceStatus
from fakes import FakePrimitive, FakeFullscreenHost

@pytest.fixture
def primitive():
    return FakePrimitive()

@pytest.fixture
def engine(primitive):
    engine = PlaybackEngine(primitive)
    engine.load("https://cdn.example/ep1.mp4")
    primitive.fire_metadata(100.0)
    return engine

def test_load_resets_position_and_duration(engine, primitive):
    primitive.fire_time(42.0)
    engine.load("https://cdn.example/ep2.mp4")
    s = engine.state
    assert s.position == 0.0
    assert math.isnan(s.duration)
    assert s.status == SourceStatus.LOADING
    assert primitive.loaded[-1] == "https://cdn.example/ep2.mp4"

    primitive.fire_metadata(250.0)
    assert engine.state.duration == 250.0
    assert engine.state.status == SourceStatus.READY

def test_empty_source_is_no_source_state(primitive):
    engine = PlaybackEngine(primitive)
    engine.load("")
    assert engine.state.status == SourceStatus.NO_SOURCE
    assert engine.state.source is None
    assert primitive.stopped

    engine.play()
    assert primitive.play_calls == 0
    assert not engine.state.play_requested

@pytest.mark.parametrize("start,delta,expected", [
    (50.0, 10, 60.0),
    (50.0, -10, 40.0),
    (5.0, -10, 0.0),
    (95.0, 10, 100.0),
    (0.0, -1000, 0.0),
    (100.0, 1e9, 100.0),
])
def test_seek_relative_stays_within_duration(engine, primitive, start, delta, expected):
    primitive.fire_time(start)
    engine.seek_relative(delta)
    assert engine.state.position == expected
    assert primitive.seeks[-1] == expected

def test_seek_is_noop_until_duration_known(primitive):
    engine = PlaybackEngine(primitive)
    engine.load("https://cdn.example/ep1.mp4")
    engine.seek_relative(10)
    engine.seek_absolute(0.5)
    assert primitive.seeks == []
    assert engine.state.position == 0.0

def test_seek_absolute_maps_fraction(engine, primitive):
    engine.seek_absolute(0.25)
    assert engine.state.position == 25.0
    engine.seek_absolute(1.7)
    assert engine.state.position == 100.0
    engine.seek_absolute(float("nan"))
    assert primitive.seeks == [25.0, 100.0]

def test_playing_is_event_sourced(engine, primitive):
    engine.toggle_play()
    s = engine.state
    assert s.play_requested
    assert not s.playing

    primitive.fire_play()
    assert engine.state.playing

    engine.toggle_play()
    assert not engine.state.play_requested
    primitive.fire_pause()
    assert not engine.state.playing

def test_rejected_play_reverts_optimistic_state(primitive):
    primitive.accept_play = False
    engine = PlaybackEngine(primitive)
    engine.load("https://cdn.example/ep1.mp4")
    engine.play()
    assert primitive.play_calls == 1
    assert not engine.state.play_requested
    assert not engine.state.playing

def test_play_exception_is_contained(primitive):
    primitive.accept_play = RuntimeError("autoplay blocked")
    engine = PlaybackEngine(primitive)
    engine.load("https://cdn.example/ep1.mp4", autoplay=True)
    assert not engine.state.play_requested

def test_zero_volume_mutes_and_raising_unmutes(engine, primitive):
    engine.set_volume(0)
    assert engine.state.muted
    assert primitive.muted is True

    engine.set_volume(0.3)
    assert not engine.state.muted
    assert engine.state.volume == 0.3
    assert primitive.muted is False

def test_volume_change_keeps_user_mute(engine):
    engine.toggle_mute()
    engine.set_volume(0.8)
    assert engine.state.muted
    assert engine.state.volume == 0.8

def test_toggle_mute_twice_restores_volume(engine):
    engine.set_volume(0.37)
    engine.toggle_mute()
    assert engine.state.muted
    assert engine.state.volume == 0.37
    engine.toggle_mute()
    assert not engine.state.muted
    assert engine.state.volume == 0.37

def test_toggle_mute_twice_from_zero_volume(engine, primitive):
    engine.set_volume(0.6)
    engine.set_volume(0)
    engine.toggle_mute()
    assert not engine.state.muted
    assert engine.state.volume == 0
    engine.toggle_mute()
    assert engine.state.muted
    assert engine.state.volume == 0
    assert primitive.volume == 0
    assert primitive.muted is True

def test_rate_is_constrained(engine, primitive):
    engine.set_rate(1.5)
    assert engine.state.rate == 1.5
    assert primitive.rate == 1.5
    with pytest.raises(ValueError):
        engine.set_rate(3.0)
    assert engine.state.rate == 1.5

def test_quality_is_ui_only(engine, primitive):
    engine.set_quality("720p")
    assert engine.state.quality == "720p"
    assert primitive.loaded == ["https://cdn.example/ep1.mp4"]
    with pytest.raises(ValueError):
        engine.set_quality("8K")

def test_listeners_see_synchronous_updates(engine):
    seen = []
    engine.subscribe(lambda s: seen.append(s.volume))
    engine.set_volume(0.9)
    assert seen == [0.9]

def test_ended_moves_to_end_and_notifies(engine, primitive):
    ended = []
    engine.add_ended_listener(lambda: ended.append(True))
    primitive.fire_play()
    primitive.fire_ended()
    assert engine.state.position == 100.0
    assert not engine.state.playing
    assert ended == [True]

def test_native_error_is_persistent_until_next_load(engine, primitive):
    primitive.fire_error()
    assert engine.state.status == SourceStatus.ERROR
    engine.play()
    assert primitive.play_calls == 0
    engine.load("https://cdn.example/other.mp4")
    assert engine.state.status == SourceStatus.LOADING

def test_release_frees_primitive(engine, primitive):
    engine.release()
    assert primitive.released
    assert engine.state.status == SourceStatus.NO_SOURCE

@pytest.mark.asyncio
async def test_fullscreen_toggle_and_idempotent_exit(primitive):
    host = FakeFullscreenHost()
    engine = PlaybackEngine(primitive, host)
    await engine.toggle_fullscreen()
    assert engine.state.fullscreen
    await engine.exit_fullscreen()
    await engine.exit_fullscreen()
    assert not engine.state.fullscreen
    assert host.exits == 1

@pytest.mark.asyncio
async def test_fullscreen_rejection_leaves_state_unchanged(primitive):
    host = FakeFullscreenHost(reject=True)
    engine = PlaybackEngine(primitive, host)
    await engine.request_fullscreen()
    assert host.requests == 1
    assert not engine.state.fullscreen
