import pytest

from pose_factory import make_samples, swing_samples


@pytest.fixture
def still_samples():
    """20 frames of an unmoving right-handed hitter"""
    return make_samples(20)


@pytest.fixture
def swing():
    """Scripted 30-frame swing as PoseSamples"""
    return swing_samples()


@pytest.fixture
def swing_frames(swing):
    from swingsense.core.frame_processor import FrameProcessor

    return FrameProcessor(pixels_per_meter=100.0).process(swing)


@pytest.fixture(autouse=True)
def clear_run_id():
    from swingsense.logging_config import set_run_id

    set_run_id("")
    yield
    set_run_id("")
