import uuid

import pytest

from truedope.cloning import CloneInProgressError
from truedope.cloning.locks import TargetUserLocks


def test_second_acquire_for_same_target_is_refused():
    locks = TargetUserLocks()
    target = uuid.uuid4()
    with locks.hold(target):
        with pytest.raises(CloneInProgressError):
            locks.acquire(target)
        # Other targets are independent
        with locks.hold(uuid.uuid4()):
            pass
    assert not locks.is_held(target)


def test_any_held():
    locks = TargetUserLocks()
    assert locks.any_held() is False
    with locks.hold(uuid.uuid4()):
        assert locks.any_held() is True
    assert locks.any_held() is False
