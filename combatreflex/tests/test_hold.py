from combatreflex.training.hold import HoldToConfirm


def test_progress_climbs_and_confirms_once():
    h = HoldToConfirm(hold_ms=1000)
    h.press(0)
    assert h.holding
    assert h.progress(250) == 25.0
    assert not h.poll(999)
    assert h.poll(1000)
    assert not h.poll(1500)
    assert not h.holding


def test_early_release_drops_to_zero():
    h = HoldToConfirm(hold_ms=1000)
    h.press(0)
    h.release(600)
    assert h.progress(700) == 0.0
    assert not h.poll(2000)


def test_second_press_ignored_while_holding():
    h = HoldToConfirm(hold_ms=100)
    h.press(0)
    h.press(90)
    assert h.poll(100)


def test_can_confirm_again_after_new_press():
    h = HoldToConfirm(hold_ms=100)
    h.press(0)
    assert h.poll(100)
    h.press(200)
    assert h.progress(250) == 50.0
    assert h.poll(300)


def test_progress_capped():
    h = HoldToConfirm(hold_ms=0)
    h.press(0)
    assert h.progress(50) == 100.0
