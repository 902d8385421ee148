from torrent_dashboard.activity import activity_key, is_active


def test_empty_is_idle() -> None:
    assert is_active([]) is False


def test_zero_speeds_are_idle() -> None:
    assert is_active([{"dlspeed": 0, "upspeed": 0}]) is False


def test_download_speed_is_active() -> None:
    assert is_active([{"dlspeed": 5, "upspeed": 0}]) is True


def test_upload_only_is_active() -> None:
    assert is_active([{"dlspeed": 0, "upspeed": 1}, {}]) is True


def test_non_numeric_speed_counts_as_zero() -> None:
    assert is_active([{"dlspeed": "n/a", "upspeed": None}]) is False
    assert is_active([{"dlspeed": "42"}]) is True


def test_activity_key() -> None:
    assert activity_key([]) == (False, False)
    assert activity_key([{"dlspeed": 0}]) == (True, False)
    assert activity_key([{"dlspeed": 3}]) == (True, True)
