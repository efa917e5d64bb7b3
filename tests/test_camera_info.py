import pytest

from robocalib.camera_info import CameraInfo, update_camera_info


def make_info():
    return CameraInfo(
        height=480,
        width=640,
        distortion_model="plumb_bob",
        D=[0.1, 0.2, 0.0, 0.0, 0.0],
        K=[float(i + 1) for i in range(9)],
        R=[1.0, 0.0, 0.0, 0.0, 1.0, 0.0, 0.0, 0.0, 1.0],
        P=[float(i + 1) for i in range(12)],
    )


def test_zero_offsets_leave_info_unchanged():
    info = make_info()
    assert update_camera_info(0.0, 0.0, 0.0, 0.0, info) == info


def test_original_is_not_modified():
    info = make_info()
    update_camera_info(1.0, 1.0, 1.0, 1.0, info)
    assert info == make_info()


def test_only_intrinsic_entries_change():
    info = make_info()
    updated = update_camera_info(1.0, 1.0, 1.0, 1.0, info)
    changed_p = {i for i, (a, b) in enumerate(zip(info.P, updated.P)) if a != b}
    changed_k = {i for i, (a, b) in enumerate(zip(info.K, updated.K)) if a != b}
    assert changed_p == {0, 2, 5, 6}
    assert changed_k == {0, 2, 4, 5}
    assert updated.D == info.D
    assert updated.R == info.R
    assert (updated.height, updated.width) == (info.height, info.width)


@pytest.mark.parametrize(
    "offsets,p_index,k_index",
    [
        ((1.0, 0.0, 0.0, 0.0), 0, 0),
        ((0.0, 1.0, 0.0, 0.0), 5, 4),
        ((0.0, 0.0, 1.0, 0.0), 2, 2),
        ((0.0, 0.0, 0.0, 1.0), 6, 5),
    ],
)
def test_unit_offset_doubles_matching_entry(offsets, p_index, k_index):
    info = make_info()
    updated = update_camera_info(*offsets, info)
    assert updated.P[p_index] == 2 * info.P[p_index]
    assert updated.K[k_index] == 2 * info.K[k_index]


def test_negative_one_offset_zeroes_entry():
    info = make_info()
    updated = update_camera_info(-1.0, 0.0, 0.0, 0.0, info)
    assert updated.P[0] == 0.0
    assert updated.K[0] == 0.0