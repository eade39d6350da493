from mdlgen.geometry import unify_corner_indices


def test_identical_corner_tuples_share_a_vertex():
    unique, indices = unify_corner_indices(
        [(0, 0, 0), (1, 0, 1), (2, 0, 2), (0, 0, 0), (2, 0, 2), (3, 0, 3)]
    )
    assert unique == [(0, 0, 0), (1, 0, 1), (2, 0, 2), (3, 0, 3)]
    assert indices == [0, 1, 2, 0, 2, 3]


def test_same_position_different_normal_splits_vertex():
    unique, indices = unify_corner_indices([(0, 0), (0, 1), (0, 0)])
    assert unique == [(0, 0), (0, 1)]
    assert indices == [0, 1, 0]


def test_first_seen_order_is_kept():
    unique, _ = unify_corner_indices([(5,), (1,), (5,), (3,)])
    assert unique == [(5,), (1,), (3,)]


def test_empty_input():
    assert unify_corner_indices([]) == ([], [])
