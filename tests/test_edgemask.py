import numpy as np

from perigrid import (GridGeometry, Reporter, ConfigurationError,
                      build_scales, passive_mask, PASSIVE_SCALE)
from perigrid.edgemask import inset_region
from perigrid.testing import raises, run_tests_if_main


def test_no_passive_edge():

    grid = GridGeometry((10, 8, 6))
    scales = build_scales(grid, 0)
    assert scales.shape == (grid.number_of_parameters, )
    assert np.all(scales == 1)
    assert not passive_mask(grid, 0).any()


def test_passive_edge_count():

    grid = GridGeometry((10, 10, 10))
    for w in (1, 2, 3, 4):
        scales = build_scales(grid, w)
        frozen = (scales == PASSIVE_SCALE).sum()
        assert frozen == (1000 - (10 - 2 * w) ** 3) * 3
        assert np.all((scales == 1) | (scales == PASSIVE_SCALE))


def test_passive_edge_brute_force():

    grid = GridGeometry((7, 5, 9), (1.0, 2.0, 0.5), index=(3, 0, 1))
    w = 2

    # Which control points (z-y-x) are in the edge band
    zz, yy, xx = np.indices(grid.shape)
    edge = np.zeros(grid.shape, bool)
    for ii, n in [(xx, 7), (yy, 5), (zz, 9)]:
        edge |= (ii < w) | (ii >= n - w)

    scales = build_scales(grid, w)
    blocks = scales.reshape((3, ) + grid.shape)
    for block in blocks:
        assert np.all(block[edge] == PASSIVE_SCALE)
        assert np.all(block[~edge] == 1)

    mask = passive_mask(grid, w)
    assert mask.shape == grid.shape
    assert np.all(mask == edge)

    # The inset region is in grid indices
    index, size = inset_region(grid, w)
    assert index == (5, 2, 3)
    assert size == (3, 1, 5)


def test_passive_edge_custom_scale():

    grid = GridGeometry((4, 5))
    scales = build_scales(grid, 1, passive_scale=50.0)
    assert (scales == 50.0).sum() == (20 - 2 * 3) * 2
    assert (scales == 1.0).sum() == 2 * 3 * 2


def test_passive_edge_too_large():

    messages = []
    reporter = Reporter(lambda level, message: messages.append((level, message)))

    grid = GridGeometry((10, 10, 10))
    with raises(ConfigurationError):
        build_scales(grid, 6, reporter)
    with raises(ConfigurationError):
        build_scales(grid, 5, reporter)
    assert len(messages) == 2
    assert messages[0][0] == 'error'
    assert 'dimension 0' in messages[0][1]

    # Only one dimension too small
    grid = GridGeometry((10, 10, 3))
    with raises(ConfigurationError) as err:
        build_scales(grid, 2, reporter)
    assert 'dimension 2' in str(err.value)
    assert 'PassiveEdgeWidth' in str(err.value)

    with raises(ConfigurationError):
        build_scales(grid, -1, reporter)
    with raises(ConfigurationError):
        passive_mask(grid, 2)


def test_passive_edge_not_integer():

    grid = GridGeometry((10, 10, 10))

    # Integer valued floats are fine
    assert np.all(build_scales(grid, 2.0) == build_scales(grid, 2))
    assert np.all(build_scales(grid, np.int64(2)) == build_scales(grid, 2))

    for width in (2.5, 0.1, 'a', None, float('nan')):
        with raises(ConfigurationError):
            build_scales(grid, width)
        with raises(ConfigurationError):
            passive_mask(grid, width)


run_tests_if_main()
