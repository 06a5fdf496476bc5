import numpy as np

from perigrid import GridGeometry, ImageGeometry
from perigrid.testing import raises, run_tests_if_main


class Struct:
    def __init__(self, **kwargs):
        for key, value in kwargs.items():
            setattr(self, key, value)


def test_grid_geometry():

    grid = GridGeometry((10, 8, 4), (2.0, 2.0, 5.0), (-3, -3, 0))

    # Test basic params
    assert grid.ndim == 3
    assert grid.size == (10, 8, 4)
    assert grid.shape == (4, 8, 10)
    assert grid.spacing == (2.0, 2.0, 5.0)
    assert grid.origin == (-3.0, -3.0, 0.0)
    assert grid.index == (0, 0, 0)
    assert grid.end_index == (10, 8, 4)
    assert np.all(grid.direction == np.eye(3))
    assert grid.number_of_control_points == 320
    assert grid.number_of_parameters == 960

    # Scalars are used for all dimensions
    grid = GridGeometry((5, 5), 3)
    assert grid.spacing == (3.0, 3.0)

    # Direction is read-only
    with raises(ValueError):
        grid.direction[0, 0] = 2


def test_grid_geometry_invalid():

    with raises(TypeError):
        GridGeometry('meh')
    with raises(ValueError):
        GridGeometry((10, 0))
    with raises(ValueError):
        GridGeometry((10, 10), (1, 2, 3))
    with raises(ValueError):
        GridGeometry((10, 10), (1, -1))
    with raises(ValueError):
        GridGeometry((10, 10), direction=np.eye(3))
    with raises(ValueError):
        GridGeometry((10, 10), direction=[[1, 1], [0, 1]])


def test_grid_geometry_equality():

    rot = [[0, -1], [1, 0]]
    grid1 = GridGeometry((10, 4), (2.0, 5.0), (-3, 0), rot)
    grid2 = GridGeometry((10, 4), (2.0, 5.0), (-3, 0), rot)
    grid3 = GridGeometry((10, 4), (2.0, 5.0 + 1e-12), (-3, 0), rot)
    grid4 = GridGeometry((10, 4), (2.0, 5.0), (-3, 0))

    assert grid1 == grid2
    assert grid1 != grid3
    assert grid1.allclose(grid3)
    assert not grid1.allclose(grid4)

    assert grid1.same_frame(grid3)
    assert not grid1.same_frame(grid4)
    assert not grid1.same_frame(GridGeometry((10, 4, 1)))


def test_placeholder():

    for ndim in (1, 2, 3, 4):
        grid = GridGeometry.placeholder(ndim)
        assert grid.size == (1, ) * (ndim - 1) + (4, )
        assert grid.spacing == (1.0, ) * ndim
        assert grid.origin == (0.0, ) * ndim
        assert grid.number_of_parameters == 4 * ndim


def test_grid_index_to_point():

    rot = np.array([[0, -1], [1, 0]], np.float64)
    grid = GridGeometry((10, 4), (2.0, 5.0), (10, 20), rot, index=(1, 0))

    # The origin is the point at index zero, not at the start index
    assert np.allclose(grid.index_to_point((0, 0)), (10, 20))
    # One step along x moves along the first column of the direction
    assert np.allclose(grid.index_to_point((1, 0)), (10, 22))
    assert np.allclose(grid.index_to_point((0, 1)), (5, 20))
    assert np.allclose(grid.first_point(), (10, 22))

    # Same as for an image with the same geometry
    im = ImageGeometry((10, 4), (2.0, 5.0), (10, 20), rot, index=(1, 0))
    for index in [(0, 0), (1, 0), (3, 2), (2.5, 0.5)]:
        assert np.allclose(grid.index_to_point(index), im.index_to_point(index))


def test_image_geometry():

    im = ImageGeometry((64, 48, 20), spacing=(1, 1, 2.5), origin=(5, 0, 0))
    assert im.ndim == 3
    assert im.size == (64, 48, 20)
    assert im.spacing == (1.0, 1.0, 2.5)
    assert im.period(2) == 50.0

    lo, hi = im.local_bounds()
    assert list(lo) == [0, 0, 0]
    assert list(hi) == [63, 47, 47.5]

    corners = im.corner_points()
    assert corners.shape == (8, 3)
    assert np.allclose(corners.min(0), (5, 0, 0))
    assert np.allclose(corners.max(0), (68, 47, 47.5))

    # From an array (z-y-x order)
    im = ImageGeometry(np.zeros((20, 48, 64), np.float32))
    assert im.size == (64, 48, 20)
    assert im.spacing == (1.0, 1.0, 1.0)

    # From an anisotropic array
    a = Struct(shape=(20, 48), sampling=(2.0, 0.5), origin=(1.0, 3.0))
    im = ImageGeometry(a)
    assert im.size == (48, 20)
    assert im.spacing == (0.5, 2.0)
    assert im.origin == (3.0, 1.0)


def test_image_local_frame():

    rot = np.array([[0, -1], [1, 0]], np.float64)
    im = ImageGeometry((10, 20), (1.0, 2.0), (100, 0), rot)

    points = np.array([[100, 0], [100, 4], [97, 0]], np.float64)
    local = im.point_to_local(points)
    assert np.allclose(local, [[0, 0], [4, 0], [0, 3]])
    assert np.allclose(im.local_to_point(local), points)


run_tests_if_main()
