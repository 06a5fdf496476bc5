import numpy as np

from perigrid import GridGeometry, ParameterMap, Reporter, ConfigurationError
from perigrid import parameterfile
from perigrid.testing import raises, run_tests_if_main


def test_format_line():

    assert parameterfile.format_line('GridSize', (10, 8, 4)) == '(GridSize 10 8 4)'
    assert parameterfile.format_line('PassiveEdgeWidth', 1) == '(PassiveEdgeWidth 1)'
    assert parameterfile.format_line('Transform', 'PeriodicBSplineTransform') == \
        '(Transform "PeriodicBSplineTransform")'
    assert parameterfile.format_line('Spacing', [2.5, 16.0]) == '(Spacing 2.5 16)'
    assert parameterfile.format_line('Flag', True) == '(Flag "true")'
    assert parameterfile.format_line('Values', np.array([1, 2])) == '(Values 1 2)'

    # Precision
    assert parameterfile.format_line('X', 1 / 3) == '(X 0.3333333333)'
    assert parameterfile.format_line('X', 1 / 3, 4) == '(X 0.3333)'

    with raises(TypeError):
        parameterfile.format_value(None)


def test_write_grid_lines():

    rot = [[0, -1], [1, 0]]
    grid = GridGeometry((10, 4), (2.5, 10), (-3.75, 0), rot)
    lines = parameterfile.write_grid_lines(grid)
    assert lines == ['(GridSize 10 4)',
                     '(GridIndex 0 0)',
                     '(GridSpacing 2.5 10)',
                     '(GridOrigin -3.75 0)',
                     '(GridDirection 0 1 -1 0)']  # column by column


def test_grid_roundtrip():

    rot = np.array([[0, 0, 1], [1, 0, 0], [0, 1, 0]], np.float64)
    grid = GridGeometry((11, 7, 5), (8.0, 4.5, 0.25), (-8.5, 3.0, 1.0e4), rot,
                        index=(0, 2, 1))
    text = '\n'.join(parameterfile.write_grid_lines(grid))
    params = parameterfile.parse(text)
    grid2 = parameterfile.read_grid(params, 3)
    assert grid2 == grid
    assert np.all(grid2.direction == rot)


def test_parse():

    text = """
    // A comment
    (Transform "PeriodicBSplineTransform")  // trailing comment
    (NumberOfParameters 4)
    (TransformParameters 0.5 -1 2e-3 7)
    (FixedImagePyramid "FixedSmoothingImagePyramid" "FixedSmoothingImagePyramid")
    (Path "c://data")
    (Empty)
    """
    params = parameterfile.parse(text)
    assert isinstance(params, ParameterMap)
    assert params.Transform == ('PeriodicBSplineTransform', )
    assert params.NumberOfParameters == (4, )
    assert params.TransformParameters == (0.5, -1, 0.002, 7)
    assert params.count('FixedImagePyramid') == 2
    assert params.Path == ('c://data', )
    assert params.Empty == ()

    assert parameterfile.parse_value('3') == 3
    assert parameterfile.parse_value('3.0') == 3.0
    assert parameterfile.parse_value('"3"') == '3'
    assert parameterfile.parse_value('true') == 'true'

    with raises(ConfigurationError):
        parameterfile.parse('(GridSize 3 3')
    with raises(ConfigurationError):
        parameterfile.parse('GridSize 3 3')


def test_read_grid_defaults():

    params = parameterfile.parse('(GridSize 5 6)')
    grid = parameterfile.read_grid(params, 2)
    assert grid.size == (5, 6)
    assert grid.index == (0, 0)
    assert grid.spacing == (1.0, 1.0)
    assert grid.origin == (0.0, 0.0)
    assert np.all(grid.direction == np.eye(2))

    # Absent entries, also GridSize
    params = parameterfile.parse('(GridOrigin 3 4 5)')
    assert parameterfile.grid_ndim(params) == 3
    grid = parameterfile.read_grid(params, 3)
    assert grid.size == (1, 1, 1)
    assert grid.origin == (3.0, 4.0, 5.0)
    assert parameterfile.grid_ndim(parameterfile.parse('(GridDirection 1 0 0 1)')) == 2
    assert parameterfile.grid_ndim(ParameterMap()) == 0

    # Entries that are present must match the dimensionality
    with raises(ConfigurationError):
        parameterfile.read_grid(params, 2)
    params = parameterfile.parse('(GridSize 5 6)\n(GridDirection 1 0 0 1)')
    with raises(ConfigurationError):
        parameterfile.read_grid(params, 3)

    params = parameterfile.parse('(GridSize 5 0)')
    with raises(ConfigurationError):
        parameterfile.read_grid(params, 2)
    params = parameterfile.parse('(GridSize 5 5)\n(GridSpacing "a" 1)')
    with raises(ConfigurationError):
        parameterfile.read_grid(params, 2)


def test_parameter_map():

    params = ParameterMap(PassiveEdgeWidth=(0, 0, 1), UseComposition='true')
    params.FinalGridSpacingInVoxels = 16
    params['Schedule'] = np.array([4, 2, 1])

    # Values are tuples
    assert params.PassiveEdgeWidth == (0, 0, 1)
    assert params['FinalGridSpacingInVoxels'] == (16, )
    assert params.Schedule == (4, 2, 1)
    assert params.count('PassiveEdgeWidth') == 3
    assert params.count('Foo') == 0

    # Reading entries
    assert params.read('PassiveEdgeWidth', 2) == 1
    assert params.read('PassiveEdgeWidth', 5) is None
    assert params.read('PassiveEdgeWidth', 5, 3) == 3
    assert params.read('FinalGridSpacingInVoxels', 2, None, 0) == 16
    assert params.read('Foo', 0, 'x', 0) == 'x'
    assert params.read_for_level('PassiveEdgeWidth', 2, 0) == 1
    assert params.read_for_level('FinalGridSpacingInVoxels', 3, 0) == 16
    assert params.read_for_level('Foo', 3, 0) == 0

    # Booleans
    assert params.read_bool('UseComposition') is True
    assert params.read_bool('Foo') is False
    assert params.read_bool('Foo', 0, True) is True
    params.UseComposition = 'false'
    assert params.read_bool('UseComposition') is False
    params.UseComposition = 'maybe'
    with raises(ConfigurationError):
        params.read_bool('UseComposition')

    # Names
    with raises(AttributeError):
        params.Foo
    with raises(AttributeError):
        params.keys = 3
    with raises(ValueError):
        params['not valid'] = 3
    with raises(ValueError):
        ParameterMap({'1x': 2})


def test_parameter_map_text():

    params = ParameterMap(GridSpacingSchedule=(4.0, 2.5, 1.0),
                          Transform='PeriodicBSplineTransform',
                          NumberOfResolutions=3)
    text = params.to_text()
    assert '(GridSpacingSchedule 4 2.5 1)\n' in text
    assert '(NumberOfResolutions 3)\n' in text

    params2 = ParameterMap.from_text(text)
    assert params2 == params


def test_reporter(capsys):

    # Without callback the messages are printed
    reporter = Reporter()
    reporter.info('spacing ok')
    reporter.warning('spacing adapted')
    reporter.error('edge too wide')
    out = capsys.readouterr().out
    assert out == 'spacing ok\nWARNING: spacing adapted\nERROR: edge too wide\n'

    # With callback nothing is printed
    messages = []
    reporter = Reporter(lambda level, message: messages.append((level, message)))
    for i in range(3):
        reporter.warning('spacing adapted %i' % i)
    reporter.error('edge too wide')
    assert messages == [('warning', 'spacing adapted 0'),
                        ('warning', 'spacing adapted 1'),
                        ('warning', 'spacing adapted 2'),
                        ('error', 'edge too wide')]
    assert capsys.readouterr().out == ''

    # The reporter does not hold on to the messages
    assert not hasattr(reporter, 'messages')
    assert not hasattr(reporter, '_messages')


run_tests_if_main()
