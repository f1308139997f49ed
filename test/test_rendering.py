# Copyright 2019 Joan Puig
# See LICENSE for details


import pytest

from VO2.rendering import HTMLChartRenderer, RenderingError, format_points


def test_format_points():
    assert format_points((('2019-05-01', 45.0), ('2019-05-02', 45.556))) == "{x: new Date('2019-05-01'), y:45.00},{x: new Date('2019-05-02'), y:45.56}"
    assert format_points(()) == ''


def test_render_text():
    renderer = HTMLChartRenderer('{{LABEL}}|{{DATA}}|{{AVGDATA}}')
    text = renderer.render_text('VO2Max', (('2019-05-01', 40.0),), (('2019-05-01', 41.0),))

    assert text == "VO2Max|{x: new Date('2019-05-01'), y:40.00}|{x: new Date('2019-05-01'), y:41.00}"


def test_render_file(tmp_path):
    renderer = HTMLChartRenderer(directory=str(tmp_path))
    path = renderer('Weight', (('2019-05-01', 70.0),), (('2019-05-01', 70.0),))

    assert path.parent == tmp_path
    assert path.name.startswith('Weight')
    assert path.suffix == '.html'
    content = path.read_text(encoding='utf-8')
    assert '{{' not in content
    assert "y:70.00" in content


def test_render_empty_series(tmp_path):
    path = HTMLChartRenderer(directory=str(tmp_path))('Cadence', (), ())
    assert 'data: []' in path.read_text(encoding='utf-8')


def test_render_error(tmp_path):
    renderer = HTMLChartRenderer(directory=str(tmp_path / 'missing'))
    with pytest.raises(RenderingError):
        renderer('VO2Max', (), ())
