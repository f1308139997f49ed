# Copyright 2019 Joan Puig
# See LICENSE for details


import os
import tempfile

from pathlib import Path
from typing import Optional

from VO2.report import ChartSeries


class RenderingError(Exception):
    pass


DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{{LABEL}}</title>
<script src="https://cdn.jsdelivr.net/npm/chart.js@2.9.4/dist/Chart.bundle.min.js"></script>
</head>
<body>
<canvas id="chart"></canvas>
<script>
new Chart(document.getElementById('chart'), {
    type: 'line',
    data: {
        datasets: [
            {label: '{{LABEL}}', data: [{{DATA}}], fill: false, showLine: false, borderColor: 'rgb(54, 162, 235)'},
            {label: '{{LABEL}} (average)', data: [{{AVGDATA}}], fill: false, borderColor: 'rgb(255, 99, 132)'}
        ]
    },
    options: {scales: {xAxes: [{type: 'time', time: {unit: 'month'}}]}}
});
</script>
</body>
</html>
"""


def format_points(series: ChartSeries) -> str:
    return ','.join("{{x: new Date('{}'), y:{:.2f}}}".format(day, value) for day, value in series)


class HTMLChartRenderer:
    """
    Writes a metric to a temporary HTML page by substituting {{LABEL}}, {{DATA}} and {{AVGDATA}} in a template
    """

    def __init__(self, template: Optional[str] = None, directory: Optional[str] = None):
        self.template = template if template is not None else DEFAULT_TEMPLATE
        self.directory = directory

    def render_text(self, label: str, raw: ChartSeries, averaged: ChartSeries) -> str:
        return self.template.replace('{{DATA}}', format_points(raw)).replace('{{AVGDATA}}', format_points(averaged)).replace('{{LABEL}}', label)

    def __call__(self, label: str, raw: ChartSeries, averaged: ChartSeries) -> Path:
        text = self.render_text(label, raw, averaged)
        try:
            handle, file_name = tempfile.mkstemp(prefix=label, suffix='.html', dir=self.directory)
            with os.fdopen(handle, 'w', encoding='utf-8') as file:
                file.write(text)
        except OSError as e:
            raise RenderingError('Unable to write the {} chart: {}'.format(label, e)) from e
        return Path(file_name)
