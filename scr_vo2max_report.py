# Copyright 2019 Joan Puig
# See LICENSE for details


import argparse
import sys
import warnings
import webbrowser

from VO2.aggregation import DailyAggregator
from VO2.averaging import TrailingWindow
from VO2.rendering import HTMLChartRenderer, RenderingError
from VO2.report import DEFAULT_METRICS, ReportAssembler


def main(argv=None) -> int:
    # This script scans a folder of FIT files and opens one chart per metric in the browser

    parser = argparse.ArgumentParser(description='Charts the daily best VO2max, heart rate, cadence and weight of running activities')
    parser.add_argument('folder', help='folder holding the FIT activity files')
    parser.add_argument('--window', type=int, default=TrailingWindow.DEFAULT_CAPACITY, help='number of days in the trailing average')
    parser.add_argument('--output-dir', default=None, help='where the HTML charts are written, a temporary folder by default')
    parser.add_argument('--no-browser', action='store_true', help='only print the paths of the generated charts')
    args = parser.parse_args(argv)

    aggregator = DailyAggregator()
    with warnings.catch_warnings():
        # Report every skipped file, not only the first one
        warnings.simplefilter('always')
        try:
            series = aggregator.scan_folder(args.folder)
        except OSError as e:
            print('Unable to read folder {}: {}'.format(args.folder, e), file=sys.stderr)
            return 1

    print('{} running days found, {} files skipped'.format(len(series), len(aggregator.skipped_files)))

    assembler = ReportAssembler(series, args.window)
    renderer = HTMLChartRenderer(directory=args.output_dir)
    for metric in DEFAULT_METRICS:
        try:
            path = assembler.render(metric, renderer)
        except RenderingError as e:
            print(e, file=sys.stderr)
            continue

        print(path)
        if not args.no_browser:
            webbrowser.open(path.as_uri())

    return 0


if __name__ == "__main__":
    sys.exit(main())
