# Copyright 2019 Joan Puig
# See LICENSE for details


import os
import warnings

from datetime import date, timezone
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

import pandas as pd

from VO2.activities import ActivityExtractor, ActivityRecord
from VO2.decoder import FITDecodeError, FITFileContentWarning
from VO2.profile import Sport


class FITFileSkippedWarning(Warning):
    pass


class DailySeries:
    """
    Best running ActivityRecord per calendar day, iterated in ascending date order
    """

    def __init__(self):
        self._records: Dict[date, ActivityRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, day: date) -> bool:
        return day in self._records

    def __getitem__(self, day: date) -> ActivityRecord:
        return self._records[day]

    def __iter__(self) -> Iterator[date]:
        return iter(self.dates())

    def dates(self) -> List[date]:
        return sorted(self._records)

    def items(self) -> List[Tuple[date, ActivityRecord]]:
        return [(day, self._records[day]) for day in self.dates()]

    def records(self) -> List[ActivityRecord]:
        return [self._records[day] for day in self.dates()]

    def merge(self, day: date, record: ActivityRecord) -> bool:
        """
        Keeps the first record seen for a day, a later record replaces it only with a higher, positive vo2_max
        Returns True when the record was stored
        """
        current = self._records.get(day)
        if current is None or (record.vo2_max > 0 and record.vo2_max > current.vo2_max):
            self._records[day] = record
            return True
        return False

    def to_frame(self) -> pd.DataFrame:
        columns = ['vo2_max', 'heart_rate', 'cadence', 'weight', 'timestamp']
        rows = [[getattr(record, column) for column in columns] for record in self.records()]
        return pd.DataFrame(rows, columns=columns, index=pd.Index(self.dates(), name='date'))


class DailyAggregator:
    def __init__(self, sport: Sport = Sport.Running, extractor: Optional[ActivityExtractor] = None):
        self.sport = sport
        self.extractor = extractor if extractor is not None else ActivityExtractor()
        self.series = DailySeries()
        self.skipped_files: List[str] = []

    def add(self, record: ActivityRecord, source: str = '') -> bool:
        if record.sport != self.sport:
            return False

        if record.timestamp is None:
            warnings.warn('Activity {} has no timestamp and cannot be placed on a day'.format(source or record), FITFileContentWarning)
            return False

        day = record.timestamp.astimezone(timezone.utc).date()
        return self.series.merge(day, record)

    def add_all(self, records: Iterable[ActivityRecord]) -> DailySeries:
        for record in records:
            self.add(record)
        return self.series

    def add_file(self, file_name: str) -> bool:
        try:
            record = self.extractor.extract_file(file_name)
        except FITDecodeError as e:
            self.skipped_files.append(file_name)
            warnings.warn('Skipping {}: {}'.format(file_name, e), FITFileSkippedWarning)
            return False

        return self.add(record, file_name)

    def scan_folder(self, folder: str) -> DailySeries:
        """
        Attempts every regular file in the folder as an activity file
        Files that fail to decode are skipped with a FITFileSkippedWarning, an unreadable folder raises OSError
        """
        for entry in os.listdir(folder):
            file_name = os.path.join(folder, entry)
            if os.path.isfile(file_name):
                self.add_file(file_name)

        return self.series

    @staticmethod
    def daily_series(folder: str, sport: Sport = Sport.Running) -> DailySeries:
        return DailyAggregator(sport).scan_folder(folder)
