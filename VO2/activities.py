# Copyright 2019 Joan Puig
# See LICENSE for details


from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, Iterable, Optional, Tuple

from VO2.decoder import Decoder
from VO2.model import Message
from VO2.profile import MesgNum, FileIdField, SportField, MaxMetDataField, SessionField, BodyCompositionField, Sport, fit_datetime


"""
Raw MET values are stored as a fixed point number, dividing by this factor gives VO2max in ml/kg/min
"""
VO2_MAX_FACTOR = 65536.0 / 3.5


@dataclass(frozen=True)
class ActivityRecord:
    """
    The metrics extracted from one activity file
    Fields default to zero or None when the message holding them never appears in the file
    """
    vo2_max: float = 0.0
    cadence: Optional[int] = None
    heart_rate: Optional[int] = None
    timestamp: Optional[datetime] = None
    sport: Optional[Sport] = None
    weight: float = 0.0


class ActivityRecordBuilder:
    def __init__(self):
        self.vo2_max = 0.0
        self.cadence = None
        self.heart_rate = None
        self.timestamp = None
        self.sport = None
        self.weight = 0.0

    def build(self) -> ActivityRecord:
        return ActivityRecord(self.vo2_max, self.cadence, self.heart_rate, self.timestamp, self.sport, self.weight)


FieldSetter = Callable[[ActivityRecordBuilder, Message, int], None]


def _setter(read: Callable[[Message, int], Optional[int]], attribute: str, transform: Callable = lambda v: v) -> FieldSetter:
    # Missing and invalid values leave the builder untouched
    def set_field(builder: ActivityRecordBuilder, message: Message, field_number: int) -> None:
        value = read(message, field_number)
        if value is not None:
            setattr(builder, attribute, transform(value))
    return set_field


FIELD_SETTERS: Dict[Tuple[int, int], FieldSetter] = {
    (MesgNum.FileId, FileIdField.TimeCreated): _setter(Message.get_integer, 'timestamp', fit_datetime),
    (MesgNum.Sport, SportField.Sport): _setter(Message.get_short, 'sport', Sport.from_value),
    (MesgNum.MaxMetData, MaxMetDataField.Vo2Max): _setter(Message.get_integer, 'vo2_max', lambda v: v / VO2_MAX_FACTOR),
    (MesgNum.Session, SessionField.AvgCadence): _setter(Message.get_byte, 'cadence'),
    (MesgNum.Session, SessionField.AvgHeartRate): _setter(Message.get_byte, 'heart_rate'),
    (MesgNum.BodyComposition, BodyCompositionField.Weight): _setter(Message.get_integer, 'weight', float),
}


class ActivityExtractor:
    """
    Folds the messages of one activity file into an ActivityRecord
    Every message is matched against the (message number, field number) pairs of the setter table, later messages overwrite earlier values
    """

    def __init__(self, field_setters: Optional[Dict[Tuple[int, int], FieldSetter]] = None):
        if field_setters is None:
            field_setters = FIELD_SETTERS

        self.field_setters = field_setters
        self.fields_by_message: Dict[int, Tuple[Tuple[int, FieldSetter], ...]] = {}
        for (message_number, field_number), setter in field_setters.items():
            self.fields_by_message[message_number] = self.fields_by_message.get(message_number, ()) + ((field_number, setter),)

    @property
    def message_numbers(self) -> Tuple[int, ...]:
        return tuple(self.fields_by_message.keys())

    def extract(self, messages: Iterable[Message]) -> ActivityRecord:
        builder = ActivityRecordBuilder()
        for message in messages:
            for field_number, setter in self.fields_by_message.get(message.global_message_number, ()):
                setter(builder, message, field_number)
        return builder.build()

    def extract_file(self, file_name: str) -> ActivityRecord:
        # Any FITDecodeError raised while streaming propagates, no partial record is returned
        return self.extract(Decoder.decode_fit_messages(file_name, self.message_numbers))

    @staticmethod
    def extract_activity(file_name: str) -> ActivityRecord:
        return ActivityExtractor().extract_file(file_name)
