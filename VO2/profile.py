# Copyright 2019 Joan Puig
# See LICENSE for details


from datetime import datetime, timedelta, timezone
from enum import Enum

from VO2.decoder import FITFileContentError


"""
This file holds the small subset of the FIT profile this project consumes: the global message numbers,
the field numbers read from them and the sport codes.

The complete profile can be obtained from the FIT SDK: https://www.thisisant.com/resources/fit/
"""


"""
FIT date_time values count seconds since UTC 00:00 Dec 31 1989
"""
FIT_EPOCH = datetime(1989, 12, 31, tzinfo=timezone.utc)


def fit_datetime(seconds: int) -> datetime:
    """
    Converts a FIT date_time value into a timezone aware UTC datetime
    """
    try:
        return FIT_EPOCH + timedelta(seconds=seconds)
    except (OverflowError, ValueError) as e:
        raise FITFileContentError('Date time value {} is out of range'.format(seconds)) from e


class MesgNum:
    FileId = 0
    Sport = 12
    Session = 18
    BodyComposition = 79
    MaxMetData = 140


class FileIdField:
    TimeCreated = 4


class SportField:
    Sport = 0


class SessionField:
    AvgHeartRate = 16
    AvgCadence = 18


class BodyCompositionField:
    Weight = 3


class MaxMetDataField:
    Vo2Max = 7


class Sport(Enum):
    Generic = 0
    Running = 1
    Cycling = 2
    Transition = 3
    FitnessEquipment = 4
    Swimming = 5
    Basketball = 6
    Soccer = 7
    Tennis = 8
    AmericanFootball = 9
    Training = 10
    Walking = 11
    CrossCountrySkiing = 12
    AlpineSkiing = 13
    Snowboarding = 14
    Rowing = 15
    Mountaineering = 16
    Hiking = 17
    Multisport = 18
    Paddling = 19
    Flying = 20
    EBiking = 21
    Motorcycling = 22
    Boating = 23
    Driving = 24
    Golf = 25
    HangGliding = 26
    HorsebackRiding = 27
    Hunting = 28
    Fishing = 29
    InlineSkating = 30
    RockClimbing = 31
    Sailing = 32
    IceSkating = 33
    SkyDiving = 34
    Snowshoeing = 35
    Snowmobiling = 36
    StandUpPaddleboarding = 37
    Surfing = 38
    Wakeboarding = 39
    WaterSkiing = 40
    Kayaking = 41
    Rafting = 42
    Windsurfing = 43
    Kitesurfing = 44
    Tactical = 45
    Jumpmaster = 46
    Boxing = 47
    FloorClimbing = 48
    All = 254
    Invalid = 255

    @staticmethod
    def from_value(value: int) -> "Sport":
        """
        Returns the Sport for a raw code, codes missing from the profile map to Sport.Invalid
        """
        return Sport._value2member_map_.get(value, Sport.Invalid)
