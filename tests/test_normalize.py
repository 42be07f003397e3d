import pandas as pd
import pytest

from marathon_weather.constants import RACE_CODES, SEX_CODES
from marathon_weather.normalize import (
    DurationFormatError,
    UnknownCodeError,
    duration_to_seconds,
    map_codes,
    normalize_course_records,
    normalize_marathon_dates,
    normalize_race_results,
)


class TestMapCodes:
    """Tests for mapping coded identifiers to labels."""

    def test_known_codes(self):
        """Every race code maps to its label."""
        codes = pd.Series([0, 1, 2, 3, 4])
        labels = map_codes(codes, RACE_CODES, "race")
        assert labels.tolist() == ["Boston", "Chicago", "NYC", "Twin Cities", "Grandma's"]

    def test_float_codes(self):
        """Integer codes read back as floats still map."""
        labels = map_codes(pd.Series([0.0, 1.0]), SEX_CODES, "sex")
        assert labels.tolist() == ["Female", "Male"]

    def test_unknown_code_is_fatal(self):
        """A code outside the table raises instead of guessing."""
        with pytest.raises(UnknownCodeError, match="race"):
            map_codes(pd.Series([0, 7]), RACE_CODES, "race")

    def test_missing_code_is_fatal(self):
        """A missing code is rejected as well."""
        with pytest.raises(UnknownCodeError):
            map_codes(pd.Series([1, None]), SEX_CODES, "sex")

    def test_unknown_code_error_is_value_error(self):
        with pytest.raises(ValueError):
            map_codes(pd.Series([2]), SEX_CODES, "sex")


class TestDurationToSeconds:
    """Tests for H:M:S parsing."""

    def test_three_hours(self):
        assert duration_to_seconds("3:00:00") == 10800

    def test_typical_record(self):
        assert duration_to_seconds("2:03:02") == 2 * 3600 + 3 * 60 + 2

    def test_whitespace_and_fractional_seconds(self):
        assert duration_to_seconds(" 2:05:30.5 ") == 7530.5

    @pytest.mark.parametrize("bad", ["2:05", "2:05:30:00", "abc", "2:xx:00", "2:61:00", "2:05:60", "-1:00:00", ""])
    def test_malformed(self, bad):
        """Malformed durations are a data contract violation."""
        with pytest.raises(DurationFormatError):
            duration_to_seconds(bad)

    def test_missing(self):
        with pytest.raises(DurationFormatError):
            duration_to_seconds(None)
        with pytest.raises(DurationFormatError):
            duration_to_seconds(float("nan"))


class TestNormalizeTables:
    """Tests for normalizing the loaded tables."""

    def test_race_results(self):
        """Codes become labels and flags an ordered categorical."""
        df = pd.DataFrame({
            "race": [0, 4],
            "sex": [1, 0],
            "flag": ["white", None],
            "age": [30, 40],
        })
        result = normalize_race_results(df)

        assert result["race"].tolist() == ["Boston", "Grandma's"]
        assert result["sex"].tolist() == ["Male", "Female"]
        assert result["flag"].iloc[0] == "White"
        assert pd.isna(result["flag"].iloc[1])
        assert result["flag"].cat.ordered
        assert list(result["flag"].cat.categories) == ["White", "Green", "Yellow", "Red"]
        # input left untouched
        assert df["race"].tolist() == [0, 4]

    def test_unknown_flag(self):
        df = pd.DataFrame({"race": [0], "sex": [1], "flag": ["Purple"]})
        with pytest.raises(UnknownCodeError, match="flag"):
            normalize_race_results(df)

    def test_course_records(self):
        df = pd.DataFrame({
            "race": ["B", "TC"],
            "year": [2010, 2010],
            "sex": ["F", "M"],
            "cr_time": ["2:20:00", "2:08:51"],
        })
        result = normalize_course_records(df)

        assert result["race"].tolist() == ["Boston", "Twin Cities"]
        assert result["sex"].tolist() == ["Female", "Male"]
        assert result["cr_seconds"].tolist() == [8400.0, 7731.0]

    def test_course_records_bad_time(self):
        df = pd.DataFrame({"race": ["B"], "year": [2010], "sex": ["F"], "cr_time": ["2h20m"]})
        with pytest.raises(DurationFormatError):
            normalize_course_records(df)

    def test_marathon_dates_accept_labels_and_abbreviations(self):
        df = pd.DataFrame({"race": ["NY", "Chicago"], "year": [2010, 2010], "date": ["2010-11-07", "2010-10-10"]})
        assert normalize_marathon_dates(df)["race"].tolist() == ["NYC", "Chicago"]
