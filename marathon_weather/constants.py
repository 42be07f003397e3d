from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType

_CONSTANTS_DIR = Path(__file__).parent
_PROJECT_ROOT = _CONSTANTS_DIR.parent

DATA_DIR = _PROJECT_ROOT / "data"
RACE_RESULTS_FILE = "race_results.csv"
COURSE_RECORDS_FILE = "course_record.csv"
MARATHON_DATES_FILE = "marathon_dates.csv"
AIR_QUALITY_FILE = "aqi_values.csv"

RACE_CODES = MappingProxyType({
    0: "Boston",
    1: "Chicago",
    2: "NYC",
    3: "Twin Cities",
    4: "Grandma's",
})

# course record and date files abbreviate the race, Grandma's is run in Duluth
RACE_ABBREVIATIONS = MappingProxyType({
    "B": "Boston",
    "C": "Chicago",
    "NY": "NYC",
    "TC": "Twin Cities",
    "D": "Grandma's",
})

SEX_CODES = MappingProxyType({0: "Female", 1: "Male"})
SEX_ABBREVIATIONS = MappingProxyType({"F": "Female", "M": "Male"})

FLAG_LEVELS = ("White", "Green", "Yellow", "Red")

WEATHER_FIELDS = (
    "dry_bulb",
    "wet_bulb",
    "rh",
    "globe_temp",
    "solar_radiation",
    "dew_point",
    "wind",
    "wbgt",
)

# right-closed: 17 -> "<18", 25 -> "18-25", 64 -> "56-64"
AGE_BINS = (float("-inf"), 17, 25, 35, 45, 55, 64, float("inf"))
AGE_LABELS = ("<18", "18-25", "26-35", "36-45", "46-55", "56-64", "65+")

RESULTS_RENAME = MappingProxyType({
    "Race (0=Boston, 1=Chicago, 2=NYC, 3=TC, 4=D)": "race",
    "Year": "year",
    "Sex (0=F, 1=M)": "sex",
    "Flag": "flag",
    "Age (yr)": "age",
    "%CR": "pct_cr",
    "Td, C": "dry_bulb",
    "Tw, C": "wet_bulb",
    "%rh": "rh",
    "Tg, C": "globe_temp",
    "SR W/m2": "solar_radiation",
    "DP": "dew_point",
    "Wind": "wind",
    "WBGT": "wbgt",
})

COURSE_RECORDS_RENAME = MappingProxyType({
    "Race": "race",
    "Year": "year",
    "Gender": "sex",
    "CR": "cr_time",
})

MARATHON_DATES_RENAME = MappingProxyType({
    "marathon": "race",
    "Marathon": "race",
    "Year": "year",
    "Date": "date",
})

AIR_QUALITY_RENAME = MappingProxyType({
    "marathon": "race",
    "Marathon": "race",
    "Date Local": "date",
    "date_local": "date",
    "Units of Measure": "units_of_measure",
    "Sample Duration": "sample_duration",
    "Arithmetic Mean": "arithmetic_mean",
})


@dataclass(frozen=True)
class AirQualityFilter:
    """
    Selects which air-quality readings are averaged into avg_ppm.

    Sources report the same pollutant under several units and averaging
    windows; only one combination is comparable across races.
    """
    units_of_measure: str = "Parts per million"
    sample_duration: str = "8-HR RUN AVG BEGIN HOUR"

    def __str__(self):
        return f"{self.units_of_measure} / {self.sample_duration}"
