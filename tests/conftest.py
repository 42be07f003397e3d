import pandas as pd
import pytest

RACE_HEADER = "Race (0=Boston, 1=Chicago, 2=NYC, 3=TC, 4=D)"

# race code -> (abbreviation, {year: race date})
RACES = {
    0: ("B", {2010: "2010-04-19", 2011: "2011-04-18"}),
    1: ("C", {2010: "2010-10-10", 2011: "2011-10-09"}),
}
FLAG_BY_YEAR = {2010: "White", 2011: "Yellow"}
AGES = [22, 24, 40, 42]


def build_race_results() -> pd.DataFrame:
    """
    Fully crossed results: 2 races x 2 years x 2 sexes x 4 ages = 32 rows,
    plus one NYC runner with no course record, no date and no wind reading.
    """
    rows = []
    for race, (_, dates) in RACES.items():
        for year in dates:
            year_idx = year - 2010
            for sex in (0, 1):
                for age in AGES:
                    rows.append({
                        RACE_HEADER: race,
                        "Year": year,
                        "Sex (0=F, 1=M)": sex,
                        "Flag": FLAG_BY_YEAR[year],
                        "Age (yr)": age,
                        "%CR": 5 + age * 0.5 + year_idx * 3 + sex + race * 0.7,
                        "Td, C": 10 + 8 * year_idx + race,
                        "Tw, C": 7 + 6 * year_idx + race,
                        "%rh": 55 + 10 * year_idx - race,
                        "Tg, C": 18 + 9 * year_idx + 2 * race,
                        "SR W/m2": 400 + 150 * year_idx + 20 * race,
                        "DP": 3 + 5 * year_idx + race,
                        "Wind": 12 - 3 * year_idx + race,
                        "WBGT": 11 + 7 * year_idx + race,
                    })
    rows.append({
        RACE_HEADER: 2, "Year": 2012, "Sex (0=F, 1=M)": 1, "Flag": "Green", "Age (yr)": 30,
        "%CR": 20.0, "Td, C": 15.0, "Tw, C": 12.0, "%rh": 60.0, "Tg, C": 20.0,
        "SR W/m2": 500.0, "DP": 8.0, "Wind": None, "WBGT": 14.0,
    })
    return pd.DataFrame(rows)


def build_course_records() -> pd.DataFrame:
    rows = []
    for abbreviation, dates in RACES.values():
        for year in dates:
            rows.append({"Race": abbreviation, "Year": year, "Gender": "F", "CR": "2:20:00"})
            rows.append({"Race": abbreviation, "Year": year, "Gender": "M", "CR": "2:05:30"})
    return pd.DataFrame(rows)


def build_marathon_dates() -> pd.DataFrame:
    rows = []
    for abbreviation, dates in RACES.values():
        for year, date in dates.items():
            rows.append({"marathon": abbreviation, "year": year, "date": date})
    return pd.DataFrame(rows)


def build_air_quality() -> pd.DataFrame:
    ppm, eight_hour = "Parts per million", "8-HR RUN AVG BEGIN HOUR"
    return pd.DataFrame([
        {"marathon": "Boston", "Date Local": "2010-04-19", "Units of Measure": ppm,
         "Sample Duration": eight_hour, "Arithmetic Mean": 0.02},
        {"marathon": "Boston", "Date Local": "2010-04-19", "Units of Measure": ppm,
         "Sample Duration": eight_hour, "Arithmetic Mean": 0.04},
        {"marathon": "Boston", "Date Local": "2010-04-19", "Units of Measure": ppm,
         "Sample Duration": "1 HOUR", "Arithmetic Mean": 0.5},
        {"marathon": "Boston", "Date Local": "2011-04-18", "Units of Measure": ppm,
         "Sample Duration": eight_hour, "Arithmetic Mean": 0.045},
        {"marathon": "Chicago", "Date Local": "2010-10-10", "Units of Measure": ppm,
         "Sample Duration": eight_hour, "Arithmetic Mean": 0.03},
        {"marathon": "Chicago", "Date Local": "2010-10-10", "Units of Measure": "Parts per billion",
         "Sample Duration": eight_hour, "Arithmetic Mean": 31.0},
    ])


@pytest.fixture
def data_dir(tmp_path):
    """Directory holding the four raw input files under their default names."""
    directory = tmp_path / "data"
    directory.mkdir()
    build_race_results().to_csv(directory / "race_results.csv", index=False)
    build_course_records().to_csv(directory / "course_record.csv", index=False)
    build_marathon_dates().to_csv(directory / "marathon_dates.csv", index=False)
    build_air_quality().to_csv(directory / "aqi_values.csv", index=False)
    return directory
