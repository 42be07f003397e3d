"""
Marathon performance against race-day weather and air quality.

Joins per-runner race results to course records, race dates and ozone
readings, derives finishing times and age groups, and produces the summary
and significance tables for the analysis.
"""
