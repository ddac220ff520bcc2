import numpy as np
import polars as pl
import pytest

from socialmix.model.population.utils import age_group_table


@pytest.fixture
def rng():
    return np.random.default_rng(20240501)


@pytest.fixture
def popdata():
    """
    Population store for two countries and two years, ages 0-19.
    GBR 2020 has 10 people per age below 10 and 20 per age from 10.
    """
    frames = []
    for iso3 in ("GBR", "NLD"):
        for year in (2020, 2021):
            ages = list(range(20))
            frames.append(pl.DataFrame({
                "iso3": [iso3] * 20,
                "year": [year] * 20,
                "age": ages,
                "total": [10 if a < 10 else 20 for a in ages],
            }))
    return pl.concat(frames)


@pytest.fixture
def population_data(popdata):
    return (popdata
            .filter((pl.col("iso3") == "GBR") & (pl.col("year") == 2020))
            .select("age", "total"))


@pytest.fixture
def age_groups():
    return age_group_table([["0-9", 0, 9], ["10-19", 10, 19]])


@pytest.fixture
def participants():
    return pl.DataFrame({
        "part_id": [1, 2, 3],
        "part_age": [5, 15, 12],
        "weekday": ["Monday", "Saturday", "Tuesday"],
        "n_cnt_all": [2, 3, 1],
    })


@pytest.fixture
def contacts():
    """
    Contacts of the three participants above, all with exact ages.
    """
    return pl.DataFrame({
        "cont_id": [1, 2, 3, 4, 5, 6],
        "part_id": [1, 1, 2, 2, 2, 3],
        "weekday": ["Monday", "Monday", "Saturday", "Saturday", "Saturday",
                    "Tuesday"],
        "cnt_age_exact": [3, 14, 11, 16, 7, 18],
        "cnt_age_est_min": [None] * 6,
        "cnt_age_est_max": [None] * 6,
    }, schema_overrides={"cnt_age_est_min": pl.Int64,
                         "cnt_age_est_max": pl.Int64})


@pytest.fixture
def range_contacts():
    """
    Contacts with a mix of exact ages, ranges and unknown ages.
    """
    return pl.DataFrame({
        "cont_id": list(range(1, 11)),
        "part_id": [1, 1, 1, 2, 2, 2, 3, 3, 3, 3],
        "weekday": ["Monday"] * 10,
        "cnt_age_exact": [4, None, None, None, None, None, 17, None, None,
                          None],
        "cnt_age_est_min": [None, 10, 6, None, 12, None, None, 2, None, 3],
        "cnt_age_est_max": [None, 19, 6, None, 13, 15, None, 8, None, None],
    }, schema_overrides={"cnt_age_exact": pl.Int64,
                         "cnt_age_est_min": pl.Int64,
                         "cnt_age_est_max": pl.Int64})
