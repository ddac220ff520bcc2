#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Imputation of missing participant ages.

Children (and some adults) are often recorded with an age range only. Their
age is drawn from the population distribution restricted to that range.
"""

import logging

import numpy as np
import polars as pl

from .utils import zsample

logger = logging.getLogger(__name__)


def sample_age_child_participants(part, population_data, rng):
    """
    Fill missing `part_age` values by population-weighted sampling.

    Each distinct (part_age_est_min, part_age_est_max) pair among
    participants with no `part_age` is sampled from the population slice
    [min, max]. Participants whose upper bound is exactly 1 are set to 0
    ("under 1" bins). The imputed value is kept in `age_est` and copied into
    `part_age`.

    :param part: participants with `part_age`, `part_age_est_min`,
        `part_age_est_max`.
    :type part: pl.DataFrame
    :param population_data: pl.DataFrame with `age` and `total`.
    :param rng: random number generator.
    :returns: pl.DataFrame, `part` itself when there is nothing to impute.
    """
    if "part_age_est_min" not in part.columns or \
            "part_age_est_max" not in part.columns:
        return part

    missing = (pl.col("part_age").is_null()
               & pl.col("part_age_est_min").is_not_null()
               & pl.col("part_age_est_max").is_not_null())
    if part.filter(missing).height == 0:
        return part

    part = part.with_row_index("_row")
    to_sample = part.filter(missing)
    age_est = np.full(part.height, np.nan)

    pairs = (to_sample
             .group_by("part_age_est_min", "part_age_est_max")
             .agg(pl.col("_row"))
             .sort("part_age_est_min", "part_age_est_max"))
    for age_min, age_max, rows in pairs.iter_rows():
        pop_data = population_data.filter(
            pl.col("age").is_between(age_min, age_max, closed="both"))
        if pop_data.height == 0:
            logger.warning("no population data for ages %s-%s, leaving %d "
                           "participant ages missing", age_min, age_max,
                           len(rows))
            continue
        age_est[rows] = zsample(pop_data["age"].to_numpy(), len(rows), rng,
                                replace=True,
                                p=pop_data["total"].to_numpy())

    part = part.with_columns(
        age_est=pl.Series("age_est", age_est).fill_nan(None).cast(pl.Int64))
    part = part.with_columns(
        age_est=pl.when(pl.col("part_age").is_null()
                        & (pl.col("part_age_est_max") == 1))
                  .then(pl.lit(0, dtype=pl.Int64))
                  .otherwise(pl.col("age_est")))
    part = part.with_columns(
        part_age=pl.coalesce(pl.col("age_est"),
                             pl.col("part_age")).cast(pl.Int64))
    return part.drop("_row")
