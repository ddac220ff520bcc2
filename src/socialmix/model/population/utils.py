#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Sampling and age-group helpers shared by the imputation and matrix code.
"""

import os
import logging

import numpy as np
import polars as pl

from ...errors import SchemaError, require_columns

logger = logging.getLogger(__name__)


def get_rng(seed=None):
    """
    Return a numpy Generator for `seed`.

    :param seed: an int seed, `None` (fresh entropy) or an existing
        :class:`numpy.random.Generator`, which is returned unchanged.
    """
    if isinstance(seed, np.random.Generator):
        return seed
    return np.random.default_rng(seed)


def zsample(x, size, rng, replace=True, p=None):
    """
    Sample `size` values from `x`.

    If `x` has a single element, that value is repeated `size` times
    whatever `replace` and `p` say. Every random draw made while imputing
    ages or bootstrapping goes through here.

    :param x: candidate values.
    :param size: number of values to return.
    :type size: int
    :param rng: the random number generator to use.
    :type rng: :class:`numpy.random.Generator`
    :param replace: sample with replacement.
    :param p: optional weights for `x`; normalised before sampling.
    :returns: numpy array of length `size`.
    """
    x = np.asarray(x)
    if len(x) == 1:
        return np.repeat(x, size)
    if p is not None:
        p = np.asarray(p, dtype=float)
        p = p / p.sum()
    return rng.choice(x, size=size, replace=replace, p=p)


def population_weights(ages, population_data):
    """
    Population totals to weight sampling of `ages`.

    Ages above the oldest age in `population_data` take the weight of the
    oldest age, so open-ended groups such as "70+" still get sampled.
    Ages missing below the maximum get weight 0.

    :param ages: sequence of integer ages.
    :param population_data: pl.DataFrame with `age` and `total`.
    :returns: numpy array of weights aligned with `ages`.
    """
    totals = dict(zip(population_data["age"].to_list(),
                      population_data["total"].to_list()))
    max_age = max(totals)
    return np.array([totals[max_age] if a > max_age else totals.get(a, 0)
                     for a in ages], dtype=float)


def sample_ages_in_ranges(bounds, population_data, rng):
    """
    Draw one population-weighted age per row of `bounds`.

    Rows sharing the same (age_low, age_high) pair are drawn together in a
    single call to :func:`zsample`. Pairs are visited in sorted order so the
    random stream is consumed the same way on every run.

    :param bounds: pl.DataFrame with `age_low` and `age_high`.
    :param population_data: pl.DataFrame with `age` and `total`.
    :param rng: random number generator.
    :returns: numpy int array aligned with the rows of `bounds`.
    """
    ages = np.zeros(bounds.height, dtype=np.int64)
    if bounds.height == 0:
        return ages
    groups = (bounds.select(pl.col("age_low").cast(pl.Int64),
                            pl.col("age_high").cast(pl.Int64))
              .with_row_index("row")
              .group_by("age_low", "age_high")
              .agg(pl.col("row"))
              .sort("age_low", "age_high"))
    for age_low, age_high, rows in groups.iter_rows():
        candidates = np.arange(age_low, age_high + 1)
        logger.debug("sampling %d ages in [%d, %d]", len(rows), age_low,
                     age_high)
        ages[rows] = zsample(candidates, len(rows), rng, replace=True,
                             p=population_weights(candidates,
                                                  population_data))
    return ages


def sample_population_ages(population_data, size, rng):
    """
    Draw `size` ages from the whole population distribution.
    """
    return zsample(population_data["age"].to_numpy(), size, rng,
                   replace=True, p=population_data["total"].to_numpy())


def age_group_table(rows):
    """
    Build an age-group table from `[name, age_low, age_high]` rows.

    Groups must have age_low <= age_high and must not overlap.

    :param rows: iterable of (name, age_low, age_high).
    :returns: pl.DataFrame with columns `name`, `age_low`, `age_high`.
    """
    rows = [tuple(r) for r in rows]
    age_groups = pl.DataFrame(rows, schema=[("name", pl.Utf8),
                                            ("age_low", pl.Int64),
                                            ("age_high", pl.Int64)],
                              orient="row")
    check_age_groups(age_groups)
    return age_groups


def check_age_groups(age_groups):
    """
    Raise :class:`SchemaError` if `age_groups` is not a valid partition.
    """
    require_columns(age_groups, ["name", "age_low", "age_high"],
                    "age_groups")
    bounded = age_groups.drop_nulls(["age_low", "age_high"])
    if bounded.filter(pl.col("age_low") > pl.col("age_high")).height:
        raise SchemaError("age_groups has age_low > age_high")
    ordered = bounded.sort("age_low")
    if ordered.height > 1 and (ordered["age_low"][1:].to_numpy() <=
                               ordered["age_high"][:-1].to_numpy()).any():
        raise SchemaError("age_groups overlap")


def age_group_expr(age_col, age_groups) -> pl.Expr:
    """
    Expression labelling `age_col` with the first age group containing it.

    Bounds are inclusive; ages outside every group get null.
    """
    bounded = age_groups.drop_nulls(["age_low", "age_high"])
    expr = None
    for name, age_low, age_high in bounded.select(
            "name", "age_low", "age_high").iter_rows():
        cond = pl.col(age_col).is_between(age_low, age_high, closed="both")
        if expr is None:
            expr = pl.when(cond).then(pl.lit(name))
        else:
            expr = expr.when(cond).then(pl.lit(name))
    if expr is None:
        return pl.lit(None, dtype=pl.Utf8)
    return expr.otherwise(pl.lit(None, dtype=pl.Utf8))


def create_path(path_name):
    """
    Create a path if it doesn't already exist.
    """
    os.makedirs(path_name, exist_ok=True)
