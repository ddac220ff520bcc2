#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Imputation of contact ages.

Survey contacts come with an exact age, an estimated range or no age at
all. :func:`process_contacts` resolves a point estimate `age_est` for each
contact so it can later be placed in an age group.
"""

import logging

import numpy as np
import polars as pl

from ...errors import ConfigurationError, SchemaError, require_columns
from ..population.utils import (get_rng, zsample, sample_ages_in_ranges,
                                sample_population_ages)

logger = logging.getLogger(__name__)

CONTACT_AGE_PROCESSES = ("mean", "sample_uniform", "sample_popdist")
CONTACT_AGE_UNKNOWN_PROCESSES = ("sample_partdist", "sample_popdist",
                                 "remove")
RAW_AGE_COLUMNS = ("cnt_age_exact", "cnt_age_est_min", "cnt_age_est_max")


def check_processes(contact_age_process, contact_age_unknown_process):
    if contact_age_process not in CONTACT_AGE_PROCESSES:
        raise ConfigurationError(
            "unknown contact_age_process %r, expected one of %s" % (
                contact_age_process, ", ".join(CONTACT_AGE_PROCESSES)))
    if contact_age_unknown_process not in CONTACT_AGE_UNKNOWN_PROCESSES:
        raise ConfigurationError(
            "unknown contact_age_unknown_process %r, expected one of %s" % (
                contact_age_unknown_process,
                ", ".join(CONTACT_AGE_UNKNOWN_PROCESSES)))


def set_age_bounds(contact_data, contact_data_age_groups=None):
    """
    Add `age_low`, `age_high` and an initial `age_est` to contacts.

    Without an age-group table the bounds come from `cnt_age_exact` or, if
    that is missing, from `cnt_age_est_min`/`cnt_age_est_max`; a range with
    only one bound counts as unknown. With an age-group table, contacts are
    joined on `cnt_age` == `name` and contacts whose label is not in the
    table are dropped.

    `age_est` is set where the bounds coincide and left null otherwise.
    """
    if contact_data_age_groups is None:
        if any(c not in contact_data.columns for c in RAW_AGE_COLUMNS):
            raise SchemaError(
                "Don't know how to process these contacts: need an age-group "
                "table or columns %s" % ", ".join(RAW_AGE_COLUMNS))
        exact = pl.col("cnt_age_exact")
        est_min = pl.col("cnt_age_est_min")
        est_max = pl.col("cnt_age_est_max")
        both_bounds = est_min.is_not_null() & est_max.is_not_null()
        contact_data = contact_data.with_columns(
            age_low=pl.when(exact.is_not_null()).then(exact)
                      .when(both_bounds).then(est_min)
                      .otherwise(None).cast(pl.Int64),
            age_high=pl.when(exact.is_not_null()).then(exact)
                       .when(both_bounds).then(est_max)
                       .otherwise(None).cast(pl.Int64),
        )
    else:
        require_columns(contact_data, ["cnt_age"], "contact_data")
        require_columns(contact_data_age_groups,
                        ["name", "age_low", "age_high"],
                        "contact_data_age_groups")
        contact_data = contact_data.drop(
            [c for c in ("age_low", "age_high", "age_est")
             if c in contact_data.columns])
        groups = contact_data_age_groups.select(
            pl.col("name").cast(contact_data.schema["cnt_age"]),
            pl.col("age_low").cast(pl.Int64),
            pl.col("age_high").cast(pl.Int64))
        contact_data = contact_data.join(groups, left_on="cnt_age",
                                         right_on="name", how="inner")

    return contact_data.with_columns(
        age_est=pl.when(pl.col("age_low") == pl.col("age_high"))
                  .then(pl.col("age_low"))
                  .otherwise(None).cast(pl.Int64))


def _impute_known(contacts_age_known, population_data, contact_age_process,
                  rng):
    """
    Resolve `age_est` for contacts with a known range.
    """
    resolved = contacts_age_known.filter(pl.col("age_est").is_not_null())
    unresolved = contacts_age_known.filter(pl.col("age_est").is_null())
    if unresolved.height == 0:
        return contacts_age_known

    if contact_age_process == "mean":
        # numpy rounds half to even
        mid = ((unresolved["age_low"] + unresolved["age_high"]) / 2).to_numpy()
        age_est = np.round(mid).astype(np.int64)
    elif contact_age_process == "sample_uniform":
        age_est = np.zeros(unresolved.height, dtype=np.int64)
        groups = (unresolved.select("age_low", "age_high")
                  .with_row_index("row")
                  .group_by("age_low", "age_high")
                  .agg(pl.col("row"))
                  .sort("age_low", "age_high"))
        for age_low, age_high, rows in groups.iter_rows():
            age_est[rows] = zsample(np.arange(age_low, age_high + 1),
                                    len(rows), rng, replace=True)
    else:
        age_est = sample_ages_in_ranges(unresolved, population_data, rng)

    unresolved = unresolved.with_columns(
        age_est=pl.Series("age_est", age_est, dtype=pl.Int64))
    return pl.concat([resolved, unresolved])


def _impute_unknown(contacts_age_unknown, contacts_age_known,
                    population_data, contact_age_unknown_process, rng):
    """
    Resolve `age_est` for contacts without any age information.
    """
    if contact_age_unknown_process == "remove":
        return contacts_age_unknown.clear()
    if contacts_age_unknown.height == 0:
        return contacts_age_unknown

    if contact_age_unknown_process == "sample_popdist":
        age_est = sample_population_ages(population_data,
                                         contacts_age_unknown.height, rng)
        return contacts_age_unknown.with_columns(
            age_est=pl.Series("age_est", age_est, dtype=pl.Int64))

    # sample_partdist: borrow the age range of one of the participant's
    # own known-age contacts, then sample an age within it
    contacts_age_unknown = contacts_age_unknown.with_row_index("_row")
    age_est = np.zeros(contacts_age_unknown.height, dtype=np.int64)

    known_bounds = (contacts_age_known
                    .group_by("part_id")
                    .agg(pl.col("age_low"), pl.col("age_high")))
    per_part = (contacts_age_unknown
                .group_by("part_id")
                .agg(pl.col("_row"))
                .join(known_bounds, on="part_id", how="left")
                .sort("part_id"))

    borrowed_rows, borrowed_low, borrowed_high = [], [], []
    no_known_rows = []
    for rows, lows, highs in per_part.select(
            "_row", "age_low", "age_high").iter_rows():
        if lows:
            picked = zsample(np.arange(len(lows)), len(rows), rng,
                             replace=True)
            borrowed_rows.extend(rows)
            borrowed_low.extend(lows[i] for i in picked)
            borrowed_high.extend(highs[i] for i in picked)
        else:
            no_known_rows.extend(rows)

    if borrowed_rows:
        bounds = pl.DataFrame({"age_low": borrowed_low,
                               "age_high": borrowed_high},
                              schema={"age_low": pl.Int64,
                                      "age_high": pl.Int64})
        age_est[borrowed_rows] = sample_ages_in_ranges(bounds,
                                                       population_data, rng)
    if no_known_rows:
        age_est[no_known_rows] = sample_population_ages(
            population_data, len(no_known_rows), rng)

    return (contacts_age_unknown
            .with_columns(age_est=pl.Series("age_est", age_est,
                                            dtype=pl.Int64))
            .drop("_row"))


def process_contacts(contact_data, contact_data_age_groups, population_data,
                     contact_age_process, contact_age_unknown_process, rng):
    """
    Impute a point age `age_est` for every contact.

    :param contact_data: contacts with `part_id` and either `cnt_age` or
        `cnt_age_exact`, `cnt_age_est_min`, `cnt_age_est_max`.
    :type contact_data: pl.DataFrame
    :param contact_data_age_groups: `name`, `age_low`, `age_high` of the
        age-group labels used in `cnt_age`, or `None` to use the raw columns.
    :param population_data: population by age (from `get_popdata`).
    :param contact_age_process: how known ranges are resolved; one of
        'mean', 'sample_uniform', 'sample_popdist'.
    :param contact_age_unknown_process: how unknown ages are resolved; one
        of 'sample_partdist', 'sample_popdist', 'remove'.
    :param rng: random number generator.
    :type rng: :class:`numpy.random.Generator`
    :returns: pl.DataFrame of contacts with known ages first, then the
        formerly unknown ones.
    """
    check_processes(contact_age_process, contact_age_unknown_process)
    rng = get_rng(rng)
    contact_data = set_age_bounds(contact_data, contact_data_age_groups)

    contacts_age_known = contact_data.filter(pl.col("age_low").is_not_null())
    contacts_age_unknown = contact_data.filter(pl.col("age_low").is_null())
    logger.debug("%d contacts with known age range, %d unknown",
                 contacts_age_known.height, contacts_age_unknown.height)

    contacts_age_known = _impute_known(contacts_age_known, population_data,
                                       contact_age_process, rng)
    contacts_age_unknown = _impute_unknown(contacts_age_unknown,
                                           contacts_age_known,
                                           population_data,
                                           contact_age_unknown_process, rng)
    return pl.concat([contacts_age_known, contacts_age_unknown])
