#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Bootstrap resampling of survey contacts and participants.

:func:`bootstrap_contacts` resamples the contact table once per replicate
and runs every replicate through :func:`process_contacts`. Replicates are
independent, each gets its own generator seeded from the caller's one, so
the result is the same whether they run in one process or several.
"""

import logging

import numpy as np
import polars as pl
from joblib import Parallel, delayed

from ...errors import ConfigurationError, require_columns
from ..population.utils import get_rng, zsample
from .contact_ages import process_contacts, check_processes

logger = logging.getLogger(__name__)

BOOTSTRAP_TYPES = ("bootstrap_all", "sample_participants_contacts",
                   "no_sample")
# row of a participant within a bootstrap replicate
BOOT_KEY = "boot_id"


def _take_rows(df, rows):
    return df.select(pl.all().gather(pl.Series("rows", rows,
                                               dtype=pl.Int64)))


def bootstrap_participants(participants, bootstrap_samples, rng):
    """
    Resample participants with replacement.

    :param participants: participants table.
    :type participants: pl.DataFrame
    :param bootstrap_samples: number of replicates.
    :param rng: random number generator.
    :returns: list of `bootstrap_samples` pl.DataFrames, each as long as
        `participants` and with a leading `boot_id` row number.
    """
    rng = get_rng(rng)
    n = participants.height
    return [_take_rows(participants, zsample(np.arange(n), n, rng,
                                             replace=True))
            .with_row_index(BOOT_KEY)
            for _ in range(bootstrap_samples)]


def resample_contacts(contact_data, bootstrap_type, rng,
                      participants_set=None):
    """
    Resample contacts for one bootstrap replicate.

    'bootstrap_all' draws contact rows with replacement regardless of
    participant, so the number of contacts per participant can change.
    'sample_participants_contacts' redraws each participant's own contacts
    with replacement for every row of `participants_set`, so a participant
    drawn twice gets two independent draws. The draws are tagged with the
    row's `boot_id` (the row number when the set has no such column).
    'no_sample' only keeps contacts of participants in `participants_set`.

    :param contact_data: contacts table with `part_id`.
    :param bootstrap_type: one of :data:`BOOTSTRAP_TYPES`.
    :param rng: random number generator.
    :param participants_set: the replicate's participants, needed for
        every type but 'bootstrap_all'.
    :returns: pl.DataFrame
    """
    if bootstrap_type == "bootstrap_all":
        n = contact_data.height
        return _take_rows(contact_data, zsample(np.arange(n), n, rng,
                                                replace=True))

    require_columns(participants_set, ["part_id"], "participants_set")
    if bootstrap_type == "sample_participants_contacts":
        grouped = (contact_data
                   .with_row_index("_row")
                   .group_by("part_id")
                   .agg(pl.col("_row")))
        rows_by_part = dict(zip(grouped["part_id"].to_list(),
                                grouped["_row"].to_list()))
        if BOOT_KEY not in participants_set.columns:
            participants_set = participants_set.with_row_index(BOOT_KEY)
        rows, boot_ids = [], []
        for boot_id, part_id in participants_set.select(
                BOOT_KEY, "part_id").iter_rows():
            part_rows = rows_by_part.get(part_id)
            if part_rows:
                rows.extend(zsample(part_rows, len(part_rows), rng,
                                    replace=True).tolist())
                boot_ids.extend([boot_id] * len(part_rows))
        return _take_rows(contact_data, rows).with_columns(
            pl.Series(BOOT_KEY, boot_ids,
                      dtype=participants_set.schema[BOOT_KEY]))

    if bootstrap_type == "no_sample":
        return contact_data.filter(
            pl.col("part_id").is_in(participants_set["part_id"].unique()))

    raise ConfigurationError("unknown bootstrap_type %r, expected one of %s"
                             % (bootstrap_type, ", ".join(BOOTSTRAP_TYPES)))


def _bootstrap_replicate(contact_data, contact_data_age_groups,
                         population_data, contact_age_process,
                         contact_age_unknown_process, bootstrap_type,
                         participants_set, seed):
    rng = np.random.default_rng(seed)
    resampled = resample_contacts(contact_data, bootstrap_type, rng,
                                  participants_set)
    return process_contacts(resampled, contact_data_age_groups,
                            population_data, contact_age_process,
                            contact_age_unknown_process, rng)


def bootstrap_contacts(contact_data, contact_data_age_groups,
                       population_data, contact_age_process,
                       contact_age_unknown_process, bootstrap_samples=0,
                       bootstrap_type="bootstrap_all",
                       participants_bootstrapped_sets=None, rng=None,
                       n_jobs=1):
    """
    Impute contact ages, optionally over bootstrap replicates.

    :param contact_data: contacts table.
    :param contact_data_age_groups: see :func:`process_contacts`.
    :param population_data: population by age.
    :param contact_age_process: see :func:`process_contacts`.
    :param contact_age_unknown_process: see :func:`process_contacts`.
    :param bootstrap_samples: number of replicates; 0 imputes the original
        contacts once.
    :param bootstrap_type: one of :data:`BOOTSTRAP_TYPES`.
    :param participants_bootstrapped_sets: list of participant tables, one
        per replicate (see :func:`bootstrap_participants`).
    :param rng: random number generator or seed. Besides the draws made
        through :func:`zsample`, it supplies one integer seed per replicate,
        and every draw inside a replicate goes through :func:`zsample` on the
        generator built from that seed.
    :param n_jobs: number of joblib workers for the replicates.
    :returns: list of imputed contact tables, one per replicate (a single
        table when `bootstrap_samples` is 0).
    """
    check_processes(contact_age_process, contact_age_unknown_process)
    rng = get_rng(rng)

    if bootstrap_samples < 0:
        raise ConfigurationError("bootstrap_samples must be >= 0, got %s"
                                 % bootstrap_samples)
    if bootstrap_samples == 0:
        return [process_contacts(contact_data, contact_data_age_groups,
                                 population_data, contact_age_process,
                                 contact_age_unknown_process, rng)]

    if bootstrap_type not in BOOTSTRAP_TYPES:
        raise ConfigurationError(
            "unknown bootstrap_type %r, expected one of %s" % (
                bootstrap_type, ", ".join(BOOTSTRAP_TYPES)))
    if bootstrap_type == "bootstrap_all":
        participants_bootstrapped_sets = [None] * bootstrap_samples
    elif participants_bootstrapped_sets is None or \
            len(participants_bootstrapped_sets) < bootstrap_samples:
        raise ConfigurationError(
            "bootstrap_type %r needs one participant set per bootstrap "
            "sample" % bootstrap_type)

    logger.info("bootstrapping contact dataset: %d samples (%s)",
                bootstrap_samples, bootstrap_type)
    seeds = rng.integers(0, 2**32 - 1, size=bootstrap_samples)
    return Parallel(n_jobs=n_jobs)(
        delayed(_bootstrap_replicate)(
            contact_data, contact_data_age_groups, population_data,
            contact_age_process, contact_age_unknown_process,
            bootstrap_type, participants_bootstrapped_sets[x], seeds[x])
        for x in range(bootstrap_samples))
