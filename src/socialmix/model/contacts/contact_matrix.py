#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Construction of age-structured contact matrices from survey contacts.

Matrices are indexed [contact age group, participant age group]: cell
(i, j) is the average number of daily contacts a participant in group j
reports with someone in group i.
"""

import logging
import warnings

import numpy as np
import pandas as pd
import polars as pl

from ...errors import EmptyInputWarning, require_columns
from ..population.utils import age_group_expr, check_age_groups
from .bootstrap import BOOT_KEY

logger = logging.getLogger(__name__)

# weights for weekdays, needs to be adapted for countries where Friday and
# Saturday is the weekend
WEEKDAY_WEIGHTS = {
    "Monday": 5,
    "Tuesday": 5,
    "Wednesday": 5,
    "Thursday": 5,
    "Friday": 5,
    "Saturday": 2,
    "Sunday": 2,
}


class ContactMatrix(object):
    """
    A square contact matrix together with its age-group labels.

    :param givenmatrix: n x n array, rows are contact age groups and
        columns participant age groups; NaN marks a missing cell.
    :param age_groups: the n age-group names, in matrix order.
    """
    def __init__(self, givenmatrix, age_groups):
        self.C = np.asarray(givenmatrix, dtype=float)
        self.age_groups = list(age_groups)
        if self.C.shape != (len(self.age_groups), len(self.age_groups)):
            raise ValueError("matrix of shape %s does not match %d age groups"
                             % (self.C.shape, len(self.age_groups)))

    def __repr__(self):
        return "ContactMatrix(age_groups=%s)\n%s" % (self.age_groups, self.C)

    def to_pandas(self):
        """Matrix as a pd.DataFrame labelled by age group."""
        return pd.DataFrame(
            self.C,
            index=pd.Index(self.age_groups, name="contact_age_group"),
            columns=pd.Index(self.age_groups, name="participant_age_group"))

    def to_long(self, study=None):
        """
        Matrix in long format, one row per (participant, contact) pair.

        :param study: optional label stored in a `study` column, e.g. the
            survey wave, so several matrices can be stacked.
        :returns: pl.DataFrame with `participant_age`, `contact_age`,
            `contacts` (null for missing cells) and `study`.
        """
        n = len(self.age_groups)
        return pl.DataFrame({
            "participant_age": np.repeat(self.age_groups, n).tolist(),
            "contact_age": np.tile(self.age_groups, n).tolist(),
            "contacts": self.C.T.reshape(-1),
            "study": pl.Series("study", [study] * (n * n), dtype=pl.Utf8),
        }).with_columns(pl.col("contacts").fill_nan(None))

    def is_reciprocal(self, group_population, rtol=1e-9):
        """
        Check that total contacts between two groups match in both
        directions, i.e. C[i, j] * pop[j] == C[j, i] * pop[i].
        """
        pop = np.asarray(group_population, dtype=float)
        total = self.C * pop[np.newaxis, :]
        return bool(np.allclose(total, total.T, rtol=rtol, equal_nan=True))


def age_group_population(population_data, age_groups):
    """
    Total population in each age group's [age_low, age_high] range.

    :returns: numpy array aligned with the rows of `age_groups`.
    """
    return np.array([
        population_data
        .filter(pl.col("age").is_between(age_low, age_high, closed="both"))
        ["total"].sum()
        for age_low, age_high in age_groups.select("age_low", "age_high")
                                            .iter_rows()], dtype=float)


def assign_age_groups(frame, age_col, age_groups, group_col):
    """
    Label each row of `frame` with the first age group containing
    `age_col`; ages outside every group are left null.
    """
    return frame.with_columns(
        age_group_expr(age_col, age_groups).alias(group_col))


def _count_matrix(data, names):
    index = {name: k for k, name in enumerate(names)}
    counts = np.zeros((len(names), len(names)))
    for contact_group, participant_group, n in (
            data.group_by("contact_age_group", "participant_age_group")
                .agg(pl.len()).iter_rows()):
        counts[index[contact_group], index[participant_group]] += n
    return counts


def _count_participants(data, names):
    index = {name: k for k, name in enumerate(names)}
    counts = np.zeros(len(names))
    for participant_group, n in (data.group_by("participant_age_group")
                                     .agg(pl.len()).iter_rows()):
        counts[index[participant_group]] += n
    return counts


def fill_reciprocal(matrix):
    """
    Fill missing cells [i, j] with [j, i]; a single pass.
    """
    imputed = np.array(matrix, dtype=float)
    missing = np.isnan(imputed)
    imputed[missing] = imputed.T[missing]
    return imputed


def symmetrize_matrix(matrix, group_population):
    """
    Adjust a matrix for the population size of each age group.

    Returns 0.5 * (M[i, j] + M[j, i] * pop[i] / pop[j]), after which the
    total number of contacts from group j to group i equals the total from
    group i to group j.
    """
    matrix = np.asarray(matrix, dtype=float)
    pop = np.asarray(group_population, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        # popmat[i, j] = pop[j] / pop[i]
        popmat = pop[np.newaxis, :] / pop[:, np.newaxis]
        return 0.5 * (matrix + matrix.T * popmat.T)


def calculate_matrix(contacts, participants, population_data, age_groups,
                     weight_dayofweek=True, use_reciprocal_for_missing=False,
                     symmetric_matrix=True, return_raw_matrix=False):
    """
    Calculate a contact matrix.

    :param contacts: imputed contacts with `part_id`, `age_est` and
        (optionally) `weekday`. Contacts and participants are matched on
        `boot_id` when both tables have it, on `part_id` otherwise.
    :type contacts: pl.DataFrame
    :param participants: participants with `part_id`, `part_age` and
        `weekday`.
    :type participants: pl.DataFrame
    :param population_data: population by age at the time of the survey.
    :param age_groups: `name`, `age_low`, `age_high` of the model age groups.
    :param weight_dayofweek: weight weekdays by 5 and weekend days by 2.
    :param use_reciprocal_for_missing: fill missing cells with their
        transpose.
    :param symmetric_matrix: adjust for the population of each age group.
    :param return_raw_matrix: return the unadjusted matrix straight away.
    :returns: :class:`ContactMatrix`, or `None` (with an
        :class:`EmptyInputWarning`) if contacts or participants are empty.
    """
    if contacts.height == 0:
        warnings.warn("contacts dataset is empty", EmptyInputWarning)
        return None
    if participants.height == 0:
        warnings.warn("participants dataset is empty", EmptyInputWarning)
        return None

    require_columns(contacts, ["part_id", "age_est"], "contacts")
    require_columns(participants, ["part_id", "part_age", "weekday"],
                    "participants")
    check_age_groups(age_groups)
    age_groups = age_groups.drop_nulls(["age_low", "age_high"])
    names = age_groups["name"].to_list()

    # assign age-groups to participants and contacts
    participants = assign_age_groups(participants, "part_age", age_groups,
                                     "participant_age_group")
    contacts = assign_age_groups(contacts, "age_est", age_groups,
                                 "contact_age_group")
    # bootstrap replicates pair every drawn participant with its own contacts
    key = BOOT_KEY if BOOT_KEY in contacts.columns and \
        BOOT_KEY in participants.columns else "part_id"
    part_cols = [key, "participant_age_group"]
    if "weekday" not in contacts.columns:
        part_cols.append("weekday")
    contacts = (contacts
                .drop([c for c in ("participant_age_group",)
                       if c in contacts.columns])
                .join(participants.select(part_cols), on=key, how="inner"))
    if contacts.height == 0:
        warnings.warn("contacts dataset is empty", EmptyInputWarning)
        return None

    contacts = contacts.drop_nulls(["contact_age_group",
                                    "participant_age_group"])
    participants = participants.drop_nulls(["participant_age_group"])

    # one matrix per weight so weekday and weekend contacts combine
    # correctly
    total_contacts = np.zeros((len(names), len(names)))
    n = np.zeros(len(names))
    for w in sorted(set(WEEKDAY_WEIGHTS.values()), reverse=True):
        days = [d for d, dw in WEEKDAY_WEIGHTS.items() if dw == w]
        if not weight_dayofweek:
            w = 1
        total_contacts += _count_matrix(
            contacts.filter(pl.col("weekday").is_in(days)), names) * w
        n += _count_participants(
            participants.filter(pl.col("weekday").is_in(days)), names) * w
    logger.debug("weighted participants per age group: %s", n)

    # average number of daily contacts between participants in age group j
    # and contacts in age group i
    with np.errstate(divide="ignore", invalid="ignore"):
        raw_contact_matrix = total_contacts / n[np.newaxis, :]
    raw_contact_matrix[:, n == 0] = np.nan

    if return_raw_matrix:
        return ContactMatrix(raw_contact_matrix, names)

    imputed_contact_matrix = raw_contact_matrix
    if use_reciprocal_for_missing:
        imputed_contact_matrix = fill_reciprocal(imputed_contact_matrix)

    # adjust for age-population, which may be different in our sample
    if symmetric_matrix:
        group_population = age_group_population(population_data, age_groups)
        return ContactMatrix(symmetrize_matrix(imputed_contact_matrix,
                                               group_population), names)
    return ContactMatrix(imputed_contact_matrix, names)
