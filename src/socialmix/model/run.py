#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Run the full pipeline, from survey tables to contact matrices, for one
parameter set.
"""

import os
import json
import logging

import numpy as np
import tables as tb

from .population.population import get_popdata, load_popdata
from .population.participant_ages import sample_age_child_participants
from .population.utils import age_group_table, create_path
from .contacts.bootstrap import bootstrap_contacts, bootstrap_participants
from .contacts.contact_matrix import calculate_matrix
from .observers.obs_matrix import MatrixObserver
from ..utils.param_combo import ParamComboIt

logger = logging.getLogger(__name__)

MATRIX_FNAME = 'contact_matrices.hd5'


def _store_params(h5file, p):
    """
    Store parameters in the output file and mark it as incomplete.
    """
    if '/params' not in h5file:
        h5file.create_group('/', 'params', 'Parameters')
    for k, v in list(p.items()):
        if v is None:
            continue
        # rhdf5 has problems reading boolean values, therefore write as 0/1
        if type(v) is bool:
            v = 1 if v else 0
        elif isinstance(v, (list, tuple, dict)):
            v = json.dumps(v)
        h5file.set_node_attr('/params', k, v)
    h5file.set_node_attr('/params', 'complete', 0)
    h5file.flush()


def _is_complete(h5file):
    return '/params' in h5file and \
        h5file.get_node_attr('/params', 'complete') == 1


def load_matrices(fname):
    """
    Load matrices from a completed output file, or `None` if the file is
    missing or incomplete.
    """
    if not os.path.isfile(fname) or not tb.is_pytables_file(fname):
        return None
    with tb.open_file(fname, 'r') as h5file:
        if not _is_complete(h5file):
            return None
        return MatrixObserver(h5file, []).get_matrices()


def save_matrices(fname, p, matrices, age_groups):
    """
    Write parameters and one matrix per replicate to `fname`.
    """
    with tb.open_file(fname, 'w') as h5file:
        _store_params(h5file, p)
        observer = MatrixObserver(h5file, age_groups)
        for replicate, cmatrix in enumerate(matrices):
            observer.update(replicate, cmatrix=cmatrix)
        h5file.set_node_attr('/params', 'complete', 1)


def go_single(p, contacts, participants, popdata=None,
              contact_data_age_groups=None, cur_seed=None, verbose=False):
    """
    Build the contact matrices for one parameter set (or load them if
    previously built).

    :param p: The parameters, see `base_params.p`.
    :type p: dict
    :param contacts: contacts table of the survey wave.
    :type contacts: pl.DataFrame
    :param participants: participants table of the survey wave.
    :type participants: pl.DataFrame
    :param popdata: population store; read from
        `p['resource_prefix']/p['popdata']` if not given.
    :param contact_data_age_groups: age-group table for `cnt_age` labels,
        `None` to use the raw contact age columns.
    :param cur_seed: Random seed for the run, `p['seed']` if not given.
    :param verbose: Flag to log progress at info level.
    :returns: list of :class:`ContactMatrix` (or `None` for replicates
        without data), one per bootstrap replicate.
    """
    if cur_seed is None:
        cur_seed = p['seed']
    age_groups = age_group_table(p['age_groups'])
    names = age_groups['name'].to_list()

    fname = os.path.join(p['prefix'], MATRIX_FNAME)
    if p['save_matrices'] and not p['overwrite']:
        matrices = load_matrices(fname)
        if matrices is not None:
            if verbose:
                logger.info("@@_go_single: loading existing matrices "
                            "(seed=%s)...", cur_seed)
            return matrices

    if verbose:
        logger.info("@@_go_single: building contact matrices (seed=%s)...",
                    cur_seed)
    rng = np.random.default_rng(cur_seed)
    if popdata is None:
        popdata = load_popdata(os.path.join(p['resource_prefix'],
                                            p['popdata']))
    population_data = get_popdata(popdata, p['country_code'], p['iso3'],
                                  p['year'])

    if p['impute_participant_ages']:
        participants = sample_age_child_participants(participants,
                                                     population_data, rng)

    participants_sets = None
    if p['bootstrap_samples'] > 0 and p['bootstrap_type'] != 'bootstrap_all':
        participants_sets = bootstrap_participants(
            participants, p['bootstrap_samples'], rng)

    contact_sets = bootstrap_contacts(
        contacts, contact_data_age_groups, population_data,
        p['contact_age_process'], p['contact_age_unknown_process'],
        bootstrap_samples=p['bootstrap_samples'],
        bootstrap_type=p['bootstrap_type'],
        participants_bootstrapped_sets=participants_sets,
        rng=rng, n_jobs=p['n_jobs'])

    matrices = []
    for x, replicate in enumerate(contact_sets):
        part = participants if participants_sets is None \
            else participants_sets[x]
        matrices.append(calculate_matrix(
            replicate, part, population_data, age_groups,
            weight_dayofweek=p['weight_dayofweek'],
            use_reciprocal_for_missing=p['use_reciprocal_for_missing'],
            symmetric_matrix=p['symmetric_matrix'],
            return_raw_matrix=p['return_raw_matrix']))

    if p['save_matrices']:
        create_path(p['prefix'])
        save_matrices(fname, p, matrices, names)
    if verbose:
        logger.info("\t... contact matrices DONE! (seed=%s)...", cur_seed)
    return matrices


def go_sweep(p, sweep_params, contacts, participants, popdata=None,
             contact_data_age_groups=None, verbose=False):
    """
    Run :func:`go_single` for every combination in `sweep_params` and every
    seed (see :class:`ParamComboIt`).

    :returns: list of (parameters, matrices) tuples.
    """
    results = []
    for cur_p in ParamComboIt(p, sweep_params):
        if verbose:
            logger.info(cur_p['prefix'])
        results.append((cur_p, go_single(
            cur_p, contacts, participants, popdata=popdata,
            contact_data_age_groups=contact_data_age_groups,
            verbose=verbose)))
    return results
