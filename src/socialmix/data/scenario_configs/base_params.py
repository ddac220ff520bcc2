#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Base parameters for building contact matrices from a survey wave.

Copy `p` and override entries per run; it is never modified in place by
the package.
"""

p = {
    # directories
    'resource_prefix': 'data/',
    'prefix': 'output/',

    # population data
    'popdata': 'unwpp_data.parquet',
    'country_code': 'uk',
    'iso3': None,
    'year': 2020,

    # contact age imputation
    'contact_age_process': 'sample_popdist',
    'contact_age_unknown_process': 'sample_partdist',
    'impute_participant_ages': True,

    # bootstrap
    'bootstrap_samples': 0,
    'bootstrap_type': 'sample_participants_contacts',
    'n_jobs': 1,

    # matrix
    'weight_dayofweek': True,
    'use_reciprocal_for_missing': False,
    'symmetric_matrix': True,
    'return_raw_matrix': False,
    'age_groups': [
        ['0-4', 0, 4],
        ['5-11', 5, 11],
        ['12-17', 12, 17],
        ['18-29', 18, 29],
        ['30-39', 30, 39],
        ['40-49', 40, 49],
        ['50-59', 50, 59],
        ['60-69', 60, 69],
        ['70+', 70, 120],
    ],

    # seeds and runs
    'random_seed': False,
    'seed': 1234,
    'num_runs': 1,

    # output
    'save_matrices': False,
    'overwrite': True,
}
