from collections import Counter

import numpy as np
import polars as pl
import pytest

from socialmix.errors import ConfigurationError
from socialmix.model.contacts.bootstrap import (bootstrap_contacts,
                                                bootstrap_participants,
                                                resample_contacts)
from socialmix.model.contacts.contact_ages import process_contacts


def test_no_bootstrap_is_single_imputation(range_contacts, population_data):
    result = bootstrap_contacts(range_contacts, None, population_data,
                                "sample_popdist", "sample_partdist",
                                bootstrap_samples=0,
                                rng=np.random.default_rng(11))
    expected = process_contacts(range_contacts, None, population_data,
                                "sample_popdist", "sample_partdist",
                                np.random.default_rng(11))
    assert len(result) == 1
    assert result[0].equals(expected)


def test_bootstrap_participants(participants, rng):
    sets = bootstrap_participants(participants, 4, rng)
    assert len(sets) == 4
    for part in sets:
        assert part.height == participants.height
        assert set(part["part_id"]) <= {1, 2, 3}
        assert part.columns == ["boot_id"] + participants.columns
        assert part["boot_id"].to_list() == list(range(participants.height))


def test_no_sample_filters_on_participants(contacts, participants,
                                           population_data, rng):
    sets = [participants.filter(pl.col("part_id").is_in(ids))
            for ids in ([1, 3], [2], [1, 1, 2])]
    result = bootstrap_contacts(contacts, None, population_data, "mean",
                                "remove", bootstrap_samples=3,
                                bootstrap_type="no_sample",
                                participants_bootstrapped_sets=sets, rng=rng)
    assert len(result) == 3
    for replicate, part in zip(result, sets):
        expected = contacts.filter(pl.col("part_id").is_in(part["part_id"]))
        assert sorted(replicate["cont_id"].to_list()) == \
            sorted(expected["cont_id"].to_list())


def test_bootstrap_all_keeps_size(contacts, population_data, rng):
    result = bootstrap_contacts(contacts, None, population_data, "mean",
                                "remove", bootstrap_samples=5,
                                bootstrap_type="bootstrap_all", rng=rng)
    assert len(result) == 5
    for replicate in result:
        assert replicate.height == contacts.height
        assert set(replicate["cont_id"]) <= set(contacts["cont_id"])


def test_participant_drawn_twice_gets_two_draws(contacts, rng):
    part = pl.DataFrame({"part_id": [2, 3, 2]})
    resampled = resample_contacts(contacts, "sample_participants_contacts",
                                  rng, part)
    assert Counter(resampled["part_id"].to_list()) == {2: 6, 3: 1}
    # one independent draw of participant 2's three contacts per row
    assert Counter(resampled["boot_id"].to_list()) == {0: 3, 1: 1, 2: 3}
    for boot_id in (0, 2):
        drawn = resampled.filter(pl.col("boot_id") == boot_id)
        assert set(drawn["part_id"]) == {2}
        assert set(drawn["cont_id"]) <= {3, 4, 5}


def test_participant_draws_follow_boot_ids(contacts, participants, rng):
    part = bootstrap_participants(participants, 1, rng)[0]
    resampled = resample_contacts(contacts, "sample_participants_contacts",
                                  rng, part)
    pairs = part.select("boot_id", "part_id")
    joined = resampled.join(pairs, on="boot_id", suffix="_drawn")
    assert joined.height == resampled.height
    assert (joined["part_id"] == joined["part_id_drawn"]).all()


def test_replicates_do_not_depend_on_workers(range_contacts,
                                             population_data):
    kwargs = dict(bootstrap_samples=3, bootstrap_type="bootstrap_all")
    serial = bootstrap_contacts(range_contacts, None, population_data,
                                "sample_uniform", "sample_popdist",
                                rng=np.random.default_rng(5), n_jobs=1,
                                **kwargs)
    parallel = bootstrap_contacts(range_contacts, None, population_data,
                                  "sample_uniform", "sample_popdist",
                                  rng=np.random.default_rng(5), n_jobs=2,
                                  **kwargs)
    assert all(a.equals(b) for a, b in zip(serial, parallel))


def test_participant_sets_required(contacts, population_data, rng):
    with pytest.raises(ConfigurationError):
        bootstrap_contacts(contacts, None, population_data, "mean", "remove",
                           bootstrap_samples=2, bootstrap_type="no_sample",
                           rng=rng)


def test_unknown_bootstrap_type(contacts, population_data, rng):
    with pytest.raises(ConfigurationError):
        bootstrap_contacts(contacts, None, population_data, "mean", "remove",
                           bootstrap_samples=2, bootstrap_type="jackknife",
                           rng=rng)
    with pytest.raises(ConfigurationError):
        bootstrap_contacts(contacts, None, population_data, "mean", "remove",
                           bootstrap_samples=-1, rng=rng)
