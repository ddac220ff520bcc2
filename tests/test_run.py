import os

import numpy as np
import pytest
import tables as tb

from socialmix import load_scenarios, run_scenario
from socialmix.data.scenario_configs.base_params import p as base_p
from socialmix.model.contacts.contact_matrix import ContactMatrix
from socialmix.model.observers.obs_matrix import MatrixObserver
from socialmix.model.run import go_single, go_sweep, MATRIX_FNAME
from socialmix.utils.param_combo import ParamComboIt


@pytest.fixture
def p(tmp_path):
    p = base_p.copy()
    p.update({
        'prefix': str(tmp_path / 'output'),
        'country_code': 'uk',
        'year': 2020,
        'contact_age_process': 'mean',
        'contact_age_unknown_process': 'remove',
        'age_groups': [['0-9', 0, 9], ['10-19', 10, 19]],
        'seed': 99,
    })
    return p


def test_end_to_end(p, contacts, participants, popdata):
    matrices = go_single(p, contacts, participants, popdata)
    assert len(matrices) == 1
    expected = [[1.0, 0.5 * (2 / 7 + 0.5)],
                [0.5 * (1 + 4 / 7), 9 / 7]]
    np.testing.assert_allclose(matrices[0].C, expected)
    assert matrices[0].age_groups == ['0-9', '10-19']


def test_bootstrap_replicates(p, range_contacts, participants, popdata):
    p.update({'bootstrap_samples': 3,
              'bootstrap_type': 'sample_participants_contacts',
              'contact_age_process': 'sample_popdist',
              'contact_age_unknown_process': 'sample_partdist'})
    first = go_single(p, range_contacts, participants, popdata)
    second = go_single(p, range_contacts, participants, popdata)
    assert len(first) == 3
    for a, b in zip(first, second):
        if a is None:
            assert b is None
        else:
            np.testing.assert_array_equal(a.C, b.C)


def test_save_and_reload(p, contacts, participants, popdata):
    p['save_matrices'] = True
    matrices = go_single(p, contacts, participants, popdata)
    fname = os.path.join(p['prefix'], MATRIX_FNAME)
    assert os.path.isfile(fname)
    with tb.open_file(fname, 'r') as h5file:
        assert h5file.get_node_attr('/params', 'complete') == 1
        assert h5file.get_node_attr('/params', 'contact_age_process') == \
            'mean'

    p['overwrite'] = False
    # population data is not needed when the matrices are loaded
    reloaded = go_single(p, contacts, participants, popdata=None)
    assert len(reloaded) == 1
    assert reloaded[0].age_groups == matrices[0].age_groups
    np.testing.assert_array_equal(reloaded[0].C, matrices[0].C)


def test_matrix_observer(tmp_path):
    fname = str(tmp_path / 'matrices.hd5')
    with tb.open_file(fname, 'w') as h5file:
        observer = MatrixObserver(h5file, ['a', 'b'])
        observer.update(0, cmatrix=ContactMatrix([[1, 2], [3, np.nan]],
                                                 ['a', 'b']))
        observer.update(1, cmatrix=None)
    with tb.open_file(fname, 'r') as h5file:
        matrices = MatrixObserver(h5file, []).get_matrices()
    assert matrices[1] is None
    assert matrices[0].age_groups == ['a', 'b']
    np.testing.assert_array_equal(matrices[0].C, [[1, 2], [3, np.nan]])


def test_param_combos(p):
    p['num_runs'] = 2
    sweep = [{'name': 'symmetric_matrix', 'values': [True, False]},
             {'name': 'weight_dayofweek', 'values': [True]}]
    combos = list(ParamComboIt(p, sweep))
    assert len(combos) == len(ParamComboIt(p, sweep)) == 4
    assert [c['symmetric_matrix'] for c in combos] == [True, True,
                                                        False, False]
    assert combos[0]['seed'] == combos[2]['seed']
    assert combos[0]['seed'] != combos[1]['seed']
    assert combos[1]['prefix'] == os.path.join(
        p['prefix'], 'params_symmetric_matrix=True_weight_dayofweek=True',
        'seed_1')
    assert [c['seed'] for c in ParamComboIt(p, sweep)] == \
        [c['seed'] for c in combos]


def test_go_sweep(p, contacts, participants, popdata):
    sweep = [{'name': 'symmetric_matrix', 'values': [True, False]}]
    results = go_sweep(p, sweep, contacts, participants, popdata)
    assert len(results) == 2
    (p_sym, sym), (p_raw, raw) = results
    assert p_sym['symmetric_matrix'] and not p_raw['symmetric_matrix']
    np.testing.assert_allclose(raw[0].C, [[1, 2 / 7], [1, 9 / 7]])
    assert not np.allclose(sym[0].C, raw[0].C)


def test_scenarios(tmp_path, contacts, participants, popdata):
    toml_file = tmp_path / 'scenarios.toml'
    toml_file.write_text(
        '[scenarios.raw]\n'
        '[scenarios.raw.parameters]\n'
        'contact_age_process = "mean"\n'
        'return_raw_matrix = true\n'
        'age_groups = [["0-9", 0, 9], ["10-19", 10, 19]]\n'
        '[scenarios.unweighted]\n'
        '[scenarios.unweighted.parameters]\n'
        'weight_dayofweek = false\n'
        'symmetric_matrix = false\n'
        'age_groups = [["0-9", 0, 9], ["10-19", 10, 19]]\n')
    scenarios = load_scenarios(str(toml_file))
    assert set(scenarios) == {'raw', 'unweighted'}

    raw = run_scenario(scenarios['raw'], contacts, participants, popdata)
    np.testing.assert_allclose(raw[0].C, [[1, 2 / 7], [1, 9 / 7]])
    unweighted = run_scenario(scenarios['unweighted'], contacts,
                              participants, popdata)
    np.testing.assert_allclose(unweighted[0].C, [[1, 0.5], [1, 1.5]])
