import os

from random import Random
from itertools import product


class ParamComboIt(object):
    """
    An iterator object for parameter sweeps.  Generates dictionaries containing
    unique combinations of parameter values and random seeds.

    Every combination is run with the same `p['num_runs']` seeds, so
    differences between combinations are not down to sampling noise.

    :param p: The base parameters
    :type p: dict
    :param p_values: A list of dictionaries containing parameters and values to sweep over
    :type p_values: list
    """

    def __init__(self, p, p_values, start_seed_index=0):
        self.p = p
        # create a RNG for seeds (we will use same seeds for each param combo)
        seed_rng = Random() if p['random_seed'] else Random(
            p['seed'] + start_seed_index * 99)
        self.seeds = [seed_rng.randint(0, 99999999)
                      for _ in range(p['num_runs'])]

        self.base_prefix = p['prefix']
        self.p_values = p_values
        # generate all necessary parameter combinations (indexed by sample_ID)
        self.combos = [a for a in product(*[list(range(len(x['values'])))
                                            for x in p_values])]

        self.combo_index = 0
        self.start_seed_index = start_seed_index
        self.seed_index = self.start_seed_index

    def __iter__(self):
        return self

    def __len__(self):
        return len(self.combos) * len(self.seeds)

    def __next__(self):
        """
        Get the next parameter combination object.

        :returns: parameter combination object (dictionary).
        """

        if self.combo_index == len(self.combos) or not self.seeds:
            raise StopIteration

        # make a local copy of params to modify
        p = self.p.copy()
        # set parameter values for this combination
        cur_combo = self.combos[self.combo_index]
        param_strings = []
        for i, cur_p_name in enumerate([x['name'] for x in self.p_values]):
            p[cur_p_name] = self.p_values[i]['values'][cur_combo[i]]
            param_strings.append("%s=%s" % (cur_p_name,
                                 self.p_values[i]['values'][cur_combo[i]]))
        p['prefix'] = os.path.join(self.base_prefix,
                                   "params_" + "_".join(param_strings))
        p['seed'] = self.seeds[self.seed_index - self.start_seed_index]
        # only use seed directories if running more than one seed
        if len(self.seeds) > 1:
            p['prefix'] = os.path.join(p['prefix'],
                                       'seed_%d' % self.seed_index)

        if (self.seed_index - self.start_seed_index) < len(self.seeds) - 1:
            self.seed_index += 1
        else:
            self.combo_index += 1
            self.seed_index = self.start_seed_index

        return p
