import tomli

from .errors import (ConfigurationError, NotFoundError, SchemaError,
                     EmptyInputWarning)
from .model.population.population import get_popdata, load_popdata
from .model.population.participant_ages import sample_age_child_participants
from .model.population.utils import zsample, get_rng, age_group_table
from .model.contacts.contact_ages import process_contacts
from .model.contacts.bootstrap import (bootstrap_contacts,
                                       bootstrap_participants)
from .model.contacts.contact_matrix import ContactMatrix, calculate_matrix
from .model.run import go_single, go_sweep


def run_scenario(scenario, contacts, participants, popdata=None,
                 contact_data_age_groups=None):
    """
    Build the contact matrices of a single scenario.

    :param scenario: A dictionary of scenario settings; its "parameters"
        override the base parameters.
    :type scenario: Dict[str, Any]
    :returns: list of :class:`ContactMatrix`, one per bootstrap replicate.
    """
    from .data.scenario_configs.base_params import p

    parameters = p.copy()
    parameters.update(scenario["parameters"])
    return go_single(parameters, contacts, participants, popdata=popdata,
                     contact_data_age_groups=contact_data_age_groups)


def load_scenarios(toml_file):
    """
    Load scenarios from a TOML file.

    :param toml_file: The filename from which to read the scenarios.
    :returns: A dictionary that maps scenario names to scenario settings.
    """
    with open(toml_file, "rb") as f:
        data = tomli.load(f)

    return data["scenarios"]
