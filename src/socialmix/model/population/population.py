#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Lookup of age-stratified population data (e.g. UN WPP estimates) for the
country and year a survey was run in.
"""

import os
import datetime

import polars as pl

from ...errors import ConfigurationError, NotFoundError, require_columns

# short country codes used for survey folders -> ISO3
ISO3_CODES = {
    "uk": "GBR",
    "be": "BEL",
    "nl": "NLD",
    "no": "NOR",
}


def load_popdata(fname):
    """
    Read a population store with columns `iso3`, `year`, `age`, `total`.

    :param fname: path to a .parquet or .csv file.
    :returns: pl.DataFrame
    """
    if not os.path.isfile(fname):
        raise ValueError(f"File {fname} does not exist")
    if fname.endswith(".parquet"):
        popdata = pl.read_parquet(fname)
    else:
        popdata = pl.read_csv(fname)
    require_columns(popdata, ["iso3", "year", "age", "total"], "popdata")
    return popdata


def iso3_code(country_code="uk", iso3=None):
    """
    Resolve the ISO3 code for a survey country.

    An explicit `iso3` always wins over `country_code`.
    """
    if iso3 is not None:
        return iso3
    try:
        return ISO3_CODES[country_code]
    except KeyError:
        raise ConfigurationError(
            "Don't know how to convert country code %s in ISO3 code. "
            "Update ISO3_CODES or specify iso3" % country_code) from None


def get_popdata(popdata, country_code="uk", iso3=None, year=None):
    """
    Retrieves age-stratified population data for a country and year.

    :param popdata: population store with `iso3`, `year`, `age`, `total`.
    :type popdata: pl.DataFrame
    :param country_code: short country code, e.g. 'uk'.
    :param iso3: ISO3 country code, e.g. 'GBR'; overrides `country_code`.
    :param year: year of the population estimate, defaults to this year.
    :returns: pl.DataFrame with one row per age, sorted by age.
    """
    require_columns(popdata, ["iso3", "year", "age", "total"], "popdata")
    iso3_ = iso3_code(country_code, iso3)
    if year is None:
        year = datetime.date.today().year

    selected = (popdata
                .filter((pl.col("iso3") == iso3_) & (pl.col("year") == year))
                .sort("age"))
    if selected.height == 0:
        raise NotFoundError("Can't find population data for %s in %s" % (
            iso3_, year))
    return selected
