"""
Observer storing one contact matrix per bootstrap replicate.
"""

import json

import numpy as np
import tables as tb

from .obs_base import Observer
from ..contacts.contact_matrix import ContactMatrix


class MatrixObserver(Observer):
    """
    Stores contact matrices in `/contact_matrix/base_data`.

    Missing cells are stored as NaN. A replicate that produced no matrix is
    stored with `empty` set and a NaN matrix.

    :param h5file: an open pytables file.
    :param age_groups: names of the matrix age groups; may be empty when
        the file is opened for reading only.
    """
    def __init__(self, h5file, age_groups):
        self.age_groups = list(age_groups)
        n = len(self.age_groups)
        desc = None
        if n:
            desc = {'replicate': tb.UInt32Col(pos=0),
                    'empty': tb.BoolCol(pos=1),
                    'matrix': tb.Float64Col(pos=2, shape=(n, n))}
        super(MatrixObserver, self).__init__(h5file=h5file,
                                             label='contact_matrix',
                                             description=desc,
                                             title='Contact Matrix Observer')
        if self.h5file.mode in ['w', 'a']:
            self.h5file.set_node_attr('/contact_matrix', 'age_groups',
                                      json.dumps(self.age_groups))

    def update(self, t, cmatrix=None, **kwargs):
        """
        Append the matrix of replicate `t`.
        """
        n = len(self.age_groups)
        self.row['replicate'] = t
        self.row['empty'] = cmatrix is None
        self.row['matrix'] = (np.full((n, n), np.nan) if cmatrix is None
                              else cmatrix.C)
        self.row.append()
        self.h5file.flush()

    def get_matrices(self):
        """
        Read back the stored matrices in replicate order; `None` for
        replicates without a matrix.
        """
        if self.data is None:
            return []
        age_groups = json.loads(self.h5file.get_node_attr(
            '/contact_matrix', 'age_groups'))
        rows = sorted(self.data.read(), key=lambda r: r['replicate'])
        return [None if r['empty'] else ContactMatrix(r['matrix'], age_groups)
                for r in rows]
