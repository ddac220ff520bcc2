"""
Base class for observers objects.

An observer owns one group of an open pytables file and keeps its
`base_data` table in `data`; subclasses append rows in `update`.
"""

import tables as tb


class Observer(object):

    def __init__(self, h5file, label, description, title):
        self.label = label
        self.h5file = h5file
        self.data = None
        self.row = None
        if self.h5file.mode in ['w', 'a']:
            self.create_storage(description, title)
        else:
            self.load_storage()

    def create_storage(self, description, title):
        if '/%s' % self.label not in self.h5file:
            self.h5file.create_group('/', self.label, title)
        group = self.h5file.get_node('/', self.label)

        if 'base_data' in group:
            self.data = group.base_data
        elif description:
            self.data = self.h5file.create_table(
                group, 'base_data', description,
                filters=tb.Filters(complevel=9))
        if self.data is not None:
            self.row = self.data.row

    def load_storage(self):
        if '/%s' % self.label in self.h5file:
            group = self.h5file.get_node('/', self.label)
            if 'base_data' in group:
                self.data = group.base_data
