# devices/device.py
# Base class for all devices in the proposal device graph.
#
# Copyright (C) 2009-2014  Red Hat, Inc.
#
# This copyrighted material is made available to anyone wishing to use,
# modify, copy, or redistribute it subject to the terms and conditions of
# the GNU General Public License v.2, or (at your option) any later version.
# This program is distributed in the hope that it will be useful, but WITHOUT
# ANY WARRANTY expressed or implied, including the implied warranties of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the GNU General
# Public License for more details.  You should have received a copy of the
# GNU General Public License along with this program; if not, write to the
# Free Software Foundation, Inc., 51 Franklin Street, Fifth Floor, Boston, MA
# 02110-1301, USA.  Any Red Hat trademarks that are incorporated in the
# source code or documentation are not subject to the GNU General Public
# License and may only be used or replicated with the express permission of
# Red Hat, Inc.
#

import pprint

from .. import util
from ..formats import get_format
from ..size import Size

import logging
log = logging.getLogger("autopart")


class Device(util.ObjectID):

    """ A generic device.

        Device instances know which devices they depend upon (parents
        attribute) and which devices depend upon them (children
        attribute). The children list is maintained by the
        :class:`~.devicegraph.DeviceGraph` the device belongs to.

        The kind of a device and its traits are described by its tags,
        a set of :class:`~.lib.Tags` members.
    """

    _type = "device"
    _tags = ()

    def __init__(self, name, parents=None, exists=False):
        """
            :param name: the device name (generally a device node's basename)
            :type name: str
            :keyword parents: a list of parent devices
            :type parents: list of :class:`Device` instances
            :keyword bool exists: whether the device is already on disk
        """
        util.ObjectID.__init__(self)
        self._name = name
        if parents is not None and not isinstance(parents, list):
            raise ValueError("parents must be a list of Device instances")

        self.tags = self._tags
        self.parents = parents or []
        self.children = []
        self.exists = exists

    def __repr__(self):
        s = ("%(type)s instance (%(id)s) --\n"
             "  name = %(name)s  exists = %(exists)s  id = %(dev_id)s\n"
             "  children = %(children)s\n"
             "  parents = %(parents)s\n" %
             {"type": self.__class__.__name__, "id": "%#x" % id(self),
              "name": self.name, "exists": self.exists,
              "dev_id": self.id,
              "children": pprint.pformat([str(c) for c in self.children]),
              "parents": pprint.pformat([str(p) for p in self.parents])})
        return s

    def __str__(self):
        return "%s %s (%d)" % (self.type, self.name, self.id)

    @property
    def name(self):
        return self._name

    @property
    def type(self):
        return self._type

    @property
    def tags(self):
        """ set of :class:`~.lib.Tags` describing this device. """
        return self._tags

    @tags.setter
    def tags(self, newtags):
        self._tags = set(newtags)

    @property
    def ancestors(self):
        """ A list of all of this device's ancestors, including itself. """
        l = set([self])
        for p in self.parents:
            l.update(set(p.ancestors))
        return list(l)

    @property
    def is_leaf(self):
        return not self.children


class StorageDevice(Device):

    """ A device that can hold a format. """

    _type = "storage"

    def __init__(self, name, parents=None, exists=False, size=None, fmt=None):
        """
            :keyword size: the device's size
            :type size: :class:`~.size.Size`
            :keyword fmt: this device's formatting
            :type fmt: :class:`~.formats.DeviceFormat` or a subclass of it
        """
        super(StorageDevice, self).__init__(name, parents=parents, exists=exists)
        self._size = Size(0) if size is None else Size(size)
        self._format = None
        self.format = fmt

    @property
    def path(self):
        return "/dev/%s" % self.name

    @property
    def size(self):
        return self._size

    @property
    def format(self):
        return self._format

    @format.setter
    def format(self, fmt):
        if fmt is None:
            fmt = get_format(None)
        fmt.device = self.path
        self._format = fmt

    @property
    def formatted(self):
        """ Whether the device has a recognized format. """
        return self.format.type is not None

    def __str__(self):
        return "%s %s (%d) size %s format %s" % (self.type, self.name, self.id,
                                                 self.size, self.format.type)
